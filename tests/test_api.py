"""Tests for API endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select, text

from voiceset.api.clips import read_upload
from voiceset.config import Settings, get_settings
from voiceset.db.models import Clip
from voiceset.main import app
from voiceset.services.errors import TranscodeError


async def upload(client: AsyncClient, data: bytes, part_name: str = "a.wav", **form) -> dict:
    response = await client.post(
        "/v1/clips",
        files={"file": (part_name, data, "audio/wav")},
        data=form,
    )
    assert response.status_code == 201, response.text
    return response.json()


async def count_clips(db_session) -> int:
    return (await db_session.execute(select(func.count()).select_from(Clip))).scalar()


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient, monkeypatch):
    """Test health check endpoint."""

    async def db_ok():
        return True

    monkeypatch.setattr("voiceset.api.health.check_db", db_ok)
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["storage"] == "ok"
    assert data["transcription"] == "disabled"


@pytest.mark.asyncio
async def test_service_info(client: AsyncClient):
    response = await client.get("/v1/info")
    assert response.status_code == 200
    data = response.json()
    assert data["target_format"]["sample_rate"] == 16000
    assert data["target_format"]["channels"] == 1


@pytest.mark.asyncio
async def test_capture_page(client: AsyncClient):
    response = await client.get("/")
    assert response.status_code == 200
    assert "MediaRecorder" in response.text
    assert "/v1/clips" in response.text


@pytest.mark.asyncio
async def test_upload_process_list_scenario(client: AsyncClient, storage, wav_factory):
    """Upload a 2 s mono WAV, process it, and find it first in the listing."""
    created = await upload(client, wav_factory(seconds=2.0), "a.wav")
    clip_id = created["id"]
    assert created["status"] == "UPLOADED"
    assert created["filename"] == "a.wav"
    assert created["storage_key"] in storage.objects

    response = await client.get(f"/v1/clips/{clip_id}")
    assert response.status_code == 200
    detail = response.json()
    assert detail["status"] == "UPLOADED"
    assert detail["storage_key"]
    assert detail["duration_sec"] is None
    assert detail["sample_rate"] is None

    response = await client.post(f"/v1/clips/{clip_id}/process")
    assert response.status_code == 200, response.text
    processed = response.json()
    assert processed["status"] == "PROCESSED"
    assert processed["duration_sec"] == pytest.approx(2.0)
    assert processed["sample_rate"] == 16000
    assert processed["channels"] == 1
    assert processed["normalized_storage_key"] in storage.objects

    response = await client.get("/v1/clips")
    assert response.status_code == 200
    listing = response.json()
    assert listing["clips"][0]["id"] == clip_id
    assert listing["clips"][0]["status"] == "PROCESSED"


@pytest.mark.asyncio
async def test_metrics_stable_on_repeated_reads(client: AsyncClient, wav_factory):
    clip_id = (await upload(client, wav_factory()))["id"]
    await client.post(f"/v1/clips/{clip_id}/process")

    first = (await client.get(f"/v1/clips/{clip_id}")).json()
    second = (await client.get(f"/v1/clips/{clip_id}")).json()
    for field in ("duration_sec", "sample_rate", "channels", "status", "processed_at"):
        assert first[field] == second[field]


@pytest.mark.asyncio
async def test_filename_form_field_overrides_part_name(client: AsyncClient, wav_factory):
    created = await upload(client, wav_factory(), "blob", filename="../../take 1.wav")
    assert created["filename"] == "take_1.wav"
    assert created["storage_key"].endswith("/original.wav")


@pytest.mark.asyncio
async def test_upload_empty_file_rejected(client: AsyncClient, db_session, storage):
    response = await client.post(
        "/v1/clips", files={"file": ("a.wav", b"", "audio/wav")}
    )
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"
    assert await count_clips(db_session) == 0
    assert storage.objects == {}


@pytest.mark.asyncio
async def test_upload_without_file_rejected(client: AsyncClient):
    response = await client.post("/v1/clips", data={"filename": "a.wav"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_upload_too_large_rejected(client: AsyncClient, db_session, wav_factory):
    app.dependency_overrides[get_settings] = lambda: Settings(max_upload_bytes=100)
    response = await client.post(
        "/v1/clips", files={"file": ("a.wav", wav_factory(), "audio/wav")}
    )
    assert response.status_code == 413
    assert await count_clips(db_session) == 0


@pytest.mark.asyncio
async def test_upload_storage_failure_creates_no_row(client: AsyncClient, db_session, storage, wav_factory):
    storage.fail_puts = True
    response = await client.post(
        "/v1/clips", files={"file": ("a.wav", wav_factory(), "audio/wav")}
    )
    assert response.status_code == 503
    assert response.json()["code"] == "storage_unavailable"
    assert await count_clips(db_session) == 0


class RecordingUpload:
    """Stands in for UploadFile and remembers how much was asked for."""

    def __init__(self, data: bytes):
        self._data = data
        self.requested = []

    async def read(self, size: int = -1) -> bytes:
        self.requested.append(size)
        return self._data if size < 0 else self._data[:size]


@pytest.mark.asyncio
async def test_read_upload_stops_one_byte_past_limit():
    upload_file = RecordingUpload(b"x" * 1000)
    data = await read_upload(upload_file, 100)
    assert upload_file.requested == [101]
    assert len(data) == 101


@pytest.mark.asyncio
async def test_process_storage_read_failure_leaves_clip_uploaded(
    client: AsyncClient, storage, transcoder, wav_factory
):
    clip_id = (await upload(client, wav_factory()))["id"]
    storage.objects.clear()

    response = await client.post(f"/v1/clips/{clip_id}/process")
    assert response.status_code == 503
    assert response.json()["code"] == "storage_unavailable"

    detail = (await client.get(f"/v1/clips/{clip_id}")).json()
    assert detail["status"] == "UPLOADED"
    assert detail["duration_sec"] is None
    assert detail["sample_rate"] is None
    assert detail["channels"] is None
    assert transcoder.calls == []


@pytest.mark.asyncio
async def test_metadata_store_outage_on_reads_is_503(client: AsyncClient, db_session):
    await db_session.execute(text("DROP TABLE clips"))
    await db_session.commit()

    for method, url in [
        ("GET", "/v1/clips"),
        ("GET", "/v1/clips/abc"),
        ("POST", "/v1/clips/abc/process"),
    ]:
        response = await client.request(method, url)
        assert response.status_code == 503, url
        assert response.json()["code"] == "metadata_store_unavailable"


@pytest.mark.asyncio
async def test_process_nonexistent_clip(client: AsyncClient, db_session, transcoder):
    """Process on an unknown ID is a 404 and touches nothing."""
    response = await client.post("/v1/clips/nonexistent-id/process")
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"
    assert await count_clips(db_session) == 0
    assert transcoder.calls == []


@pytest.mark.asyncio
async def test_get_nonexistent_clip(client: AsyncClient):
    response = await client.get("/v1/clips/00000000-0000-0000-0000-000000000000")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_reprocess_is_rejected_without_touching_metrics(client: AsyncClient, transcoder, wav_factory):
    clip_id = (await upload(client, wav_factory()))["id"]
    first = await client.post(f"/v1/clips/{clip_id}/process")
    assert first.status_code == 200

    transcoder.result.duration_sec = 99.0
    second = await client.post(f"/v1/clips/{clip_id}/process")
    assert second.status_code == 409
    assert second.json()["code"] == "invalid_status_transition"

    detail = (await client.get(f"/v1/clips/{clip_id}")).json()
    assert detail["status"] == "PROCESSED"
    assert detail["duration_sec"] == pytest.approx(2.0)
    assert len(transcoder.calls) == 1


@pytest.mark.asyncio
async def test_transcode_failure_leaves_clip_uploaded(client: AsyncClient, transcoder, wav_factory):
    clip_id = (await upload(client, wav_factory()))["id"]
    transcoder.error = TranscodeError("ffmpeg failed with exit code 1")

    response = await client.post(f"/v1/clips/{clip_id}/process")
    assert response.status_code == 502
    assert response.json()["code"] == "processing_failed"

    detail = (await client.get(f"/v1/clips/{clip_id}")).json()
    assert detail["status"] == "UPLOADED"
    assert detail["duration_sec"] is None
    assert detail["sample_rate"] is None
    assert detail["channels"] is None
    assert detail["normalized_storage_key"] is None

    # A later successful call still processes the clip
    transcoder.error = None
    response = await client.post(f"/v1/clips/{clip_id}/process")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_list_is_newest_first_and_limited(client: AsyncClient, wav_factory):
    ids = [(await upload(client, wav_factory(seconds=0.1), f"clip{i}.wav"))["id"] for i in range(4)]

    response = await client.get("/v1/clips", params={"limit": 3})
    assert response.status_code == 200
    listing = response.json()
    assert listing["count"] == 3
    assert [c["id"] for c in listing["clips"]] == list(reversed(ids))[:3]

    created = [c["created_at"] for c in listing["clips"]]
    assert created == sorted(created, reverse=True)


@pytest.mark.asyncio
async def test_list_shows_unprocessed_clips_with_null_metrics(client: AsyncClient, wav_factory):
    await upload(client, wav_factory())
    clip = (await client.get("/v1/clips")).json()["clips"][0]
    assert clip["status"] == "UPLOADED"
    assert clip["duration_sec"] is None


@pytest.mark.asyncio
async def test_list_limit_out_of_range(client: AsyncClient):
    response = await client.get("/v1/clips", params={"limit": 0})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_dataset_page(client: AsyncClient, wav_factory):
    clip_id = (await upload(client, wav_factory(), "hello <b>.wav"))["id"]
    await client.post(f"/v1/clips/{clip_id}/process")

    response = await client.get("/dataset")
    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert clip_id in response.text
    assert "PROCESSED" in response.text
    assert "2.00s" in response.text
    assert "<b>" not in response.text
