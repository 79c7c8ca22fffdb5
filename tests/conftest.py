"""Pytest configuration and fixtures."""

import io
import math
import struct
import wave
from typing import AsyncGenerator, Callable, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from voiceset.api.deps import get_storage, get_transcoder
from voiceset.config import Settings, get_settings
from voiceset.db.models import Clip  # noqa: F401
from voiceset.db.session import Base, get_db
from voiceset.main import app
from voiceset.services.clip_service import ClipService
from voiceset.services.errors import StorageError, TranscodeError
from voiceset.services.transcoder import TranscodeResult


class InMemoryObjectStore:
    """Dict-backed stand-in for the S3 storage service."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.deleted: list[str] = []
        self.fail_puts = False

    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        if self.fail_puts:
            raise StorageError(f"Failed to store {key}: connection refused")
        self.objects[key] = data
        self.content_types[key] = content_type
        return key

    def get(self, key: str) -> bytes:
        try:
            return self.objects[key]
        except KeyError:
            raise StorageError(f"Failed to read {key}: NoSuchKey") from None

    def delete(self, key: str) -> None:
        self.objects.pop(key, None)
        self.deleted.append(key)

    def health_check(self) -> bool:
        return True


class FakeTranscoder:
    """Returns canned metrics without running ffmpeg."""

    def __init__(self, duration_sec: float = 2.0, sample_rate: int = 16000, channels: int = 1):
        self.result = TranscodeResult(
            data=b"RIFF-normalized", duration_sec=duration_sec, sample_rate=sample_rate, channels=channels
        )
        self.calls: list[tuple[bytes, str]] = []
        self.error: Optional[TranscodeError] = None
        self.before_return: Optional[Callable[[], None]] = None

    def transcode(self, data: bytes, suffix: str = "") -> TranscodeResult:
        self.calls.append((data, suffix))
        if self.error is not None:
            raise self.error
        if self.before_return is not None:
            self.before_return()
        return self.result


def build_wav(seconds: float = 2.0, sample_rate: int = 16000, channels: int = 1) -> bytes:
    """A 440 Hz sine tone as 16-bit PCM WAV bytes."""
    frames = int(seconds * sample_rate)
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        samples = bytearray()
        for i in range(frames):
            value = int(12000 * math.sin(2 * math.pi * 440 * i / sample_rate))
            samples += struct.pack("<h", value) * channels
        wav.writeframes(bytes(samples))
    return buffer.getvalue()


@pytest.fixture
def wav_factory() -> Callable[..., bytes]:
    return build_wav


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "test.db"


@pytest_asyncio.fixture
async def test_engine(db_path):
    """Create a fresh SQLite database per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def storage() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def transcoder() -> FakeTranscoder:
    return FakeTranscoder()


@pytest.fixture
def clip_service(storage, transcoder, settings) -> ClipService:
    return ClipService(storage, transcoder, settings)


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession, storage: InMemoryObjectStore, transcoder: FakeTranscoder
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client with in-memory storage and a fake transcoder."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_transcoder] = lambda: transcoder

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
