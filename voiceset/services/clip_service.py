"""Clip upload, processing and listing."""

import logging
import mimetypes
import re
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Optional
from uuid import uuid4

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from voiceset.config import Settings
from voiceset.db.models import Clip, ClipStatus
from voiceset.services.errors import (
    ClipNotFoundError,
    ClipValidationError,
    InvalidStatusTransition,
    MetadataStoreError,
    PayloadTooLargeError,
    StorageError,
    TranscodeError,
)
from voiceset.services.storage import ObjectStore, extension_for
from voiceset.services.transcoder import Transcoder

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "recording.webm"
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(filename: Optional[str]) -> str:
    """Reduce a client-supplied filename to a safe basename."""
    name = PurePosixPath((filename or "").replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    if not name:
        return DEFAULT_FILENAME
    if len(name) > 255:
        suffix = PurePosixPath(name).suffix[:16]
        name = name[: 255 - len(suffix)] + suffix
    return name


def original_key(clip_id: str, filename: str, content_type: str) -> str:
    """Storage key for the file exactly as uploaded."""
    ext = PurePosixPath(filename).suffix.lower() or extension_for(content_type)
    return f"clips/{clip_id}/original{ext}"


def normalized_key(clip_id: str) -> str:
    """Storage key for the normalized mono WAV."""
    return f"clips/{clip_id}/normalized.wav"


class ClipService:
    """Service for the upload -> process -> browse pipeline."""

    def __init__(self, storage: ObjectStore, transcoder: Transcoder, settings: Settings):
        self._storage = storage
        self._transcoder = transcoder
        self._settings = settings

    @property
    def max_upload_bytes(self) -> int:
        return self._settings.max_upload_bytes

    async def upload_clip(
        self,
        db: AsyncSession,
        data: bytes,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> Clip:
        """
        Store an uploaded payload and create its metadata row.

        Args:
            db: Database session
            data: Raw audio bytes; not format-checked
            filename: Client-supplied filename, sanitized before use
            content_type: Client-reported content type

        Returns:
            The committed Clip in status UPLOADED
        """
        if not data:
            raise ClipValidationError("Uploaded file is empty")
        if len(data) > self._settings.max_upload_bytes:
            raise PayloadTooLargeError(
                f"Upload of {len(data)} bytes exceeds limit of {self._settings.max_upload_bytes}"
            )

        clip_id = str(uuid4())
        safe_name = sanitize_filename(filename)
        content_type = (
            content_type or mimetypes.guess_type(safe_name)[0] or "application/octet-stream"
        )
        key = original_key(clip_id, safe_name, content_type)

        # Nothing is written to the database if this fails
        await run_in_threadpool(self._storage.put, key, data, content_type)

        clip = Clip(
            id=clip_id,
            filename=safe_name,
            storage_key=key,
            content_type=content_type,
            size_bytes=len(data),
            status=ClipStatus.UPLOADED,
        )
        db.add(clip)
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Metadata write failed for clip {clip_id}: {e}")
            await self._discard_blob(key)
            raise MetadataStoreError(f"Could not record clip {clip_id}") from e

        logger.info(f"Uploaded clip {clip_id} ({safe_name}, {len(data)} bytes) to {key}")
        return clip

    async def _discard_blob(self, key: str) -> None:
        """Best-effort removal of a blob whose metadata row was never written."""
        try:
            await run_in_threadpool(self._storage.delete, key)
            logger.info(f"Removed orphaned blob {key}")
        except StorageError as e:
            logger.error(f"Orphaned blob {key} could not be removed: {e}")

    async def get_clip(self, db: AsyncSession, clip_id: str) -> Optional[Clip]:
        """Get a clip by ID."""
        try:
            result = await db.execute(select(Clip).where(Clip.id == clip_id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            await db.rollback()
            raise MetadataStoreError(f"Could not read clip {clip_id}") from e

    async def process_clip(self, db: AsyncSession, clip_id: str) -> Clip:
        """
        Normalize a clip's audio and record its metrics.

        Only UPLOADED clips are processed. The row is updated with a
        compare-and-swap on status, so of several concurrent calls for the
        same clip exactly one wins and the rest get InvalidStatusTransition.
        On any failure the row is left untouched.

        Args:
            db: Database session
            clip_id: Clip ID

        Returns:
            The Clip in status PROCESSED with metrics filled
        """
        if not clip_id or not clip_id.strip():
            raise ClipValidationError("Clip ID is required")

        clip = await self.get_clip(db, clip_id)
        if clip is None:
            raise ClipNotFoundError(clip_id)
        if not clip.status.can_advance_to(ClipStatus.PROCESSED):
            raise InvalidStatusTransition(
                f"Clip {clip_id} is {clip.status.value}; only UPLOADED clips can be processed"
            )

        data = await run_in_threadpool(self._storage.get, clip.storage_key)
        suffix = PurePosixPath(clip.storage_key).suffix
        try:
            result = await run_in_threadpool(self._transcoder.transcode, data, suffix)
        except TranscodeError as e:
            logger.warning(f"Processing failed for clip {clip_id}: {e.detail}")
            raise

        norm_key = normalized_key(clip.id)
        await run_in_threadpool(self._storage.put, norm_key, result.data, "audio/wav")

        stmt = (
            update(Clip)
            .where(Clip.id == clip.id, Clip.status == ClipStatus.UPLOADED)
            .values(
                status=ClipStatus.PROCESSED,
                duration_sec=result.duration_sec,
                sample_rate=result.sample_rate,
                channels=result.channels,
                normalized_storage_key=norm_key,
                processed_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        try:
            updated = await db.execute(stmt)
            if updated.rowcount != 1:
                await db.rollback()
                raise InvalidStatusTransition(f"Clip {clip_id} was processed concurrently")
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            raise MetadataStoreError(f"Could not record metrics for clip {clip_id}") from e

        try:
            await db.refresh(clip)
        except SQLAlchemyError as e:
            await db.rollback()
            raise MetadataStoreError(f"Could not reload clip {clip_id}") from e

        logger.info(
            f"Processed clip {clip_id}: {result.duration_sec:.2f}s, "
            f"{result.sample_rate} Hz, {result.channels} ch"
        )
        return clip

    async def list_clips(self, db: AsyncSession, limit: Optional[int] = None) -> list[Clip]:
        """
        List the most recent clips, newest first.

        Returns:
            Up to ``limit`` clips ordered by creation time descending
        """
        if limit is None:
            limit = self._settings.list_default_limit
        limit = max(1, min(limit, self._settings.list_max_limit))

        try:
            result = await db.execute(
                select(Clip).order_by(Clip.created_at.desc(), Clip.id.desc()).limit(limit)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            await db.rollback()
            raise MetadataStoreError("Could not list clips") from e
