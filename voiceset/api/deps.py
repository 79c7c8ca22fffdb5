"""Dependency providers wiring settings into the service components."""

from functools import lru_cache

from fastapi import Depends

from voiceset.config import Settings, get_settings
from voiceset.services.clip_service import ClipService
from voiceset.services.storage import ObjectStore, StorageService
from voiceset.services.transcoder import FFmpegTranscoder, Transcoder


@lru_cache
def get_storage() -> ObjectStore:
    """Process-wide S3 storage client."""
    return StorageService(get_settings())


@lru_cache
def get_transcoder() -> Transcoder:
    """Process-wide ffmpeg transcoder."""
    return FFmpegTranscoder(get_settings())


def get_clip_service(
    storage: ObjectStore = Depends(get_storage),
    transcoder: Transcoder = Depends(get_transcoder),
    settings: Settings = Depends(get_settings),
) -> ClipService:
    return ClipService(storage, transcoder, settings)
