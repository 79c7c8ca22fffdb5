"""Pydantic schemas for request/response validation."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from voiceset.db.models import ClipStatus


# ============== Clip Schemas ==============


class ClipUploadResponse(BaseModel):
    """Response after uploading a clip."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    filename: str
    storage_key: str
    size_bytes: int
    status: ClipStatus
    created_at: datetime


class ClipProcessResponse(BaseModel):
    """Metrics written by processing."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    status: ClipStatus
    duration_sec: float
    sample_rate: int
    channels: int
    normalized_storage_key: Optional[str] = None
    processed_at: Optional[datetime] = None


class ClipSummary(BaseModel):
    """Display fields for the dataset listing."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    filename: str
    status: ClipStatus
    duration_sec: Optional[float] = None
    sample_rate: Optional[int] = None
    channels: Optional[int] = None
    created_at: datetime
    processed_at: Optional[datetime] = None


class ClipDetail(ClipSummary):
    """Full clip row."""

    storage_key: str
    normalized_storage_key: Optional[str] = None
    content_type: str
    size_bytes: int
    silence_pct: Optional[float] = None
    snr_db: Optional[float] = None
    hash: Optional[str] = None
    transcript: Optional[str] = None


class ClipListResponse(BaseModel):
    """Most recent clips, newest first."""

    clips: list[ClipSummary]
    count: int
    limit: int


# ============== Health & Misc Schemas ==============


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    database: str
    storage: str
    transcription: str


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    detail: Optional[str] = None
    code: Optional[str] = None
