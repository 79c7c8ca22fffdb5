"""Database models for the voiceset service."""

import enum
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import DateTime, Enum, Float, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from voiceset.db.session import Base


class ClipStatus(str, enum.Enum):
    """Lifecycle of a clip. Only moves forward."""

    UPLOADED = "UPLOADED"
    PROCESSED = "PROCESSED"
    TRANSCRIBED = "TRANSCRIBED"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    def can_advance_to(self, target: "ClipStatus") -> bool:
        """True if ``target`` is the status immediately after this one."""
        return target.rank == self.rank + 1


_STATUS_ORDER = [ClipStatus.UPLOADED, ClipStatus.PROCESSED, ClipStatus.TRANSCRIBED]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Clip(Base):
    """One uploaded audio sample and its metadata."""

    __tablename__ = "clips"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )
    filename: Mapped[str] = mapped_column(String(255))
    storage_key: Mapped[str] = mapped_column(Text, unique=True)
    content_type: Mapped[str] = mapped_column(String(100), default="application/octet-stream")
    size_bytes: Mapped[int] = mapped_column(Integer)
    normalized_storage_key: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Metrics, filled by processing
    duration_sec: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    sample_rate: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    channels: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Reserved
    silence_pct: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    snr_db: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    transcript: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[ClipStatus] = mapped_column(
        Enum(ClipStatus, name="clipstatus"), default=ClipStatus.UPLOADED, index=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), index=True
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
