"""Clip upload, processing and dataset API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from voiceset.api.deps import get_clip_service
from voiceset.config import get_settings
from voiceset.db.session import get_db
from voiceset.schemas.schemas import (
    ClipDetail,
    ClipListResponse,
    ClipProcessResponse,
    ClipSummary,
    ClipUploadResponse,
    ErrorResponse,
)
from voiceset.services.clip_service import ClipService
from voiceset.services.errors import ClipNotFoundError

router = APIRouter(prefix="/v1/clips", tags=["Clips"])

settings = get_settings()


async def read_upload(file: UploadFile, limit: int) -> bytes:
    """Read at most one byte past ``limit`` so oversized uploads are rejected unbuffered."""
    return await file.read(limit + 1)


@router.post(
    "",
    response_model=ClipUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a clip",
    description="Store an audio file and create its metadata row in status UPLOADED.",
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def upload_clip(
    file: UploadFile = File(..., description="Audio file (any format ffmpeg can decode)"),
    filename: Optional[str] = Form(None, description="Overrides the filename of the file part"),
    db: AsyncSession = Depends(get_db),
    service: ClipService = Depends(get_clip_service),
):
    """
    Upload a clip.

    - **file**: raw audio bytes, must be non-empty
    - **filename**: optional display name; sanitized before use
    """
    data = await read_upload(file, service.max_upload_bytes)
    clip = await service.upload_clip(
        db,
        data,
        filename=filename or file.filename,
        content_type=file.content_type,
    )
    return ClipUploadResponse.model_validate(clip)


@router.get(
    "",
    response_model=ClipListResponse,
    summary="List clips",
    description="Most recent clips, newest first.",
)
async def list_clips(
    limit: int = Query(
        settings.list_default_limit,
        ge=1,
        le=settings.list_max_limit,
        description="Maximum number of clips to return",
    ),
    db: AsyncSession = Depends(get_db),
    service: ClipService = Depends(get_clip_service),
):
    """List the dataset."""
    clips = await service.list_clips(db, limit)
    return ClipListResponse(
        clips=[ClipSummary.model_validate(c) for c in clips],
        count=len(clips),
        limit=limit,
    )


@router.get(
    "/{clip_id}",
    response_model=ClipDetail,
    summary="Get clip",
    responses={404: {"model": ErrorResponse}},
)
async def get_clip(
    clip_id: str,
    db: AsyncSession = Depends(get_db),
    service: ClipService = Depends(get_clip_service),
):
    """Get a single clip with all metadata fields."""
    clip = await service.get_clip(db, clip_id)

    if not clip:
        raise ClipNotFoundError(clip_id)

    return ClipDetail.model_validate(clip)


@router.post(
    "/{clip_id}/process",
    response_model=ClipProcessResponse,
    summary="Process clip",
    description="Normalize to mono 16 kHz WAV and record duration, sample rate and channels.",
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def process_clip(
    clip_id: str,
    db: AsyncSession = Depends(get_db),
    service: ClipService = Depends(get_clip_service),
):
    """
    Process an UPLOADED clip.

    Re-processing a clip that is already PROCESSED returns 409 and leaves its
    metrics untouched.
    """
    clip = await service.process_clip(db, clip_id)
    return ClipProcessResponse.model_validate(clip)
