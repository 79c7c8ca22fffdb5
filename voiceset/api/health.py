"""Health check and system info routes."""

import logging

import httpx
from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from voiceset.api.deps import get_storage
from voiceset.config import APP_VERSION, get_settings
from voiceset.db.session import check_db
from voiceset.schemas.schemas import HealthResponse
from voiceset.services.storage import ObjectStore

router = APIRouter(tags=["System"])

settings = get_settings()
logger = logging.getLogger(__name__)


async def check_transcription_service() -> str:
    """Ping the optional transcription microservice."""
    if not settings.transcription_base_url:
        return "disabled"
    url = settings.transcription_base_url.rstrip("/") + "/health"
    try:
        async with httpx.AsyncClient(timeout=2.0) as client:
            response = await client.get(url)
            response.raise_for_status()
        return "ok"
    except httpx.HTTPError as e:
        logger.warning(f"Transcription service health check failed: {e}")
        return "error"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check the health status of the service and its dependencies.",
)
async def health_check(storage: ObjectStore = Depends(get_storage)):
    """
    Health check endpoint.

    Returns the status of:
    - Database connection
    - Object storage connection
    - Transcription service (``disabled`` when not configured)
    """
    db_status = "ok" if await check_db() else "error"
    storage_status = "ok" if await run_in_threadpool(storage.health_check) else "error"
    transcription_status = await check_transcription_service()

    overall_status = "healthy"
    if "error" in (db_status, storage_status, transcription_status):
        overall_status = "degraded"

    return HealthResponse(
        status=overall_status,
        version=APP_VERSION,
        database=db_status,
        storage=storage_status,
        transcription=transcription_status,
    )


@router.get(
    "/v1/info",
    summary="Service information",
    description="Get general information about the service.",
)
async def service_info():
    """Get service information."""
    return {
        "name": settings.app_name,
        "version": APP_VERSION,
        "environment": settings.app_env,
        "target_format": {
            "codec": "pcm_s16le",
            "sample_rate": settings.target_sample_rate,
            "channels": settings.target_channels,
        },
        "max_upload_bytes": settings.max_upload_bytes,
        "documentation": "/docs",
        "redoc": "/redoc",
    }
