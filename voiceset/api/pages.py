"""Browser pages: capture/upload and dataset listing."""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from voiceset.api.deps import get_clip_service
from voiceset.config import get_settings
from voiceset.db.session import get_db
from voiceset.services.clip_service import ClipService
from voiceset.templates.index import index, render_dataset

router = APIRouter(tags=["Pages"], include_in_schema=False)

settings = get_settings()


@router.get("/", response_class=HTMLResponse)
async def capture_page():
    return index


@router.get("/dataset", response_class=HTMLResponse)
async def dataset_page(
    limit: int = Query(settings.list_default_limit, ge=1, le=settings.list_max_limit),
    db: AsyncSession = Depends(get_db),
    service: ClipService = Depends(get_clip_service),
):
    clips = await service.list_clips(db, limit)
    return render_dataset(clips)
