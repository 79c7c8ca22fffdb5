"""Main FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from voiceset.api import clips, health, pages
from voiceset.config import APP_VERSION, get_settings
from voiceset.db.session import init_db
from voiceset.schemas.schemas import ErrorResponse
from voiceset.services.errors import ClipError

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting voiceset...")

    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    logger.info("voiceset started successfully")

    yield

    logger.info("Shutting down voiceset...")


app = FastAPI(
    title="voiceset",
    description="""
## Voice dataset collection API

Upload audio clips, normalize them to mono 16 kHz WAV, and browse the dataset.

### Pipeline
1. **Upload** (`POST /v1/clips`): stores the file and creates a clip in status `UPLOADED`
2. **Process** (`POST /v1/clips/{id}/process`): runs ffmpeg, records duration,
   sample rate and channel count, moves the clip to `PROCESSED`
3. **Browse** (`GET /v1/clips`, `/dataset`): most recent clips, newest first

Status only moves forward: `UPLOADED` → `PROCESSED` → `TRANSCRIBED`.
    """,
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ClipError)
async def clip_error_handler(request: Request, exc: ClipError):
    """Render pipeline errors with the status code of their category."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__, detail=exc.detail, code=exc.code
        ).model_dump(),
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions."""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


# Include routers
app.include_router(health.router)
app.include_router(clips.router)
app.include_router(pages.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "voiceset.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
