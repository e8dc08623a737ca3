"""
Health check endpoints.
"""
from fastapi import APIRouter

from worship_assistant.core.config import get_settings
from worship_assistant.core.logging import get_logger
from worship_assistant.services.catalog import get_song_source

logger = get_logger(__name__)
router = APIRouter()


@router.get("/")
async def health_check():
    """
    Basic health check endpoint.
    """
    return {
        "status": "ok",
        "message": "API is running"
    }


@router.get("/inference")
async def inference_health():
    """
    Configuration state of the inference service and the song catalog.

    Does not call the inference service; an unconfigured service means
    theological answers come from the local fallback.
    """
    settings = get_settings()
    songs = get_song_source()
    configured = settings.inference_configured

    return {
        "status": "ok" if configured else "degraded",
        "inference_configured": configured,
        "model": settings.inference_model,
        "timeout_seconds": settings.inference_timeout_seconds,
        "batch_chunk_size": settings.batch_chunk_size,
        "catalog_songs": len(songs.list_songs()),
        "message": (
            "Inference service configured"
            if configured
            else "INFERENCE_API_KEY not set. Theological answers use the local fallback."
        ),
    }
