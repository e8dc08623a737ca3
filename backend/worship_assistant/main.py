from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import get_settings
from .core.logging import configure_logging, get_logger, get_trace_id
from .core.middleware import TraceIDMiddleware
from .routes import chat, health, metrics
from .services.ai.orchestration import get_chat_service
from .services.catalog import get_song_source

# Configure structured logging
# Use JSON output in production (containerized), console output in development
settings = get_settings()
configure_logging(log_level=settings.log_level, json_output=settings.log_json)

logger = get_logger(__name__)

app = FastAPI(
    title="Worship Ministry Assistant API",
    description="Query classification and multi-agent chat for the worship ministry",
    version="1.0.0"
)

# CORS for local dev; restrict in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add trace ID middleware (must be after CORS middleware)
app.add_middleware(TraceIDMiddleware)


@app.on_event("startup")
async def startup_event():
    """Load the song catalog and wire the agents."""
    logger.info("app_startup_started")

    songs = get_song_source()
    service = get_chat_service()
    if service.is_configured:
        logger.info("app_startup_inference_ready", model=settings.inference_model)
    else:
        logger.warning(
            "app_startup_inference_unavailable",
            message="Inference service not configured. Theological answers use the local fallback.",
        )

    logger.info(
        "app_startup_completed",
        catalog_songs=len(songs.list_songs()),
        agents=[query_type.value for query_type in service.dispatcher.registered],
    )


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("app_shutdown_completed")


# Error handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions (metrics are recorded by TraceIDMiddleware)."""
    trace_id = get_trace_id()

    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
        method=request.method,
    )
    response = JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "status_code": exc.status_code,
            "trace_id": trace_id,
        }
    )
    if trace_id:
        response.headers["X-Trace-ID"] = trace_id
    return response


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    trace_id = get_trace_id()

    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )
    response = JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "status_code": 500,
            "trace_id": trace_id,
        }
    )
    if trace_id:
        response.headers["X-Trace-ID"] = trace_id
    return response


# Include routers
app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(chat.router, prefix="/chat", tags=["Chat"])
app.include_router(metrics.router, prefix="/metrics", tags=["Metrics"])
