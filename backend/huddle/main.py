"""
Huddle Sports Community API - Main Application Entry Point

Members discover sports events, join them directly or through organizer
approval, and get real-time notifications over WebSocket:
- Join workflow with capacity accounting and FIFO waitlist promotion
- Compare-and-swap roster writes (no over-admission under concurrent joins)
- Redis caching of event listings with invalidation on every roster change
- Structured logging with request correlation, Prometheus metrics
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from huddle.core.config import get_settings
from huddle.core.logging import setup_logging, get_logger
from huddle.core.metrics import metrics_endpoint
from huddle.api.router import api_router
from huddle.api.middleware import RequestLoggingMiddleware
from huddle.domain.errors import JoinWorkflowError
from huddle.infrastructure.websocket_hub import get_connection_hub
from huddle.services.cache_service import get_redis, close_redis, get_cache_stats

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        notifications=settings.NOTIFICATIONS_ENABLED,
    )

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache")

    yield

    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Sports community API: events, join requests and real-time notifications",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router)


@app.exception_handler(JoinWorkflowError)
async def join_workflow_error_handler(request: Request, exc: JoinWorkflowError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": cache_stats,
        "websocket_connections": get_connection_hub().connection_count,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
