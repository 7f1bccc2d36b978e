"""App Reviews API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app_reviews.analytics.router import router as analytics_router
from app_reviews.analytics.service import ShareAnalyticsService
from app_reviews.analytics.store import (
    CassandraShareStore,
    InMemoryShareStore,
    ShareStore,
)
from app_reviews.config import get_settings
from app_reviews.core.context import get_request_id
from app_reviews.core.database import init_async_cassandra, shutdown_async_cassandra
from app_reviews.core.logging import configure_structlog, get_logger
from app_reviews.core.middleware import RequestContextMiddleware
from app_reviews.core.redis import init_redis, shutdown_redis
from app_reviews.health import router as health_router
from app_reviews.notifications.hub import NotificationHub
from app_reviews.notifications.websocket_router import router as notifications_ws_router
from app_reviews.reviews.admission import AdmissionGate
from app_reviews.reviews.cassandra_store import CassandraReviewStore
from app_reviews.reviews.moderation import ModerationService
from app_reviews.reviews.router import router as reviews_router
from app_reviews.reviews.service import ReviewService
from app_reviews.reviews.store import InMemoryReviewStore, ReviewStore
from app_reviews.reviews.votes import VoteAggregator


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."
RATING_ERROR_MESSAGE = "Please provide a valid rating (1-5)"


async def _open_stores(app: FastAPI) -> tuple[ReviewStore, ShareStore] | None:
    """Create review and share stores for the configured backend."""
    settings = get_settings()

    if settings.storage_backend == "memory":
        logger.info("storage_backend_memory")
        return InMemoryReviewStore(), InMemoryShareStore()

    try:
        session = await init_async_cassandra()
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )
        return None

    app.state.cassandra_session = session
    return (
        CassandraReviewStore(session=session, keyspace=settings.cassandra_keyspace),
        CassandraShareStore(session=session, keyspace=settings.cassandra_keyspace),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        storage_backend=settings.storage_backend,
    )

    # Redis is non-critical: without it the transport rate limits are off
    if settings.redis_enabled:
        try:
            await init_redis()
            logger.info("redis_initialized")
        except Exception as e:
            logger.warning(
                "redis_init_skipped",
                error=str(e),
                message="Running without Redis - rate limits disabled",
            )

    stores = await _open_stores(app)
    if stores is not None:
        review_store, share_store = stores
        hub: NotificationHub = app.state.notification_hub

        gate = AdmissionGate(
            review_store,
            daily_limit=settings.review_daily_limit,
            window=timedelta(hours=settings.review_daily_window_hours),
        )
        app.state.review_service = ReviewService(review_store, gate, hub)
        app.state.moderation_service = ModerationService(review_store, hub)
        app.state.vote_aggregator = VoteAggregator(review_store)
        app.state.share_service = ShareAnalyticsService(share_store)
        logger.info("review_services_initialized")

    yield

    # Shutdown
    logger.info("shutting_down_application")
    await shutdown_redis()
    if settings.storage_backend == "cassandra":
        await shutdown_async_cassandra()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # debug=False so Starlette never renders stack traces; the handlers
    # below log details and return safe messages.
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="App review moderation and real-time notifications API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # One hub per application; services created in lifespan share it
    app.state.notification_hub = NotificationHub()

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        """Get request_id from request state or context."""
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            message = GENERIC_ERROR_MESSAGE
        elif exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            # Unmatched route
            message = "API endpoint not found"
        else:
            message = str(exc.detail)

        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "message": message,
                "status_code": exc.status_code,
                "request_id": request_id,
            },
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors as 400 with field details."""
        request_id = _get_request_id_safe(request)
        errors = exc.errors()

        logger.warning(
            "validation_error",
            errors=[{"loc": e.get("loc"), "type": e.get("type")} for e in errors],
            path=request.url.path,
            method=request.method,
        )

        rating_invalid = any(err.get("loc", ())[-1:] == ("rating",) for err in errors)
        return ORJSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "message": RATING_ERROR_MESSAGE if rating_invalid else "Validation error",
                "status_code": status.HTTP_400_BAD_REQUEST,
                "request_id": request_id,
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in errors
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions.

        Full details are logged; the response carries a generic message and,
        in development only, the error text.
        """
        request_id = _get_request_id_safe(request)

        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        content = {
            "success": False,
            "message": GENERIC_ERROR_MESSAGE,
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "request_id": request_id,
        }
        if settings.is_development:
            content["error"] = str(exc)
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(reviews_router)
    app.include_router(analytics_router)
    app.include_router(notifications_ws_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "App Reviews API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
