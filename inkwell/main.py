"""Inkwell Blog API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from inkwell.auth.router import router as auth_router
from inkwell.auth.service import AuthService
from inkwell.blogs.router import admin_router as blogs_admin_router
from inkwell.blogs.router import router as blogs_router
from inkwell.blogs.service import BlogService
from inkwell.comments.router import router as comments_router
from inkwell.comments.service import CommentService
from inkwell.config import get_settings
from inkwell.core.context import get_request_id
from inkwell.core.database import CassandraCollection
from inkwell.core.database.async_cassandra import (
    init_async_cassandra,
    shutdown_async_cassandra,
)
from inkwell.core.logging import configure_structlog, get_logger
from inkwell.core.middleware import RequestContextMiddleware
from inkwell.core.redis import init_redis, shutdown_redis
from inkwell.health import router as health_router
from inkwell.storage.service import FirebaseStorageService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Initialize Redis (non-critical - app works without it)
    redis_client = None
    try:
        redis_client = await init_redis()
    except Exception as e:
        logger.warning(
            "redis_init_skipped",
            error=str(e),
            message="Running without Redis - comment rate limits disabled",
        )

    # Initialize Cassandra (async)
    try:
        session = await init_async_cassandra()
        keyspace = settings.cassandra_keyspace

        users = CassandraCollection(session, keyspace, "users")
        blogs = CassandraCollection(session, keyspace, "blogs")
        comments = CassandraCollection(session, keyspace, "comments")

        app.state.auth_service = AuthService(users)

        storage_service = FirebaseStorageService(settings)
        app.state.blog_service = BlogService(
            blogs,
            comments,
            storage=storage_service,
            max_update_attempts=settings.store_max_update_attempts,
            max_content_images=settings.upload_max_content_images,
        )

        app.state.comment_service = CommentService(
            comments,
            blogs,
            redis=redis_client,
            max_update_attempts=settings.store_max_update_attempts,
            comments_per_minute=settings.comments_per_minute,
            comments_per_hour=settings.comments_per_hour,
        )
        logger.info(
            "services_initialized",
            storage_configured=storage_service.is_configured,
            redis_enabled=redis_client is not None,
        )
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    # Shutdown
    logger.info("shutting_down_application")
    await shutdown_redis()
    await shutdown_async_cassandra()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # debug=False keeps Starlette from rendering tracebacks; the handlers
    # below log details and return safe messages.
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Inkwell Blog API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

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

    def _error_response(
        request: Request,
        status_code: int,
        message: str,
        details: list[dict[str, str]] | None = None,
        headers: dict[str, str] | None = None,
    ) -> ORJSONResponse:
        content: dict[str, object] = {
            "success": False,
            "message": message,
            "status_code": status_code,
            "request_id": getattr(request.state, "request_id", None) or get_request_id(),
        }
        if details is not None:
            content["details"] = details
        return ORJSONResponse(status_code=status_code, content=content, headers=headers)

    # Stack traces stay in the log
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
        )
        masked = exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR
        return _error_response(
            request,
            exc.status_code,
            "Internal server error" if masked else str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        errors = exc.errors()
        logger.warning("validation_error", errors=errors, path=request.url.path)
        return _error_response(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "Validation error",
            details=[
                {
                    "field": ".".join(str(loc) for loc in err.get("loc", [])),
                    "message": err.get("msg", "Invalid value"),
                }
                for err in errors
            ],
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        return _error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An unexpected error occurred. Please try again later.",
        )

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(blogs_router)
    app.include_router(blogs_admin_router)
    app.include_router(comments_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "Inkwell Blog API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
