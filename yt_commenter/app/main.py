# yt_commenter/app/main.py
"""
FastAPI Main Application
YouTube Comment Assistant
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from yt_commenter import __version__
from yt_commenter.api.routers import (
    auth_router,
    comment_router,
    history_router,
    reply_router,
    sync_router,
    user_router,
)
from yt_commenter.app.config import get_config, setup_logging, validate_config
from yt_commenter.app.dependencies import shutdown_clients
from yt_commenter.infrastructure.database.connection import db_manager
from yt_commenter.services.exceptions import RateLimitExceededError, ServiceError

logger = logging.getLogger(__name__)


# ============================================================================
# Application Lifecycle Management
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Handles startup and shutdown events
    """
    # ========== STARTUP ==========
    logger.info("🚀 Starting YouTube Comment Assistant...")

    # 1. Load and validate configuration
    config = get_config()
    setup_logging(config)

    validation_result = validate_config(config)
    if not validation_result["valid"]:
        logger.error("❌ Configuration validation failed!")
        for error in validation_result["errors"]:
            logger.error(f"  - {error}")
        raise RuntimeError("Invalid configuration")

    for warning in validation_result["warnings"]:
        logger.warning(f"  ⚠️  {warning}")

    logger.info("✅ Configuration loaded and validated")

    # 2. Initialize database
    logger.info("🗄️  Initializing database...")
    try:
        await db_manager.create_tables()
        logger.info("✅ Database initialized successfully")
    except Exception as e:
        logger.error(f"❌ Database initialization failed: {e}")
        raise

    _print_startup_summary(config)

    yield

    # ========== SHUTDOWN ==========
    logger.info("🛑 Shutting down application...")
    await shutdown_clients()
    await db_manager.close()
    logger.info("✅ Application shutdown complete")


def _print_startup_summary(config) -> None:
    summary = config.get_summary()
    logger.info(
        f"📋 API {config.api.host}:{config.api.port} | "
        f"database={summary['database']['url']} | "
        f"oauth_configured={summary['oauth']['client_id_set']} | "
        f"ai_model={summary['ai']['model']}"
    )


# ============================================================================
# FastAPI Application Instance
# ============================================================================


def create_app() -> FastAPI:
    """
    FastAPI application factory
    Creates and configures the FastAPI application
    """
    config = get_config()

    app = FastAPI(
        title="YouTube Comment Assistant",
        description="Sync YouTube comment threads, draft AI replies and post them",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
        debug=config.api.debug,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)
    _register_routers(app)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers"""

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        """Map service errors to their HTTP status and JSON body"""
        if exc.status_code >= 500:
            logger.error(f"{exc.error_code} on {request.url.path}: {exc.message}")
        else:
            logger.warning(f"{exc.error_code} on {request.url.path}: {exc.message}")

        headers = {}
        if isinstance(exc, RateLimitExceededError) and exc.retry_after is not None:
            headers["Retry-After"] = str(int(exc.retry_after))

        return JSONResponse(
            status_code=exc.status_code,
            content=jsonable_encoder(exc.to_dict()),
            headers=headers or None,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.error(f"HTTP error: {exc.status_code} - {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail, "code": "HTTP_ERROR"},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.error(f"Validation error: {exc.errors()}")
        return JSONResponse(
            status_code=422,
            content={
                "error": "Validation Error",
                "code": "VALIDATION_ERROR",
                "details": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle all other exceptions"""
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal Server Error", "code": "INTERNAL_ERROR"},
        )


def _register_routers(app: FastAPI) -> None:
    """Register API routers"""

    @app.get("/health", tags=["System"])
    async def health_check():
        return {"status": "healthy", "version": __version__}

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API information"""
        return {
            "message": "YouTube Comment Assistant API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    app.include_router(auth_router)
    app.include_router(comment_router)
    app.include_router(reply_router)
    app.include_router(history_router)
    app.include_router(sync_router)
    app.include_router(user_router)

    logger.info("✅ API routers registered")


# ============================================================================
# Application Instance
# ============================================================================

app = create_app()


# ============================================================================
# Development Server Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    config = get_config()

    uvicorn.run(
        "yt_commenter.app.main:app",
        host=config.api.host,
        port=config.api.port,
        reload=config.api.debug,
        log_level=config.logging.level.lower(),
    )
