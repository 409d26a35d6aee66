"""CloudX FastAPI application entry point."""

from __future__ import annotations

import asyncio
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cloudx import __version__
from cloudx.config import get_settings
from cloudx.db import close_db, init_db
from cloudx.errors import CloudXError, InternalError, ValidationError

logger = structlog.get_logger()


def _ensure_storage_dirs() -> None:
    storage = get_settings().storage
    storage.root.mkdir(parents=True, exist_ok=True)
    storage.staging_root.mkdir(parents=True, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    settings = get_settings()
    logger.info("cloudx.startup", version=__version__)

    if settings.uses_default_master_key:
        logger.warning(
            "cloudx.default_master_key",
            hint="Set MASTER_KEY or CLOUDX_SECURITY__MASTER_KEY before exposing this server",
        )

    await init_db()
    await asyncio.to_thread(_ensure_storage_dirs)
    logger.info("cloudx.storage_ready", root=str(settings.storage.root))

    yield

    # Shutdown
    logger.info("cloudx.shutdown")
    await close_db()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title="CloudX API",
        description="Multi-tenant object storage over a local filesystem",
        version=__version__,
        lifespan=lifespan,
    )

    # Request ID middleware
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Add request ID to all requests."""
        request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-Id"] = request_id
        return response

    # Error handlers
    @app.exception_handler(CloudXError)
    async def cloudx_error_handler(request: Request, exc: CloudXError):
        """Handle CloudX errors with consistent format."""
        request_id = getattr(request.state, "request_id", None)
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(request_id),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Render malformed bodies and params in the CloudX envelope."""
        request_id = getattr(request.state, "request_id", None)
        error = ValidationError(
            "Invalid request",
            details={"errors": jsonable_encoder(exc.errors())},
        )
        return JSONResponse(
            status_code=error.status_code,
            content=error.to_dict(request_id),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        request_id = getattr(request.state, "request_id", None)
        logger.exception(
            "cloudx.unhandled_error",
            request_id=request_id,
            path=request.url.path,
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content=InternalError().to_dict(request_id),
        )

    # Health check
    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint (no authentication)."""
        return {"status": "ok", "service": "CloudX API"}

    # Import and register API routers
    from cloudx.api.v1 import router as v1_router

    app.include_router(v1_router, prefix="/api/v1")

    return app


# Create default app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "cloudx.main:app",
        host=settings.server.host,
        port=settings.server.port,
    )
