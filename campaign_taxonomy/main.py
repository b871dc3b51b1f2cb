"""
FastAPI application entry point for the Campaign Taxonomy Validator.

This module provides:
- FastAPI application setup with middleware
- CORS configuration for web clients
- Prometheus metrics endpoint
- Validation and platform rules route integration
- Global exception handling
"""

# Load environment variables BEFORE any other imports
from pathlib import Path
from dotenv import load_dotenv

# Find and load .env file from project root
project_root = Path(__file__).parent.parent
env_file = project_root / ".env"
if env_file.exists():
    load_dotenv(env_file)

import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .core.config import settings
from .core.logging import (
    create_request_id,
    get_logger,
    performance_logger,
    setup_logging,
    with_logging_context,
)
from .observability.metrics import metrics, get_metrics_response
from .services.validator import get_validator
from .api.routes import router as api_router
from .api.platform_rules import router as platform_rules_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown tasks."""
    logger = get_logger("app.lifespan")

    # Startup
    logger.info("Starting Campaign Taxonomy Validator")

    try:
        validator = get_validator()
        logger.info("Schema registry ready", platforms=validator.list_platforms())

        metrics.app_info.info({
            'version': settings.app.version,
            'environment': settings.app.environment,
            'name': settings.app.app_name
        })

        logger.info("Application startup completed successfully")

    except Exception as e:
        logger.error("Failed to initialize application", error=str(e))
        raise

    yield

    logger.info("Shutting down Campaign Taxonomy Validator")


def create_application() -> FastAPI:
    """Create and configure FastAPI application."""

    # Initialize logging first
    setup_logging()
    logger = get_logger("app")

    app = FastAPI(
        title="Campaign Taxonomy Validator API",
        description="Validates advertising campaign names against platform naming conventions",
        version=settings.app.version,
        debug=settings.app.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.app.is_development else None,
        redoc_url="/redoc" if settings.app.is_development else None
    )

    setup_middleware(app)

    app.include_router(api_router, prefix="/api/v1")
    app.include_router(platform_rules_router, prefix="/api/v1")

    @app.get("/metrics", response_class=Response)
    async def metrics_endpoint():
        """Prometheus metrics endpoint."""
        content, headers = get_metrics_response()
        return Response(content=content, headers=headers)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions."""
        logger = get_logger("app.error")

        with with_logging_context(request_id=getattr(request.state, 'request_id', None)):
            logger.error(
                "Unhandled exception in request",
                path=request.url.path,
                method=request.method,
                error=str(exc),
                exc_info=True
            )

        metrics.track_request(
            method=request.method,
            endpoint=request.url.path,
            status_code=500,
            duration=0,
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": "An unexpected error occurred",
                "request_id": getattr(request.state, 'request_id', None)
            }
        )

    logger.info(
        "FastAPI application created",
        version=settings.app.version,
        environment=settings.app.environment,
        debug=settings.app.debug
    )

    return app


def setup_middleware(app: FastAPI):
    """Configure application middleware."""
    logger = get_logger("app.middleware")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.app.is_development else settings.app.cors_origins,
        allow_credentials=not settings.app.is_development,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=[
            "Accept",
            "Accept-Language",
            "Content-Language",
            "Content-Type",
            "X-Request-ID",
        ]
    )

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Add request ID and logging context."""
        request_id = request.headers.get("X-Request-ID") or create_request_id()
        request.state.request_id = request_id

        start_time = time.time()

        with with_logging_context(request_id=request_id):
            logger = get_logger("app.request")

            logger.info(
                "Request started",
                method=request.method,
                path=request.url.path,
                query=str(request.query_params) if request.query_params else None,
                client_ip=request.client.host if request.client else None
            )

            try:
                response = await call_next(request)

                duration = time.time() - start_time

                performance_logger.log_api_access(
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    response_time=round(duration, 3),
                )

                metrics.track_request(
                    method=request.method,
                    endpoint=request.url.path,
                    status_code=response.status_code,
                    duration=duration
                )

                response.headers["X-Request-ID"] = request_id

                return response

            except Exception as exc:
                duration = time.time() - start_time

                logger.error(
                    "Request failed with exception",
                    error=str(exc),
                    duration_seconds=round(duration, 3),
                    exc_info=True
                )

                metrics.track_request(
                    method=request.method,
                    endpoint=request.url.path,
                    status_code=500,
                    duration=duration
                )

                raise

    logger.info("Middleware configuration completed")


# Create application instance
app = create_application()


def main():
    """Run the application with Uvicorn."""
    uvicorn.run(
        "campaign_taxonomy.main:app",
        host=settings.app.api_host,
        port=settings.app.api_port,
        workers=settings.app.api_workers,
        reload=settings.app.is_development,
        log_level=settings.app.log_level.lower(),
        access_log=True,
        server_header=False,
        date_header=False,
    )


if __name__ == "__main__":
    main()
