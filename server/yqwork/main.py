from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional
import time
import logging

from yqwork.core.config import Settings, settings as default_settings
from yqwork.core.database import Database
from yqwork.core.error_handling import domain_exception_handler
from yqwork.core.exceptions import YqworkError
from yqwork.core.logging_config import setup_logging
from yqwork.api.v1.router import api_router

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("access")


def _clean_field(field: str) -> str:
    return field.replace("body.", "").replace("query.", "").replace("path.", "")


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return detailed validation errors to help users fix their input."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        message = error["msg"]
        error_type = error["type"]

        if error_type == "missing":
            message = f"{_clean_field(field)} is required"
        elif error_type == "value_error":
            message = f"{_clean_field(field)}: {message}"

        errors.append({
            "field": _clean_field(field),
            "message": message,
            "type": error_type,
        })

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Validation error",
            "errors": errors,
            "message": "Please check your input and try again.",
        }
    )


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    configure_logging: bool = True,
) -> FastAPI:
    """
    Build the API application.

    ``database`` defaults to one built from ``settings.DATABASE_URL``; the
    app owns it and disposes it on shutdown.
    """
    settings = settings or default_settings
    if configure_logging:
        setup_logging(settings)
    database = database or Database(settings.async_database_url, echo=settings.SQL_ECHO)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info("Starting yqwork API server...")
        # Tables are created via Alembic migrations
        yield
        # Shutdown
        logger.info("Shutting down yqwork API server...")
        await app.state.database.dispose()

    app = FastAPI(
        title="yqwork API",
        description="Student organisation work-hour declaration and approval API",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.database = database
    app.state.settings = settings

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        try:
            response = await call_next(request)
            process_time = time.time() - start_time
            access_logger.info(
                f"{request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Duration: {process_time:.3f}s - "
                f"Client: {request.client.host if request.client else 'unknown'}"
            )
            return response
        except Exception:
            process_time = time.time() - start_time
            logger.error(
                f"Unhandled exception in {request.method} {request.url.path}",
                exc_info=True,
                extra={
                    "method": request.method,
                    "path": str(request.url.path),
                    "client": request.client.host if request.client else 'unknown',
                    "duration": f"{process_time:.3f}s"
                }
            )
            raise

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(YqworkError, domain_exception_handler)

    # Include routers
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        logger.debug("Health check requested")
        return {"status": "healthy"}

    return app
