"""
Standardized error handling utilities for API endpoints.
"""
from functools import wraps
from typing import Callable, Any
import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from yqwork.core.config import settings
from yqwork.core.exceptions import (
    YqworkError,
    PermissionDenied,
    NotFound,
    IllegalTransition,
    Conflict,
    InfrastructureError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    PermissionDenied: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    IllegalTransition: status.HTTP_400_BAD_REQUEST,
    Conflict: status.HTTP_409_CONFLICT,
    InfrastructureError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(exc: YqworkError) -> int:
    for error_type, code in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def domain_exception_handler(request: Request, exc: YqworkError) -> JSONResponse:
    """Render a domain exception as ``{"detail": message}``."""
    code = status_for(exc)
    detail = exc.message
    if code >= 500:
        logger.error(f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.message}")
        if settings.is_production:
            detail = "An unexpected error occurred while processing your request. Please try again later."
    return JSONResponse(status_code=code, content={"detail": detail})


async def rollback_and_raise(db: AsyncSession, operation: str, error: SQLAlchemyError):
    """Roll back the session and re-raise a storage failure as InfrastructureError."""
    logger.error(f"Storage error during {operation}", exc_info=True)
    await db.rollback()
    raise InfrastructureError(f"Storage error during {operation}") from error


def handle_endpoint_errors(
    operation_name: str = None,
    log_error: bool = True,
):
    """
    Decorator to standardize error handling across all endpoints.

    Domain errors and HTTPExceptions pass through untouched (the app's
    exception handlers render them); ValueError becomes 400 and anything
    else becomes 500.

    Usage:
        @handle_endpoint_errors(operation_name="submit_work_hour_record")
        async def submit_endpoint(...):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            op_name = operation_name or func.__name__
            try:
                return await func(*args, **kwargs)
            except (HTTPException, YqworkError):
                raise
            except ValueError as e:
                if log_error:
                    logger.warning(f"Value error in {op_name}: {str(e)}")
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Invalid input: {str(e)}",
                )
            except Exception as e:
                error_type = type(e).__name__
                if log_error:
                    logger.error(
                        f"Unexpected error in {op_name}",
                        exc_info=True,
                        extra={
                            "operation": op_name,
                            "error": str(e),
                            "error_type": error_type,
                        }
                    )

                if settings.is_production:
                    detail_msg = "An unexpected error occurred while processing your request. Please try again later."
                else:
                    detail_msg = f"Error in {op_name}: {error_type}: {str(e)}"

                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=detail_msg,
                )
        return wrapper
    return decorator
