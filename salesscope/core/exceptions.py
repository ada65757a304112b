"""
Custom exception handlers for consistent API error responses.

This module provides the HTTP-facing exceptions raised by services and the
handlers that turn domain exceptions into structured JSON responses.
"""

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


class APIError(HTTPException):
    """Base API error with consistent structure"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code


class NotFoundError(APIError):
    """Resource not found error"""

    def __init__(
        self, detail: str = "Resource not found", error_code: str = "NOT_FOUND"
    ):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND, detail=detail, error_code=error_code
        )


class ValidationError(APIError):
    """Validation error"""

    def __init__(
        self, detail: str = "Validation failed", error_code: str = "VALIDATION_ERROR"
    ):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code,
        )


class AuthenticationError(APIError):
    """Authentication error"""

    def __init__(
        self, detail: str = "Authentication failed", error_code: str = "AUTH_FAILED"
    ):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code=error_code,
            headers={"WWW-Authenticate": "Bearer"},
        )


async def handle_value_error(request: Request, exc: ValueError) -> JSONResponse:
    """Convert ValueError to consistent API response"""
    logger.warning(f"ValueError at {request.url.path}: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": str(exc),
            "error_code": "VALIDATION_ERROR",
            "path": str(request.url.path),
        },
    )


async def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    """Handle custom API errors"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "error_code": exc.error_code,
            "path": str(request.url.path),
        },
        headers=exc.headers,
    )


async def handle_dataset_error(request: Request, exc) -> JSONResponse:
    """Convert ingestion failures into 400 (bad input) or 500 (persistence)"""
    from salesscope.modules.datasets.exceptions import IngestionPersistError

    if isinstance(exc, IngestionPersistError):
        logger.error(f"Ingestion failed at {request.url.path}: {exc.message}")
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        logger.warning(f"Rejected upload at {request.url.path}: {exc.message}")
        status_code = status.HTTP_400_BAD_REQUEST

    return JSONResponse(
        status_code=status_code,
        content={
            "detail": exc.message,
            "error_code": exc.error_code,
            "details": exc.details,
            "path": str(request.url.path),
        },
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app"""
    from salesscope.modules.datasets.exceptions import DatasetBaseException

    app.add_exception_handler(ValueError, handle_value_error)
    app.add_exception_handler(APIError, handle_api_error)
    app.add_exception_handler(DatasetBaseException, handle_dataset_error)
