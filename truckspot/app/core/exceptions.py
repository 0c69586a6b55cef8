"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger("truckspot.errors")


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class LocationValidationError(AppException):
    """Raised when a location report has missing or sentinel coordinates."""

    def __init__(self, message: str = "Latitude and longitude are required", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="ERR_LOCATION_INVALID",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
        )


class InsufficientPermissionsError(AppException):
    """Raised when user doesn't have permission to perform an action."""

    def __init__(self, message: str = "Insufficient permissions", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details,
        )


class CustomerReportsDisabledError(InsufficientPermissionsError):
    """Raised when a truck does not accept customer location reports."""

    def __init__(self, truck_id: Any = None):
        super().__init__(
            message="Customer location reports are not allowed for this truck",
            details={"truck_id": truck_id},
        )
        self.error_code = "ERR_PERM_REPORTS_DISABLED"


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id},
        )


class TrackingSessionConflictError(AppException):
    """Raised when starting live tracking while a session is already active."""

    def __init__(self, truck_id: Any, session_id: str):
        super().__init__(
            message="Live tracking is already active for this truck",
            error_code="ERR_TRACKING_ACTIVE",
            status_code=status.HTTP_409_CONFLICT,
            details={"truck_id": truck_id, "session_id": session_id},
        )


class TrackingSessionRequiredError(AppException):
    """Raised when a live GPS ping arrives without an active tracking session."""

    def __init__(self, truck_id: Any):
        super().__init__(
            message="Start live tracking before sending GPS updates",
            error_code="ERR_TRACKING_REQUIRED",
            status_code=status.HTTP_409_CONFLICT,
            details={"truck_id": truck_id},
        )


class ServiceUnavailableError(AppException):
    """Raised for transient persistence failures. Safe to retry."""

    def __init__(self, message: str = "Location storage is temporarily unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="ERR_UNAVAILABLE",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=details,
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER",
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {},
        },
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": jsonable_errors(exc),
            },
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may carry the raw ValueError instance
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {},
        },
    )
