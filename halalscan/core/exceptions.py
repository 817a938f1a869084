"""
Application Exception Handling

AppException hierarchy shared by the scan engine and the registry service,
with FastAPI integration for the registry.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class AppException(Exception):
    """
    Base application exception.

    Provides a consistent error envelope for API responses and for
    user-visible messages in the scan engine.

    Usage:
        raise AppException("Something broke", "INTERNAL_ERROR", 500)

    Error Codes:
        Input:
            - VALIDATION_ERROR (422)

        Registry:
            - PRODUCT_NOT_FOUND (404)
            - REMOTE_SERVER_ERROR (502)
            - NETWORK_ERROR (503)

        General:
            - INTERNAL_ERROR (500)
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize application exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "PRODUCT_NOT_FOUND")
            status_code: HTTP status code (default: 400)
            details: Additional error context (optional)
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        error_dict = {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp
            }
        }

        if self.details:
            error_dict["error"]["details"] = self.details

        return error_dict


class ValidationError(AppException):
    """Bad user input. Shown inline, never retried."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else None
        super().__init__(message, "VALIDATION_ERROR", 422, details)
        self.field = field


class NotFoundError(AppException):
    """The registry does not know the barcode."""

    def __init__(self, barcode: str):
        super().__init__(
            f"Product '{barcode}' is not registered",
            "PRODUCT_NOT_FOUND",
            404,
            {"barcode": barcode}
        )
        self.barcode = barcode


class NetworkError(AppException):
    """Timeout or unreachable registry. Drives the offline fallback."""

    def __init__(self, message: str = "Registry is unreachable", cause: Optional[str] = None):
        details = {"cause": cause} if cause else None
        super().__init__(message, "NETWORK_ERROR", 503, details)


class RemoteServerError(AppException):
    """Non-2xx registry response other than not-found. Retryable."""

    def __init__(self, upstream_status: int, message: Optional[str] = None):
        super().__init__(
            message or f"Registry responded with HTTP {upstream_status}",
            "REMOTE_SERVER_ERROR",
            502,
            {"upstream_status": upstream_status}
        )
        self.upstream_status = upstream_status


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    FastAPI exception handler for AppException.

    Converts AppException to consistent JSON error response.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render FastAPI body validation failures in the AppException envelope."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:]) or None

    error = ValidationError(first.get("msg", "Invalid request"), field)
    error.details["errors"] = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in errors
    ]
    return await app_exception_handler(request, error)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)


# ============================================
# CONVENIENCE FACTORY FUNCTIONS
# ============================================

def product_not_found(barcode: str) -> NotFoundError:
    """Create product not found exception."""
    return NotFoundError(barcode)


def registry_timeout(timeout_seconds: float) -> NetworkError:
    """Create timeout network error."""
    return NetworkError(
        f"Registry did not answer within {timeout_seconds:g}s",
        cause="timeout"
    )


def registry_unreachable(cause: str) -> NetworkError:
    """Create unreachable network error."""
    return NetworkError("Registry is unreachable", cause=cause)
