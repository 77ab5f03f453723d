"""
Standardized error response system.

Provides consistent error responses across all API endpoints.
"""
import uuid
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from clientdesk.core.exceptions import (
    ClientDeskError,
    InvalidArgumentError,
    InvalidCredentialsError,
    NotFoundError,
    TooManyAttemptsError,
)


class ErrorCode:
    """Standard error codes."""

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    INVALID_PASSWORD = "INVALID_PASSWORD"

    # Authentication/Authorization
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    TOO_MANY_ATTEMPTS = "TOO_MANY_ATTEMPTS"
    INVALID_TOKEN = "INVALID_TOKEN"

    # Resource errors
    NOT_FOUND = "NOT_FOUND"
    EMAIL_ALREADY_TAKEN = "EMAIL_ALREADY_TAKEN"

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse:
    """Standard error response format."""

    @staticmethod
    def create(
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None,
    ) -> JSONResponse:
        """
        Create a standardized error response.

        Args:
            code: Machine-readable error code
            message: Human-readable error message
            status_code: HTTP status code
            details: Additional error details (optional)
            request_id: Request correlation ID (optional)

        Returns:
            JSONResponse with standard error format
        """
        error_data: Dict[str, Any] = {
            "error": {
                "code": code,
                "message": message,
            }
        }

        if details:
            error_data["error"]["details"] = details

        if request_id:
            error_data["error"]["request_id"] = request_id

        return JSONResponse(status_code=status_code, content=error_data)


class HTTPError(HTTPException):
    """
    Enhanced HTTPException with standard error response format.

    Usage:
        raise HTTPError(
            status_code=404,
            code=ErrorCode.NOT_FOUND,
            message="Customer not found",
            details={"id": "..."}
        )
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(status_code=status_code, detail=message)


async def http_error_handler(request: Request, exc: HTTPError) -> JSONResponse:
    """
    Handle HTTPError exceptions and return standardized error response.

    This should be added to FastAPI exception handlers.
    """
    request_id = getattr(request.state, "request_id", str(uuid.uuid4()))

    return ErrorResponse.create(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        request_id=request_id,
    )


async def domain_error_handler(request: Request, exc: ClientDeskError) -> JSONResponse:
    """Translate core exceptions that reach the app boundary untouched."""
    return await http_error_handler(request, from_domain_error(exc))


def from_domain_error(exc: ClientDeskError) -> HTTPError:
    """Map a core exception onto its transport-level error."""
    if isinstance(exc, TooManyAttemptsError):
        return forbidden(
            exc.message,
            code=ErrorCode.TOO_MANY_ATTEMPTS,
            details={"attempts": exc.attempts, "limit_just_reached": exc.just_reached},
        )
    if isinstance(exc, InvalidCredentialsError):
        return unauthorized(exc.message, code=ErrorCode.INVALID_CREDENTIALS)
    if isinstance(exc, InvalidArgumentError):
        details = {"field": exc.field} if exc.field else None
        return HTTPError(
            status_code=status.HTTP_400_BAD_REQUEST,
            code=ErrorCode.INVALID_ARGUMENT,
            message=exc.message,
            details=details,
        )
    if isinstance(exc, NotFoundError):
        return not_found(exc.resource, details={"id": exc.identifier})
    return internal_error()


# Convenience functions for common errors

def not_found(resource: str, details: Optional[Dict[str, Any]] = None) -> HTTPError:
    """Create a 404 NOT_FOUND error."""
    return HTTPError(
        status_code=status.HTTP_404_NOT_FOUND,
        code=ErrorCode.NOT_FOUND,
        message=f"{resource} not found",
        details=details,
    )


def unauthorized(
    message: str = "Unauthorized",
    details: Optional[Dict[str, Any]] = None,
    code: str = ErrorCode.UNAUTHORIZED,
) -> HTTPError:
    """Create a 401 error."""
    return HTTPError(
        status_code=status.HTTP_401_UNAUTHORIZED,
        code=code,
        message=message,
        details=details,
    )


def forbidden(
    message: str = "Forbidden",
    details: Optional[Dict[str, Any]] = None,
    code: str = ErrorCode.FORBIDDEN,
) -> HTTPError:
    """Create a 403 error."""
    return HTTPError(
        status_code=status.HTTP_403_FORBIDDEN,
        code=code,
        message=message,
        details=details,
    )


def validation_error(message: str, details: Optional[Dict[str, Any]] = None) -> HTTPError:
    """Create a 400 VALIDATION_ERROR error."""
    return HTTPError(
        status_code=status.HTTP_400_BAD_REQUEST,
        code=ErrorCode.VALIDATION_ERROR,
        message=message,
        details=details,
    )


def invalid_password(message: str = "Password confirmation mismatched") -> HTTPError:
    """Create a 403 INVALID_PASSWORD error."""
    return forbidden(message, code=ErrorCode.INVALID_PASSWORD)


def conflict(message: str, details: Optional[Dict[str, Any]] = None) -> HTTPError:
    """Create a 409 EMAIL_ALREADY_TAKEN error."""
    return HTTPError(
        status_code=status.HTTP_409_CONFLICT,
        code=ErrorCode.EMAIL_ALREADY_TAKEN,
        message=message,
        details=details,
    )


def internal_error(message: str = "Internal server error", details: Optional[Dict[str, Any]] = None) -> HTTPError:
    """Create a 500 INTERNAL_ERROR error."""
    return HTTPError(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code=ErrorCode.INTERNAL_ERROR,
        message=message,
        details=details,
    )
