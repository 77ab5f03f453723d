"""Custom middleware for request tracking and error handling."""

import logging
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


class RequestValidationMiddleware(BaseHTTPMiddleware):
    """Middleware for request validation and tracing.

    Enforces:
    - Request size limits
    - Content-Type validation for POST/PUT/PATCH
    - Request ID generation and log context binding
    """

    def __init__(
        self,
        app: ASGIApp,
        max_request_size: int = 1024 * 1024,
        enforce_content_type: bool = True,
    ) -> None:
        super().__init__(app)
        self.max_request_size = max_request_size
        self.enforce_content_type = enforce_content_type

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit():
            size = int(content_length)
            if size > self.max_request_size:
                logger.warning("Request too large: %d bytes", size)
                return JSONResponse(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    content={
                        "error": {
                            "code": "REQUEST_TOO_LARGE",
                            "message": f"Request too large. Maximum size is {self.max_request_size} bytes",
                            "request_id": request_id,
                        }
                    },
                )

        if self.enforce_content_type and request.method in {"POST", "PUT", "PATCH"}:
            content_type = request.headers.get("content-type", "")
            # Bodiless POSTs (e.g. unlock) carry no content type
            if content_length not in (None, "0") and not content_type.startswith("application/json"):
                logger.warning("Invalid Content-Type: %s", content_type)
                return JSONResponse(
                    status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
                    content={
                        "error": {
                            "code": "INVALID_CONTENT_TYPE",
                            "message": "Content-Type must be application/json",
                            "request_id": request_id,
                        }
                    },
                )

        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()
        response.headers["X-Request-ID"] = request_id
        return response


class ErrorResponseMiddleware(BaseHTTPMiddleware):
    """Middleware to standardize responses for unexpected errors.

    Catches exceptions that escaped the exception handlers and returns the
    standard error envelope.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            request_id = getattr(request.state, "request_id", "unknown")
            logger.exception(f"Request error: {request.method} {request.url.path}")

            from sqlalchemy.exc import IntegrityError, OperationalError

            status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
            code = "INTERNAL_ERROR"
            message = "An unexpected error occurred"

            if isinstance(e, IntegrityError):
                status_code = status.HTTP_409_CONFLICT
                code = "CONFLICT"
                message = "Data integrity error (duplicate or missing reference)"
            elif isinstance(e, OperationalError):
                status_code = status.HTTP_503_SERVICE_UNAVAILABLE
                code = "SERVICE_UNAVAILABLE"
                message = "Database operation failed"

            return JSONResponse(
                content={
                    "error": {
                        "code": code,
                        "message": message,
                        "request_id": request_id,
                    }
                },
                status_code=status_code,
            )
