"""Error taxonomy shared by the domain layer and its HTTP mapping."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

GENERIC_INTERNAL_MESSAGE = "internal server error"


class DropoffError(Exception):
    """Base class for failures that are reported to callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal"

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidInputError(DropoffError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_input"


class UnauthorizedError(DropoffError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"


class NotFoundError(DropoffError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConflictError(DropoffError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class RateLimitedError(DropoffError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "rate_limited"

    def __init__(self, message: str = "rate limited", *, retry_after: int = 1) -> None:
        super().__init__(message)
        self.retry_after = max(1, retry_after)


class InternalError(DropoffError):
    """Wraps persistence or signing failures; the cause stays on ``__cause__``."""


def error_body(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"code": code, "message": message}
    if details:
        body["details"] = details
    return {"error": body}


def register_exception_handlers(app: FastAPI, *, expose_internal_details: bool) -> None:
    """Map domain errors, validation failures and unexpected exceptions to JSON responses.

    Internal failure detail is only echoed back when ``expose_internal_details``
    is set, which the application does outside production.
    """

    async def handle_dropoff_error(request: Request, exc: DropoffError) -> JSONResponse:
        headers: dict[str, str] = {}
        message = exc.message
        details = exc.details
        if isinstance(exc, UnauthorizedError):
            headers["WWW-Authenticate"] = "Bearer"
        elif isinstance(exc, RateLimitedError):
            headers["Retry-After"] = str(exc.retry_after)
        elif isinstance(exc, InternalError):
            logger.error(
                "internal error on %s %s: %s",
                request.method,
                request.url.path,
                exc.message,
                exc_info=exc.__cause__ or exc,
            )
            if not expose_internal_details:
                message, details = GENERIC_INTERNAL_MESSAGE, {}
            elif exc.__cause__ is not None:
                details = {**details, "cause": repr(exc.__cause__)}
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.code, message, details),
            headers=headers or None,
        )

    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {
                "field": ".".join(str(item) for item in err.get("loc", []) if item != "body"),
                "message": err.get("msg"),
            }
            for err in exc.errors()
        ]
        message = ", ".join(f"{item['field']}: {item['message']}" for item in errors) or "invalid request"
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body(InvalidInputError.code, message, {"errors": errors}),
        )

    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        details = {"cause": repr(exc)} if expose_internal_details else None
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(InternalError.code, GENERIC_INTERNAL_MESSAGE, details),
        )

    app.add_exception_handler(DropoffError, handle_dropoff_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
