"""Application error type and the exception handlers that render the error envelope."""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from squadline.core.serialization import SafeJSONResponse

logger = logging.getLogger(__name__)

# Fallback machine codes for HTTPExceptions raised without an ApiError.
STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "RESOURCE_NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    415: "UNSUPPORTED_MEDIA_TYPE",
    422: "VALIDATION_ERROR",
    429: "RATE_LIMITED",
}


class ApiError(Exception):
    """Typed application error: message for the client, HTTP status and machine code."""

    def __init__(self, message: str, status_code: int = 500, code: str = "INTERNAL_ERROR") -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code

    def __repr__(self) -> str:
        return f"ApiError({self.status_code}, {self.code!r}, {self.message!r})"


def missing_credentials() -> ApiError:
    return ApiError("Email and password are required", status.HTTP_400_BAD_REQUEST, "MISSING_CREDENTIALS")


def invalid_credentials() -> ApiError:
    # Same message for unknown email and wrong password.
    return ApiError("Invalid email or password", status.HTTP_401_UNAUTHORIZED, "INVALID_CREDENTIALS")


def unauthorized(message: str = "Authentication required") -> ApiError:
    return ApiError(message, status.HTTP_401_UNAUTHORIZED, "UNAUTHORIZED")


def token_expired() -> ApiError:
    return ApiError(
        "Your session has expired, please log in again",
        status.HTTP_401_UNAUTHORIZED,
        "TOKEN_EXPIRED",
    )


def forbidden() -> ApiError:
    return ApiError(
        "You do not have the necessary permissions to perform this action",
        status.HTTP_403_FORBIDDEN,
        "FORBIDDEN",
    )


def not_found(what: str = "Resource") -> ApiError:
    return ApiError(f"{what} not found", status.HTTP_404_NOT_FOUND, "RESOURCE_NOT_FOUND")


def conflict(message: str, code: str = "CONFLICT") -> ApiError:
    return ApiError(message, status.HTTP_409_CONFLICT, code)


def auth_failure() -> ApiError:
    return ApiError(
        "Authentication failed due to an internal error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "AUTH_FAILURE",
    )


def error_envelope(message: str, code: str) -> dict[str, Any]:
    """Uniform error body: {success: false, error: {message, code}}."""
    return {"success": False, "error": {"message": message, "code": code}}


def _error_response(
    status_code: int,
    message: str,
    code: str,
    headers: dict[str, str] | None = None,
) -> SafeJSONResponse:
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer", **(headers or {})}
    return SafeJSONResponse(
        status_code=status_code,
        content=error_envelope(message, code),
        headers=headers,
    )


async def api_error_handler(request: Request, exc: ApiError) -> SafeJSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s (%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.code,
        )
    else:
        logger.info(
            "%s %s -> %s %s",
            request.method,
            request.url.path,
            exc.status_code,
            exc.code,
        )
    return _error_response(exc.status_code, exc.message, exc.code)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> SafeJSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    code = STATUS_CODES.get(exc.status_code, "INTERNAL_ERROR")
    return _error_response(exc.status_code, message, code, getattr(exc, "headers", None))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> SafeJSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    if field:
        message = f"{field}: {message}"
    logger.info("Validation failed for %s %s: %s", request.method, request.url.path, message)
    return _error_response(status.HTTP_400_BAD_REQUEST, message, "VALIDATION_ERROR")


async def unhandled_exception_handler(request: Request, exc: Exception) -> SafeJSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        "INTERNAL_ERROR",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Route every failure through one translation layer into the error envelope."""
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
