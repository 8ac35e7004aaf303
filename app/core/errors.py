from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(RuntimeError):
    code = "INTERNAL"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code


class ValidationFailed(AppError):
    code = "VALIDATION"
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthorized(AppError):
    code = "UNAUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED


class AIUnavailable(AppError):
    code = "AI_UNAVAILABLE"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class AIMisconfigured(AppError):
    code = "AI_MISCONFIGURED"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class InternalError(AppError):
    code = "INTERNAL"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(message: str, code: str) -> dict[str, str]:
    return {"error": message, "code": code}


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid input data"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = str(first.get("msg") or "Invalid input data")
    return f"{location}: {message}" if location else message


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("request_failed path=%s code=%s: %s", request.url.path, exc.code, exc.message)
    message = exc.message
    if isinstance(exc, InternalError):
        message = "Internal server error"
    return JSONResponse(status_code=exc.status_code, content=error_body(message, exc.code))


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    _ = request
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(_first_validation_message(exc), ValidationFailed.code),
    )


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    _ = request
    code = {
        status.HTTP_400_BAD_REQUEST: ValidationFailed.code,
        status.HTTP_401_UNAUTHORIZED: Unauthorized.code,
    }.get(exc.status_code, "HTTP_ERROR")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail), code),
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error path=%s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", InternalError.code),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
