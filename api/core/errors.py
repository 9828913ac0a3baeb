"""
Domain errors and their HTTP mapping.

Services raise these instead of `HTTPException` so they stay usable outside
a request (seed script, tests). `install_error_handlers` turns them into
`{"message": ...}` JSON bodies.
"""

from __future__ import annotations

import logging

import pydantic
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class AppError(RuntimeError):
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def validation_message(errors: list[dict]) -> str:
    """
    Turn pydantic's error list into one human-readable sentence.
    """
    if not errors:
        return "Invalid request."

    first = errors[0]
    msg = str(first.get("msg") or "Invalid value")
    # Custom validators raise ValueError; pydantic prefixes those.
    if msg.startswith("Value error, "):
        return msg[len("Value error, "):]

    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "form")]
    if loc:
        return f"{'.'.join(loc)}: {msg}"
    return msg


async def _app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    return _message(exc.status_code, exc.message)


async def _request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return _message(status.HTTP_400_BAD_REQUEST, validation_message(list(exc.errors())))


async def _pydantic_validation_handler(_: Request, exc: pydantic.ValidationError) -> JSONResponse:
    return _message(status.HTTP_400_BAD_REQUEST, validation_message(list(exc.errors())))


async def _http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _message(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(pydantic.ValidationError, _pydantic_validation_handler)
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_handler)
