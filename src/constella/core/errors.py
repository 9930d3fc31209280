"""Error taxonomy shared by the services and the handlers that render it."""

from __future__ import annotations

import logging
import traceback
from collections.abc import Mapping
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base exception carrying the HTTP status it maps to."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        *,
        extra: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra = dict(extra or {})


class BadRequestError(AppError):
    """Raised when a request is well formed but cannot be honoured."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(AppError):
    """Raised for missing, invalid or expired credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(AppError):
    """Raised when the caller is authenticated as the wrong kind of principal."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    """Raised for duplicate nonces, cross-merchant claims and reused nonces."""

    status_code = status.HTTP_409_CONFLICT


class UpstreamError(AppError):
    """Raised when a downstream service cannot be reached or refuses us."""

    status_code = status.HTTP_502_BAD_GATEWAY


def _error_body(message: str, extra: Mapping[str, Any] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"error": message}
    if extra:
        body.update(extra)
    return body


def _validation_details(exc: RequestValidationError) -> list[dict[str, str]]:
    details = []
    for err in exc.errors():
        # Drop the leading "body"/"query" location segment.
        location = [str(part) for part in err.get("loc", ())[1:]]
        details.append({"field": ".".join(location), "message": err.get("msg", "")})
    return details


def register_exception_handlers(app: FastAPI, *, debug: bool = False) -> None:
    """Attach handlers that normalise every error into ``{"error": ...}``."""

    @app.exception_handler(RequestValidationError)
    async def _handle_validation(_: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Validation Error", "details": _validation_details(exc)},
        )

    @app.exception_handler(AppError)
    async def _handle_app_error(_: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.extra),
        )

    @app.exception_handler(StarletteHTTPException)
    async def _handle_http_exception(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(IntegrityError)
    async def _handle_integrity(request: Request, exc: IntegrityError) -> JSONResponse:
        logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=_error_body("Conflict"),
        )

    @app.exception_handler(Exception)
    async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        body = _error_body("Internal Server Error")
        if debug:
            body["stack"] = "".join(traceback.format_exception(exc))
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)
