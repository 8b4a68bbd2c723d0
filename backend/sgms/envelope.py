"""Uniform response envelope and boundary exception handlers.

Every response body has the shape ``{success, message?, data?, error?}``; list
endpoints add ``pagination``. Errors carry the stable domain code in ``error``.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .domain_errors import (
    ConflictError,
    DomainError,
    InternalError,
    ServiceUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_HTTP_ERROR_CODES = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    429: "TOO_MANY_REQUESTS",
}


def success_envelope(
    data: Any = None,
    *,
    message: str | None = None,
    pagination: Any = None,
    keep_null_data: bool = False,
) -> dict[str, Any]:
    """Build a success body; optional keys are omitted when not provided.

    With ``keep_null_data`` a ``None`` payload is still sent as ``"data": null``.
    """
    payload: dict[str, Any] = {"success": True}
    if message is not None:
        payload["message"] = message
    if data is not None or keep_null_data:
        payload["data"] = data
    if pagination is not None:
        payload["pagination"] = pagination
    return payload


def build_error_response(exc: DomainError, *, headers: dict[str, str] | None = None) -> JSONResponse:
    """Render DomainError as an envelope with its stable domain code."""
    payload: dict[str, Any] = {
        "success": False,
        "message": exc.message,
        "error": exc.code,
    }
    if exc.details is not None:
        payload["details"] = exc.details

    return JSONResponse(
        status_code=exc.http_status,
        content=jsonable_encoder(payload),
        headers=headers,
    )


async def _handle_domain_error(_: Request, exc: DomainError) -> JSONResponse:
    return build_error_response(exc)


_REQUEST_SOURCES = ("body", "query", "path", "form", "header", "cookie")


def _field_name(loc) -> str:
    parts = list(loc)
    if parts and parts[0] in _REQUEST_SOURCES:
        parts = parts[1:]
    return ".".join(str(part) for part in parts)


async def _handle_request_validation(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": _field_name(err.get("loc", ())),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return build_error_response(ValidationError("Validation failed", details={"errors": errors}))


async def _handle_http_exception(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = _HTTP_ERROR_CODES.get(exc.status_code, "INTERNAL_ERROR" if exc.status_code >= 500 else "HTTP_ERROR")
    error = DomainError(code=code, http_status=exc.status_code, message=str(exc.detail))
    return build_error_response(error, headers=getattr(exc, "headers", None))


async def _handle_integrity_error(_: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("Store constraint violation: %s", exc.orig)
    return build_error_response(ConflictError("Database constraint violation"))


async def _handle_pool_timeout(_: Request, exc: PoolTimeoutError) -> JSONResponse:
    logger.error("Database connection pool exhausted: %s", exc)
    return build_error_response(ServiceUnavailableError())


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    details = None
    if settings.DEBUG and not settings.is_production:
        details = {"exception": str(exc)}
    return build_error_response(InternalError("Server error", details=details))


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain, validation and store failures to envelope responses."""
    app.add_exception_handler(DomainError, _handle_domain_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(IntegrityError, _handle_integrity_error)
    app.add_exception_handler(PoolTimeoutError, _handle_pool_timeout)
    app.add_exception_handler(Exception, _handle_unexpected)
