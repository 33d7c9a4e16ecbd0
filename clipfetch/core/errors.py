"""
Uniform JSON error bodies.

Every failure that happens before response headers are sent is rendered
as {"error": message}. Failures after that point can only be logged.
"""
import logging
from typing import Any, Dict, Sequence

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from clipfetch.i18n import i18n
from clipfetch.utils.locale import get_locale

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, headers: dict = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def describe_errors(errors: Sequence[Dict[str, Any]], locale: str = None) -> str:
    """First pydantic validation problem as a single readable line"""
    first = errors[0] if errors else {}
    loc = [str(part) for part in first.get("loc", ()) if part not in ("query", "body")]
    field = ".".join(loc) or "request"
    reason = str(first.get("msg", "invalid")).removeprefix("Value error, ")

    if field == "mode":
        return i18n.get("error.invalid_mode", locale=locale)
    return i18n.get("error.invalid_parameter", locale=locale, field=field, reason=reason)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    locale = get_locale(request.headers.get("accept-language"))
    return error_response(400, describe_errors(exc.errors(), locale))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Server error on {request.url.path}: {exc}")
    locale = get_locale(request.headers.get("accept-language"))
    return error_response(500, i18n.get("error.internal", locale=locale))


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
