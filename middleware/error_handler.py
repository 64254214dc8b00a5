from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Coroutine

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.exceptions import SERVER_ERROR_MESSAGE, AppBaseException

logger = logging.getLogger(__name__)

# Routing errors raised by Starlette itself, reworded for API clients.
_HTTP_MESSAGES = {
    status.HTTP_404_NOT_FOUND: "Not found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "Method not allowed",
}


# ---------------------------------------------------------------------------
# Error Response Schema
# ---------------------------------------------------------------------------

class ErrorResponse(BaseModel):
    error: str


# ---------------------------------------------------------------------------
# Helper Utilities
# ---------------------------------------------------------------------------

def get_request_id(request: Request) -> str:
    """Return the request ID stamped by middleware, or extract/generate one."""
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        return request_id
    return (
        request.headers.get("X-Request-ID")
        or request.headers.get("X-Correlation-ID")
        or str(uuid.uuid4())
    )


def _build_response(request: Request, *, http_status: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=http_status,
        content=ErrorResponse(error=message).model_dump(),
        headers={"X-Request-ID": get_request_id(request)},
    )


def _log_error(
    request: Request,
    exc: Exception,
    *,
    level: int = logging.ERROR,
    include_traceback: bool = True,
) -> None:
    request_id = get_request_id(request)
    extra = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_host": request.client.host if request.client else "unknown",
        "exception_type": type(exc).__name__,
        "error_code": getattr(exc, "error_code", None),
    }
    logger.log(
        level,
        f"[{request_id}] {type(exc).__name__}: {exc}",
        extra=extra,
        exc_info=exc if include_traceback else None,
    )


# ---------------------------------------------------------------------------
# Optional Alert Hook (Sentry is wired in core.sentry_config)
# ---------------------------------------------------------------------------

AlertHook = Callable[[Request, Exception], Coroutine[Any, Any, None]]
_alert_hook: AlertHook | None = None


def register_alert_hook(hook: AlertHook | None) -> None:
    """Register an async callable that receives (request, exc) for server errors."""
    global _alert_hook
    _alert_hook = hook


async def _maybe_alert(request: Request, exc: Exception) -> None:
    if _alert_hook:
        try:
            await _alert_hook(request, exc)
        except Exception as hook_exc:
            logger.warning(f"Alert hook raised an exception: {hook_exc}")


# ---------------------------------------------------------------------------
# Exception Handlers
# ---------------------------------------------------------------------------

async def _handle_app_exception(request: Request, exc: AppBaseException) -> JSONResponse:
    if exc.http_status >= 500:
        _log_error(request, exc, level=logging.ERROR, include_traceback=True)
        await _maybe_alert(request, exc)
    else:
        _log_error(request, exc, level=logging.WARNING, include_traceback=False)
    return _build_response(
        request,
        http_status=exc.http_status,
        message=exc.public_message,
    )


async def _handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    _log_error(request, exc, level=logging.WARNING, include_traceback=False)
    message = _HTTP_MESSAGES.get(exc.status_code)
    if message is None:
        message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _build_response(request, http_status=exc.status_code, message=message)


async def _handle_validation_exception(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    _log_error(request, exc, level=logging.INFO, include_traceback=False)
    if any(err.get("type") == "json_invalid" for err in exc.errors()):
        message = "Invalid JSON body."
    else:
        message = "Invalid request."
    return _build_response(
        request,
        http_status=status.HTTP_400_BAD_REQUEST,
        message=message,
    )


async def handle_unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
    _log_error(request, exc, level=logging.ERROR, include_traceback=True)
    await _maybe_alert(request, exc)
    return _build_response(
        request,
        http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message=SERVER_ERROR_MESSAGE,
    )


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

def add_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers on the FastAPI application.

    Every error leaves the service as ``{"error": "<message>"}``; 5xx bodies
    never carry internal details.
    """
    app.add_exception_handler(AppBaseException, _handle_app_exception)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(RequestValidationError, _handle_validation_exception)
    app.add_exception_handler(Exception, handle_unhandled_exception)

    logger.debug("Exception handlers registered.")
