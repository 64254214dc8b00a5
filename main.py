from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from config import API_VERSION, Settings, settings
from core.logging_config import setup_logging
from core.sentry_config import init_sentry
from dependencies.storage import build_store
from middleware.body_limit import BodySizeLimitMiddleware
from middleware.cors_headers import CORSHeadersMiddleware
from middleware.error_handler import (
    add_exception_handlers,
    get_request_id,
    handle_unhandled_exception,
)
from routes import health, predictions
from services.storage import PredictionStore

# ---------------------------------------------------------------------------
# Logging: configure first so every subsequent module can emit structured logs
# ---------------------------------------------------------------------------

setup_logging(level=settings.log_level, json_output=settings.log_json, log_file=settings.log_file)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Observability
# ---------------------------------------------------------------------------

init_sentry(settings.sentry_dsn, settings.environment)


# ---------------------------------------------------------------------------
# Application Lifecycle
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    app_settings: Settings = app.state.settings
    logger.info(
        "MLB Predictions API starting",
        extra={
            "variant": app_settings.api_variant,
            "environment": app_settings.environment,
            "version": API_VERSION,
            "store": app.state.store.name,
        },
    )
    yield
    logger.info("MLB Predictions API shutting down")


# ---------------------------------------------------------------------------
# Application Factory
# ---------------------------------------------------------------------------


def create_app(
    app_settings: Settings | None = None,
    store: PredictionStore | None = None,
) -> FastAPI:
    """
    Build the API for one deployment.

    ``app_settings.api_variant`` picks the surface: ``"local"`` serves
    GET/POST/DELETE from a file with permissive CORS, ``"remote"`` serves
    GET/POST/OPTIONS from GitHub with fixed CORS headers on every response.
    A ``store`` passed in replaces the one the settings would build.
    """
    app_settings = app_settings or settings
    production = app_settings.environment == "production"

    application = FastAPI(
        title="MLB Predictions API",
        description=(
            "Collects each entrant's 15 AL and 15 NL team picks "
            "and serves the full prediction board."
        ),
        version=API_VERSION,
        docs_url=None if production else "/docs",
        redoc_url=None if production else "/redoc",
        lifespan=lifespan,
    )
    application.state.settings = app_settings
    application.state.store = store or build_store(app_settings)

    # -------------------------------------------------------------------
    # Middleware  (last added = outermost)
    #
    #   Request:  CORS -> request context -> body limit -> route
    # -------------------------------------------------------------------

    application.add_middleware(BodySizeLimitMiddleware, max_size=app_settings.max_body_bytes)

    # Request timing and correlation-ID propagation. Unexpected exceptions are
    # turned into the opaque 500 here, inside CORS, so they keep CORS headers.
    async def request_context_middleware(request: Request, call_next):
        start = time.perf_counter()
        request_id = get_request_id(request)
        request.state.request_id = request_id
        try:
            response = await call_next(request)
        except Exception as exc:
            response = await handle_unhandled_exception(request, exc)
        duration_ms = (time.perf_counter() - start) * 1_000
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "Request completed",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "request_id": request_id,
            },
        )
        return response

    application.add_middleware(BaseHTTPMiddleware, dispatch=request_context_middleware)

    if app_settings.is_remote:
        application.add_middleware(CORSHeadersMiddleware)
    else:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # -------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------

    add_exception_handlers(application)

    # -------------------------------------------------------------------
    # Routers
    # -------------------------------------------------------------------

    prefix = app_settings.route_prefix

    application.include_router(health.root_router)
    application.include_router(health.router)
    application.include_router(predictions.router, prefix=prefix, tags=["Predictions"])

    if app_settings.is_remote:
        application.include_router(predictions.preflight_router, prefix=prefix, tags=["Predictions"])
    else:
        application.include_router(predictions.delete_router, prefix=prefix, tags=["Predictions"])

    return application


# ---------------------------------------------------------------------------
# App Instance
# ---------------------------------------------------------------------------

app = create_app()


# ---------------------------------------------------------------------------
# Entry Point
# ---------------------------------------------------------------------------


def run() -> None:
    logger.info("MLB Predictions API running on port %s", settings.port)
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment != "production",
        log_level=settings.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    run()
