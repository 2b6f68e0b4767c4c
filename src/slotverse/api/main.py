"""FastAPI application factory and entry point.

Creates the application instance, registers middleware and the rate
limiter, and mounts the ingress routers.

Usage::

    # Development server (from project root)
    uvicorn slotverse.api.main:app --reload

    # Production
    gunicorn slotverse.api.main:app -k uvicorn.workers.UvicornWorker
"""

from __future__ import annotations

import time
import uuid
from typing import Callable

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from slotverse import __version__
from slotverse.api.limiter import limiter
from slotverse.config.settings import get_settings
from slotverse.core.logging_config import configure_logging, request_id_var

# Applied at import time so records emitted while the app is built are
# captured; create_app() re-applies it with the configured level.
configure_logging("INFO")

logger = structlog.get_logger(__name__)

#: Probe and scrape endpoints logged at DEBUG on success.
_QUIET_PATHS: tuple[str, ...] = ("/health", "/api/health", "/metrics")

_MAX_REQUEST_ID_LENGTH = 128


def create_app() -> FastAPI:
    """Build and configure the FastAPI application.

    Separated from the module-level ``app`` singleton so that tests can
    call ``create_app()`` with a patched settings environment.

    Returns:
        A fully configured ``FastAPI`` instance.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    application = FastAPI(
        title=settings.app_name,
        description=(
            "Accepts slot-game page URLs from chat platforms and the API, "
            "scrapes them in the background and reports the result."
        ),
        version=__version__,
        debug=settings.debug,
        redirect_slashes=False,
    )

    # ---- Middleware --------------------------------------------------------

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    application.add_middleware(SlowAPIMiddleware)

    @application.middleware("http")
    async def request_logging_middleware(
        request: Request, call_next: Callable
    ) -> Response:
        """Log each request under a ``request_id``.

        A caller-supplied ``X-Request-ID`` of sane length is reused so API
        clients can correlate their submissions with our logs.
        """
        request_id = request.headers.get("X-Request-ID", "")
        if not 0 < len(request_id) <= _MAX_REQUEST_ID_LENGTH:
            request_id = uuid.uuid4().hex
        request_id_var.set(request_id)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request_crashed")
            raise

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        if response.status_code >= 400:
            log_fn = logger.warning
        elif request.url.path.startswith(_QUIET_PATHS):
            log_fn = logger.debug
        else:
            log_fn = logger.info
        log_fn("request_complete", status_code=response.status_code, elapsed_ms=elapsed_ms)
        response.headers["X-Request-ID"] = request_id
        return response

    # ---- Routers -----------------------------------------------------------

    from slotverse.api.routes import health as health_routes  # noqa: PLC0415
    from slotverse.api.routes import scrape_jobs  # noqa: PLC0415
    from slotverse.ingress import discord, telegram  # noqa: PLC0415

    application.include_router(health_routes.router)
    application.include_router(scrape_jobs.router)
    application.include_router(discord.router)
    application.include_router(telegram.router)

    if settings.metrics_enabled:
        application.mount("/metrics", make_asgi_app())

    # ---- Lifecycle events -------------------------------------------------

    @application.on_event("startup")
    async def on_startup() -> None:
        logger.info(
            "application_startup",
            app_name=settings.app_name,
            debug=settings.debug,
            log_level=settings.log_level,
        )

    @application.on_event("shutdown")
    async def on_shutdown() -> None:
        from slotverse.api.dependencies import get_wakeup  # noqa: PLC0415

        await get_wakeup().close()
        logger.info("application_shutdown")

    @application.get("/health", tags=["system"])
    async def health() -> JSONResponse:
        """Liveness probe without any I/O.  Deep checks are at ``/api/health``."""
        return JSONResponse({"status": "ok"})

    return application


app = create_app()
"""The FastAPI application instance passed to Uvicorn / Gunicorn."""
