"""FastAPI application for the smart-link router."""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from smartlink import __version__
from smartlink.api_routes import debug, health, redirect
from smartlink.config import RoutingConfig, configure_logging, get_settings
from smartlink.events import LogSink
from smartlink.security import SecurityHeadersMiddleware

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging before serving requests."""
    settings = get_settings()
    configure_logging(
        level=settings.log_level,
        format=settings.log_format,
        sanitize_logs=settings.sanitize_logs,
    )
    logger.info(
        f"Routing to android={app.state.routing_config.android_store_url} "
        f"ios={app.state.routing_config.ios_store_url} "
        f"fallback={app.state.routing_config.fallback_url}"
    )
    yield
    logger.info("Shutdown complete")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all requests with timing and request IDs.

    The client address is never logged; routing events carry a hash instead.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = str(uuid.uuid4())[:8]
        method = request.method
        path = request.url.path

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"[{request_id}] {method} {path} - 500 ERROR in {duration_ms:.1f}ms - {e}",
                extra={
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "status_code": 500,
                    "duration_ms": round(duration_ms, 2),
                },
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        status_code = response.status_code
        log_level = logging.WARNING if status_code >= 400 else logging.INFO
        logger.log(
            log_level,
            f"[{request_id}] {method} {path} - {status_code} in {duration_ms:.1f}ms",
            extra={
                "request_id": request_id,
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )

        response.headers["X-Request-ID"] = request_id
        return response


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


def create_app(
    config: Optional[RoutingConfig] = None,
    log_sink: Optional[LogSink] = None,
) -> FastAPI:
    """Build the application.

    Args:
        config: Routing configuration. Loaded from settings when omitted.
        log_sink: Consumer for routing events. Defaults to the
            ``smartlink.events`` logger.

    Returns:
        Configured FastAPI application.
    """
    if config is None:
        config = get_settings().routing_config()

    app = FastAPI(
        title="Smart-link Router",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.routing_config = config
    app.state.log_sink = log_sink

    # Order matters: last added runs first on request
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(redirect.router)
    app.include_router(debug.router)
    app.include_router(health.router)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
