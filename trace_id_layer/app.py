"""
FastAPI application factory with lifespan context manager.

Usage:
    uvicorn trace_id_layer.app:create_app --factory --host 0.0.0.0 --port 8000

    # or, with logging configured from API_* env vars:
    trace-id-layer
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from loguru import logger
from prometheus_client import make_asgi_app

from trace_id_layer.config import Settings
from trace_id_layer.logging_config import configure_logging
from trace_id_layer.middleware import add_trace_id_middleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown logging. The trace layer itself holds no resources."""
    logger.info("Running")
    yield
    logger.info("Shutting down API")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """FastAPI application factory."""
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="Trace ID Layer",
        description="Demo service with per-request trace id correlation.",
        version="0.4.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Middleware
    trace_cfg = settings.trace
    add_trace_id_middleware(
        app,
        split=trace_cfg.split_layers,
        header_name=trace_cfg.header_name,
        span_name=trace_cfg.span_name,
    )

    # Prometheus metrics endpoint
    if trace_cfg.metrics_enabled:
        app.mount("/metrics", make_asgi_app())

    # Register routes
    from trace_id_layer.routes.health import router as demo_router

    app.include_router(demo_router)

    return app


def run():
    """Console entry point: configure logging and serve the demo app."""
    import uvicorn

    settings = Settings()
    configure_logging(settings.api.log_level, settings.api.log_format)
    uvicorn.run(
        create_app(settings),
        host=settings.api.host,
        port=settings.api.port,
        log_level=settings.api.log_level.lower(),
    )
