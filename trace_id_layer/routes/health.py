"""
Demo endpoints.

- GET /        — index
- GET /health  — liveness probe
- GET /trace   — echoes the current trace id
"""

from fastapi import APIRouter, Depends, Response
from loguru import logger

from trace_id_layer.context import TraceContext
from trace_id_layer.extract import TraceId, get_trace_context

router = APIRouter(tags=["demo"])


@router.get("/")
async def index():
    logger.info("Index!")
    return Response(status_code=200)


@router.get("/health")
async def health():
    """Liveness probe. Returns 200 if process is alive."""
    logger.info("Healthcheck!")
    return Response(status_code=200)


@router.get("/trace")
async def trace(trace_id: TraceId, ctx: TraceContext = Depends(get_trace_context)):  # noqa: B008
    """Return the trace id the middleware resolved for this request."""
    return {"trace_id": str(trace_id), "provenance": ctx.provenance.value}
