"""
Handler-facing access to the current request's trace id.

    @app.get("/items")
    async def items(trace_id: TraceId):
        ...

Fails the request with a 500 when the middleware was not installed.
"""

import uuid
from typing import Annotated

from fastapi import Depends, HTTPException, Request

from trace_id_layer.context import TraceContext, load_trace_context
from trace_id_layer.logging_config import get_logger
from trace_id_layer.metrics import MISSING_TRACE_CONTEXT

logger = get_logger(__name__)

MISSING_TRACE_ID_MESSAGE = (
    "Unable to extract trace id. Is the trace id middleware installed ahead of this handler?"
)


class MissingTraceIdError(HTTPException):
    """Raised when a handler asks for the trace id but no resolver ran."""

    def __init__(self):
        super().__init__(status_code=500, detail=MISSING_TRACE_ID_MESSAGE)


def get_trace_context(request: Request) -> TraceContext:
    """FastAPI dependency: the TraceContext stored by the resolver."""
    ctx = load_trace_context(request.scope)
    if ctx is None:
        MISSING_TRACE_CONTEXT.labels(stage="handler").inc()
        logger.error(
            "trace_id_extraction_failed",
            path=request.url.path,
            hint="call add_trace_id_middleware(app) before serving requests",
        )
        raise MissingTraceIdError()
    return ctx


def get_trace_id(ctx: TraceContext = Depends(get_trace_context)) -> uuid.UUID:  # noqa: B008
    """FastAPI dependency: the current request's trace id."""
    return ctx.trace_id


TraceId = Annotated[uuid.UUID, Depends(get_trace_id)]
