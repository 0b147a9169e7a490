"""
Per-request trace id correlation for Starlette/FastAPI.

Provides:
- add_trace_id_middleware: install the resolver + span layers on an app
- TraceId / get_trace_id: handler-side access to the request's trace id
- resolve_trace_id: header → TraceContext policy
"""

from trace_id_layer.context import Provenance, TraceContext
from trace_id_layer.extract import MissingTraceIdError, TraceId, get_trace_context, get_trace_id
from trace_id_layer.middleware import (
    TraceIdMiddleware,
    TraceSpanMiddleware,
    add_trace_id_middleware,
)
from trace_id_layer.resolver import TRACE_ID_HEADER, TraceIdResolverMiddleware, resolve_trace_id

__all__ = [
    "TRACE_ID_HEADER",
    "MissingTraceIdError",
    "Provenance",
    "TraceContext",
    "TraceId",
    "TraceIdMiddleware",
    "TraceIdResolverMiddleware",
    "TraceSpanMiddleware",
    "add_trace_id_middleware",
    "get_trace_context",
    "get_trace_id",
    "resolve_trace_id",
]
