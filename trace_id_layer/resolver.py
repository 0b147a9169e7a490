"""
Identifier resolver: derive the trace id of an inbound request.

- Header present and a canonical UUID string → adopted as is (provenance inbound)
- Header absent, not text, or not a UUID → a fresh UUIDv7 is generated
"""

import re
import uuid
from typing import Iterable, Optional, Tuple, Union

from trace_id_layer.context import (
    Provenance,
    TraceContext,
    load_trace_context,
    new_trace_id,
    store_trace_context,
)
from trace_id_layer.logging_config import get_logger
from trace_id_layer.metrics import MALFORMED_TRACE_IDS

logger = get_logger(__name__)

TRACE_ID_HEADER = "x-trace-id"

_CANONICAL_UUID = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)

# Rejected header values are logged truncated to this length
_MAX_LOGGED_VALUE = 128

RawHeaders = Iterable[Tuple[bytes, bytes]]


class MalformedTraceIdError(ValueError):
    """Inbound trace id header value is not a canonical UUID string."""


def parse_trace_id(raw: Union[bytes, str]) -> uuid.UUID:
    """Parse a header value into a UUID, rejecting anything non-canonical."""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("ascii")
        except UnicodeDecodeError as e:
            raise MalformedTraceIdError("header value is not valid text") from e
    if not _CANONICAL_UUID.fullmatch(raw):
        raise MalformedTraceIdError(f"not a canonical UUID: {raw!r}")
    return uuid.UUID(raw)


def _find_header(headers: RawHeaders, name: bytes) -> Optional[bytes]:
    for key, value in headers:
        if key.lower() == name:
            return value
    return None


def resolve_trace_id(headers, header_name: str = TRACE_ID_HEADER) -> TraceContext:
    """Resolve the trace id from raw ASGI headers (or a Starlette ``Headers``).

    Never raises: the worst case is a freshly generated id.
    """
    raw_headers = getattr(headers, "raw", headers)
    value = _find_header(raw_headers, header_name.lower().encode("latin-1"))

    if value is not None:
        try:
            return TraceContext(trace_id=parse_trace_id(value), provenance=Provenance.INBOUND)
        except MalformedTraceIdError as e:
            MALFORMED_TRACE_IDS.inc()
            logger.warning(
                "trace_id_malformed",
                header=header_name,
                value=value.decode("latin-1")[:_MAX_LOGGED_VALUE],
                reason=str(e),
            )

    return TraceContext(trace_id=new_trace_id(), provenance=Provenance.GENERATED)


def resolve_into_scope(scope: dict, header_name: str = TRACE_ID_HEADER) -> TraceContext:
    """Resolve once per request and store the result in the request state."""
    existing = load_trace_context(scope)
    if existing is not None:
        return existing
    return store_trace_context(scope, resolve_trace_id(scope.get("headers", []), header_name))


class TraceIdResolverMiddleware:
    """ASGI layer that stores the request's TraceContext before calling the app.

    Must sit outside TraceSpanMiddleware; prefer TraceIdMiddleware, which runs both
    in the right order.
    """

    def __init__(self, app, header_name: str = TRACE_ID_HEADER):
        self.app = app
        self.header_name = header_name

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http":
            resolve_into_scope(scope, self.header_name)
        await self.app(scope, receive, send)
