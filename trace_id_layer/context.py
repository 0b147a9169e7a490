"""
Per-request trace state.

The resolved trace id lives in the ASGI ``scope["state"]`` mapping, which
Starlette exposes to handlers as ``request.state``. One typed TraceContext is
stored per request and never replaced.
"""

import enum
import uuid
from dataclasses import dataclass
from typing import Any, MutableMapping, Optional

from uuid6 import uuid7

STATE_KEY = "trace_context"


class Provenance(str, enum.Enum):
    """Where the trace id of a request came from."""

    INBOUND = "inbound"
    GENERATED = "generated"


@dataclass(frozen=True)
class TraceContext:
    """The trace id of one request and its provenance."""

    trace_id: uuid.UUID
    provenance: Provenance

    @property
    def trace_id_str(self) -> str:
        return str(self.trace_id)

    @property
    def is_inbound(self) -> bool:
        return self.provenance is Provenance.INBOUND

    def __str__(self) -> str:
        return self.trace_id_str


def new_trace_id() -> uuid.UUID:
    """Generate a fresh time-ordered (version 7) UUID."""
    # uuid6 returns its own UUID subclass; normalise to the stdlib type
    return uuid.UUID(int=uuid7().int)


def _state(scope: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    return scope.setdefault("state", {})


def store_trace_context(scope: MutableMapping[str, Any], ctx: TraceContext) -> TraceContext:
    """Attach ctx to the request unless one is already there; return the stored one."""
    state = _state(scope)
    existing = state.get(STATE_KEY)
    if isinstance(existing, TraceContext):
        return existing
    state[STATE_KEY] = ctx
    return ctx


def load_trace_context(scope: MutableMapping[str, Any]) -> Optional[TraceContext]:
    """Return the request's TraceContext, or None if the resolver never ran."""
    state = scope.get("state")
    if not state:
        return None
    ctx = state.get(STATE_KEY)
    if isinstance(ctx, TraceContext):
        return ctx
    return None
