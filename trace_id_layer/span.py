"""
Per-request observability span and failure classification.

A RequestSpan is a structlog logger bound to the span name and, once recorded,
the trace id, plus a monotonic start time for latency fields.
"""

import time
from dataclasses import dataclass
from typing import Optional

from trace_id_layer.logging_config import get_logger

SPAN_NAME = "http-request"


@dataclass(frozen=True)
class FailureClass:
    """Server-side failure descriptor: a 5xx status or a raised exception."""

    kind: str
    detail: str

    def __str__(self) -> str:
        if self.kind == "status_code":
            return f"StatusCode({self.detail})"
        return f"Error({self.detail})"


def classify_status(status_code: int) -> Optional[FailureClass]:
    """Only server errors count as failures."""
    if 500 <= status_code <= 599:
        return FailureClass(kind="status_code", detail=str(status_code))
    return None


def classify_exception(exc: BaseException) -> FailureClass:
    return FailureClass(kind="error", detail=f"{type(exc).__name__}: {exc}")


class RequestSpan:
    """One span per request. The trace_id field starts empty and is set once."""

    def __init__(self, name: str = SPAN_NAME, logger_name: str = "trace_id_layer.span"):
        self.name = name
        self.trace_id: Optional[str] = None
        self.started_at = time.monotonic()
        self._recorded = False
        self.log = get_logger(logger_name).bind(span=name, trace_id=None)

    def record_trace_id(self, trace_id: str) -> None:
        if self._recorded:
            raise RuntimeError(f"trace_id already recorded on span {self.name!r}")
        self._recorded = True
        self.trace_id = trace_id
        self.log = self.log.bind(trace_id=trace_id)

    def elapsed_ms(self) -> float:
        return max(0.0, (time.monotonic() - self.started_at) * 1000.0)

    def fields(self) -> dict:
        return {"span": self.name, "trace_id": self.trace_id}
