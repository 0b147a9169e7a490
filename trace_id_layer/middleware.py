"""
ASGI middleware for trace id correlation.

- TraceSpanMiddleware: opens the http-request span and emits lifecycle events
- TraceIdMiddleware: resolver + span layer as one unit (the default install)
- add_trace_id_middleware: installs either form on a Starlette/FastAPI app

The span layer reads the TraceContext the resolver stored in scope["state"], so
the resolver has to run first. Starlette wraps the most recently added middleware
outermost, hence the add order in add_trace_id_middleware.
"""

from structlog.contextvars import bound_contextvars

from trace_id_layer.context import load_trace_context
from trace_id_layer.metrics import (
    MISSING_TRACE_CONTEXT,
    REQUEST_FAILURES,
    RESPONSE_LATENCY,
    STREAM_DURATION,
    TRACED_REQUESTS,
)
from trace_id_layer.resolver import TRACE_ID_HEADER, TraceIdResolverMiddleware, resolve_into_scope
from trace_id_layer.span import SPAN_NAME, RequestSpan, classify_exception, classify_status

ORDERING_HINT = (
    "TraceIdResolverMiddleware must run before TraceSpanMiddleware; "
    "install both with add_trace_id_middleware()"
)


def _is_streamed(status_code: int, headers) -> bool:
    """A body without content-length is a stream, even if it ends up empty."""
    if status_code < 200 or status_code in (204, 304):
        return False
    return not any(key.lower() == b"content-length" for key, _ in headers)


class TraceSpanMiddleware:
    """Wrap one request in a span and log entry, response, stream end and failure."""

    def __init__(self, app, span_name: str = SPAN_NAME):
        self.app = app
        self.span_name = span_name

    def _open_span(self, scope) -> RequestSpan:
        span = RequestSpan(self.span_name)
        method = scope.get("method", "")
        path = scope.get("path", "")

        ctx = load_trace_context(scope)
        if ctx is None:
            MISSING_TRACE_CONTEXT.labels(stage="span").inc()
            span.log.error("trace_id_missing", method=method, path=path, hint=ORDERING_HINT)
            return span

        span.record_trace_id(ctx.trace_id_str)
        TRACED_REQUESTS.labels(provenance=ctx.provenance.value).inc()
        if ctx.is_inbound:
            span.log.info("request_received_with_trace_id", method=method, path=path)
        else:
            span.log.info(
                "request_received_without_trace_id",
                method=method,
                path=path,
                assigned=ctx.trace_id_str,
            )
        return span

    def _failed(self, span: RequestSpan, failure) -> None:
        latency_ms = span.elapsed_ms()
        REQUEST_FAILURES.labels(kind=failure.kind).inc()
        span.log.warning("request_failed", error=str(failure), latency_ms=round(latency_ms, 3))

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        span = self._open_span(scope)
        streamed = False

        async def send_wrapper(message):
            nonlocal streamed
            if message["type"] == "http.response.start":
                latency_ms = span.elapsed_ms()
                status_code = int(message.get("status", 200))
                RESPONSE_LATENCY.observe(latency_ms / 1000.0)
                span.log.debug(
                    "response_generated",
                    status_code=status_code,
                    latency_ms=round(latency_ms, 3),
                )
                failure = classify_status(status_code)
                if failure is not None:
                    self._failed(span, failure)
                streamed = _is_streamed(status_code, message.get("headers", []))
                await send(message)
            elif message["type"] == "http.response.body":
                await send(message)
                if message.get("more_body", False):
                    streamed = True
                elif streamed:
                    duration_ms = span.elapsed_ms()
                    STREAM_DURATION.observe(duration_ms / 1000.0)
                    span.log.debug("stream_closed", stream_duration_ms=round(duration_ms, 3))
            else:
                await send(message)

        try:
            with bound_contextvars(**span.fields()):
                await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            self._failed(span, classify_exception(exc))
            raise


class TraceIdMiddleware(TraceSpanMiddleware):
    """Resolve the trace id, then run the span layer, in a single middleware."""

    def __init__(self, app, header_name: str = TRACE_ID_HEADER, span_name: str = SPAN_NAME):
        super().__init__(app, span_name=span_name)
        self.header_name = header_name

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http":
            resolve_into_scope(scope, self.header_name)
        await super().__call__(scope, receive, send)


def add_trace_id_middleware(
    app,
    *,
    split: bool = False,
    header_name: str = TRACE_ID_HEADER,
    span_name: str = SPAN_NAME,
):
    """Install trace id correlation on a Starlette/FastAPI app and return it.

    split=False adds TraceIdMiddleware. split=True adds the two layers separately;
    the span layer goes in first so the resolver ends up wrapping it.
    """
    if split:
        app.add_middleware(TraceSpanMiddleware, span_name=span_name)
        app.add_middleware(TraceIdResolverMiddleware, header_name=header_name)
    else:
        app.add_middleware(TraceIdMiddleware, header_name=header_name, span_name=span_name)
    return app
