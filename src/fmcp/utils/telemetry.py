"""OpenTelemetry tracing helpers for the MCP server.

Provides a thin wrapper around the OpenTelemetry API so the rest of the
codebase can call ``get_tracer()`` without caring whether the SDK is
installed.  Without a configured SDK the API hands out no-op tracers.

Usage::

    from fmcp.utils.telemetry import get_tracer

    _tracer = get_tracer(__name__)

    with _tracer.start_as_current_span("fmcp.tool.call") as span:
        span.set_attribute(ATTR_TOOL_NAME, name)

Spans are exported over OTLP only; a console exporter would write to
stdout and corrupt the protocol stream.
"""

from __future__ import annotations

from opentelemetry import trace

# ---------------------------------------------------------------------------
# Semantic attribute keys
# ---------------------------------------------------------------------------

ATTR_RPC_METHOD = "fmcp.rpc.method"
ATTR_RPC_ID = "fmcp.rpc.id"
ATTR_RPC_ERROR_CODE = "fmcp.rpc.error_code"
ATTR_TOOL_NAME = "fmcp.tool.name"
ATTR_HTTP_METHOD = "fmcp.http.method"
ATTR_HTTP_PATH = "fmcp.http.path"
ATTR_HTTP_STATUS = "fmcp.http.status_code"
ATTR_CONTEXT_MODEL = "fmcp.context.model"
ATTR_CONTEXT_CACHE_HIT = "fmcp.context.cache_hit"

_INSTRUMENTATION_NAME = "fmcp"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return a :class:`~opentelemetry.trace.Tracer` for *name*.

    If the OpenTelemetry SDK has not been configured the returned tracer
    is a no-op.
    """
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(*, service_name: str = "flow-masters-mcp", otlp_endpoint: str) -> None:
    """Export spans via OTLP/gRPC (requires ``flow-masters-mcp[otel]``).

    Raises
    ------
    ImportError
        If the SDK or the OTLP exporter is not installed.
    """
    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace.export import BatchSpanProcessor  # pyright: ignore[reportMissingImports]
    except ImportError as exc:
        msg = (
            "opentelemetry-sdk and opentelemetry-exporter-otlp are required for "
            "configure_telemetry(). Install them with: pip install flow-masters-mcp[otel]"
        )
        raise ImportError(msg) from exc

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))
    trace.set_tracer_provider(provider)
