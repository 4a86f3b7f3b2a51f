"""Optional observability: OpenTelemetry tracing for investigations and tool calls."""

from cluster_investigator.observability.context_bridge import (
    get_root_span,
    get_stored_context,
    run_with_stored_context,
    set_trace_output,
    store_and_run,
    use_stored_context,
)
from cluster_investigator.observability.request_tracing import trace_investigation, trace_mcp_request
from cluster_investigator.observability.tool_tracing import ToolTracingConfig, with_tool_tracing
from cluster_investigator.observability.tracing import (
    get_tracer,
    init_tracing,
    is_capture_ai_payloads,
    shutdown_tracing,
    tracing_enabled,
)

__all__ = [
    "init_tracing",
    "shutdown_tracing",
    "tracing_enabled",
    "is_capture_ai_payloads",
    "get_tracer",
    "store_and_run",
    "get_stored_context",
    "use_stored_context",
    "run_with_stored_context",
    "get_root_span",
    "set_trace_output",
    "trace_investigation",
    "trace_mcp_request",
    "ToolTracingConfig",
    "with_tool_tracing",
]
