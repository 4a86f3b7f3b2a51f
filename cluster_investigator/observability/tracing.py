"""
Optional OpenTelemetry tracing for investigations and tool calls.

Tracing is opt-in: nothing is initialized unless OTEL_TRACING_ENABLED is true.
When disabled, or when traceloop-sdk is not installed, the OpenTelemetry API's
no-op tracer is what every helper ends up using.

traceloop-sdk (OpenLLMetry) owns the TracerProvider. It registers the global
provider, auto-instruments LLM SDK calls, and exports through the exporter we
hand it, so auto-instrumented LLM spans and our own spans share one trace and
one destination.

Exporters:
  console (default)  spans printed by ConsoleSpanExporter
  otlp               spans sent over OTLP/HTTP to OTEL_EXPORTER_OTLP_ENDPOINT
"""

import atexit
import contextlib
import logging
import os
import signal
import sys
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Awaitable, Callable, Optional, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Tracer

from cluster_investigator.core.exceptions import ConfigurationError
from cluster_investigator.observability import optional_deps
from cluster_investigator.observability.tool_definitions import ToolDefinitionsProcessor

logger = logging.getLogger(__name__)

T = TypeVar("T")
A = TypeVar("A")

SERVICE_NAME = "cluster-investigator"
OTLP_TRACES_PATH = "/v1/traces"
EXPORTER_TYPES = ("console", "otlp")

STATUS_UNINITIALIZED = "uninitialized"
STATUS_DISABLED = "disabled"
STATUS_UNAVAILABLE = "unavailable"
STATUS_READY = "ready"


@dataclass(frozen=True)
class TracingState:
    """Outcome of tracing initialization. Replaced once, never mutated."""

    status: str = STATUS_UNINITIALIZED
    capture_ai_payloads: bool = False
    exporter_type: Optional[str] = None
    endpoint: Optional[str] = None
    tool_decorators: Optional[ModuleType] = None


_state: TracingState = TracingState()


def normalize_otlp_endpoint(endpoint: str) -> str:
    """Strip trailing slashes and append /v1/traces exactly once."""
    base = endpoint.strip().rstrip("/")
    if base.endswith(OTLP_TRACES_PATH):
        return base
    return base + OTLP_TRACES_PATH


def _create_span_exporter(exporter_type: str, endpoint: Optional[str]) -> Any:
    """Build the requested exporter. A missing exporter package is a configuration error."""
    if exporter_type == "otlp":
        module = optional_deps.load_otlp_exporter()
        if module is None:
            raise ConfigurationError(
                "OTEL_EXPORTER_TYPE=otlp requires opentelemetry-exporter-otlp-proto-http. "
                "Install it: pip install opentelemetry-exporter-otlp-proto-http",
                config_key="OTEL_EXPORTER_TYPE",
            )
        logger.info("Using OTLP exporter -> %s", endpoint)
        return module.OTLPSpanExporter(endpoint=endpoint)

    module = optional_deps.load_sdk_trace_export()
    if module is None:
        raise ConfigurationError(
            "Console exporter requires opentelemetry-sdk. Install it: pip install opentelemetry-sdk",
            config_key="OTEL_EXPORTER_TYPE",
        )
    logger.info("Using console exporter")
    return module.ConsoleSpanExporter()


def _attach_span_processor(processor: Any) -> None:
    """Add a span processor to the registered global provider."""
    provider = trace.get_tracer_provider()
    add_span_processor = getattr(provider, "add_span_processor", None)
    if add_span_processor is None:
        logger.warning(
            "Tracer provider %s does not accept span processors; %s not attached",
            type(provider).__name__,
            type(processor).__name__,
        )
        return
    add_span_processor(processor)


def shutdown_tracing() -> None:
    """Flush pending spans. Best effort: failures are logged, never raised or retried."""
    provider = trace.get_tracer_provider()
    force_flush = getattr(provider, "force_flush", None)
    if force_flush is None:
        return
    try:
        force_flush()
        logger.info("Tracing flushed")
    except Exception:
        logger.exception("Error flushing spans on shutdown")


def _handle_sigterm(signum: int, frame: Any) -> None:
    shutdown_tracing()
    raise SystemExit(128 + signum)


def _register_shutdown_handlers() -> None:
    atexit.register(shutdown_tracing)
    try:
        signal.signal(signal.SIGTERM, _handle_sigterm)
    except ValueError:
        # Signal handlers can only be installed from the main thread
        logger.debug("SIGTERM flush handler not installed outside the main thread")


def init_tracing(config: Optional[Any] = None) -> TracingState:
    """
    Initialize tracing once per process.

    Args:
        config: Settings-like object; defaults to the global settings

    Returns:
        The tracing state. Later calls return it unchanged.

    Raises:
        ConfigurationError: Tracing was requested but is misconfigured
    """
    global _state
    if _state.status != STATUS_UNINITIALIZED:
        return _state

    if config is None:
        from cluster_investigator.core.config import settings

        config = settings

    capture = bool(getattr(config, "otel_capture_ai_payloads", False))

    if not getattr(config, "otel_tracing_enabled", False):
        _state = TracingState(status=STATUS_DISABLED, capture_ai_payloads=capture)
        return _state

    raw_type = getattr(config, "otel_exporter_type", "") or "console"
    exporter_type = raw_type.strip().lower()
    if exporter_type not in EXPORTER_TYPES:
        raise ConfigurationError(
            f'Unsupported OTEL_EXPORTER_TYPE: "{raw_type}". Valid options: "console", "otlp".',
            config_key="OTEL_EXPORTER_TYPE",
        )

    endpoint = None
    if exporter_type == "otlp":
        raw_endpoint = (getattr(config, "otel_exporter_otlp_endpoint", "") or "").strip()
        if not raw_endpoint:
            raise ConfigurationError(
                "OTEL_EXPORTER_OTLP_ENDPOINT is required when OTEL_EXPORTER_TYPE=otlp. "
                "Set it to your collector URL (e.g. http://localhost:4318).",
                config_key="OTEL_EXPORTER_OTLP_ENDPOINT",
            )
        endpoint = normalize_otlp_endpoint(raw_endpoint)

    traceloop = optional_deps.load_traceloop()
    if traceloop is None:
        logger.warning(
            "OTEL_TRACING_ENABLED=true but traceloop-sdk is not installed. "
            "Tracing will be no-op. Install the 'tracing' extra for full telemetry."
        )
        _state = TracingState(status=STATUS_UNAVAILABLE, capture_ai_payloads=capture)
        return _state

    logger.info("Initializing OpenTelemetry tracing...")
    exporter = _create_span_exporter(exporter_type, endpoint)

    # traceloop reads its content gate from the environment
    os.environ["TRACELOOP_TRACE_CONTENT"] = "true" if capture else "false"
    # traceloop prints banners; stdout carries answers and the MCP stdio stream
    with contextlib.redirect_stdout(sys.stderr):
        traceloop.Traceloop.init(
            app_name=SERVICE_NAME,
            exporter=exporter,
            disable_batch=True,
            telemetry_enabled=False,
        )

    _attach_span_processor(ToolDefinitionsProcessor())
    _register_shutdown_handlers()

    _state = TracingState(
        status=STATUS_READY,
        capture_ai_payloads=capture,
        exporter_type=exporter_type,
        endpoint=endpoint,
        tool_decorators=optional_deps.load_traceloop_decorators(),
    )
    logger.info("Tracing enabled for %s", SERVICE_NAME)
    logger.info("OpenLLMetry initialized for LLM instrumentation")
    return _state


def get_tracing_state() -> TracingState:
    return _state


def tracing_enabled() -> bool:
    """Return True if tracing is active (enabled and SDK available)."""
    return _state.status == STATUS_READY


def is_capture_ai_payloads() -> bool:
    """Whether questions, answers and tool payloads may be written to spans."""
    return _state.capture_ai_payloads


def get_tracer() -> Tracer:
    """
    Get the service tracer from the global provider.

    Returns traceloop's provider's tracer once tracing is ready, a no-op
    tracer otherwise. Never raises.
    """
    return trace.get_tracer(SERVICE_NAME)


async def with_tool(name: str, fn: Callable[[A], Awaitable[T]], tool_input: A) -> T:
    """
    Run fn(tool_input) inside the auto-instrumentation layer's tool span.

    The helper records tool_input as the span's entity input and, when fn
    raises, records the exception and sets ERROR on that span before
    re-raising. Passthrough when tracing is not ready.
    """
    decorators = _state.tool_decorators if _state.status == STATUS_READY else None
    if decorators is None:
        return await fn(tool_input)

    # The decorator picks its async wrapper only for coroutine functions
    async def _call(tool_input: A) -> T:
        return await fn(tool_input)

    return await decorators.tool(name=name)(_call)(tool_input)
