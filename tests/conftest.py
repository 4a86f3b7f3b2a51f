"""Pytest configuration and shared fixtures."""

import functools
import json
import os
import sys
import types
from typing import Iterator
from unittest.mock import MagicMock, patch

import pytest
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import Status, StatusCode
from opentelemetry.util._once import Once

from cluster_investigator.observability import tracing
from tests.fixtures.mock_llm import MockLLMProvider


def _reset_global_tracer_provider() -> None:
    trace._TRACER_PROVIDER_SET_ONCE = Once()
    trace._TRACER_PROVIDER = None


def make_fake_tool_decorators() -> types.ModuleType:
    """
    Stand-in for traceloop.sdk.decorators.

    tool(name) behaves like the real helper: it opens a "<name>.tool" span, writes
    the call's args/kwargs and return value as entity input/output when
    TRACELOOP_TRACE_CONTENT allows it, and on an exception records it once, sets
    ERROR and re-raises.
    """
    module = types.ModuleType("traceloop.sdk.decorators")

    def _trace_content() -> bool:
        return (os.getenv("TRACELOOP_TRACE_CONTENT") or "true").lower() == "true"

    def tool(name=None, **kwargs):
        def decorate(fn):
            entity_name = name or fn.__name__

            @functools.wraps(fn)
            async def wrapper(*args, **kw):
                with trace.get_tracer("traceloop.sdk").start_as_current_span(
                    f"{entity_name}.tool",
                    record_exception=False,
                    set_status_on_exception=False,
                ) as span:
                    span.set_attribute("traceloop.span.kind", "tool")
                    span.set_attribute("traceloop.entity.name", entity_name)
                    if _trace_content():
                        span.set_attribute(
                            "traceloop.entity.input",
                            json.dumps({"args": list(args), "kwargs": kw}, default=str),
                        )
                    try:
                        result = await fn(*args, **kw)
                    except Exception as e:
                        span.set_status(Status(StatusCode.ERROR, str(e)))
                        span.record_exception(e)
                        raise
                    if _trace_content():
                        span.set_attribute("traceloop.entity.output", json.dumps(result, default=str))
                    return result

            return wrapper

        return decorate

    module.tool = tool
    return module


@pytest.fixture(autouse=True)
def reset_tracing_state() -> Iterator[None]:
    """Every test starts with tracing uninitialized and the environment restored."""
    tracing._state = tracing.TracingState()
    with patch.dict(os.environ), patch.object(tracing, "_register_shutdown_handlers"):
        yield
    tracing._state = tracing.TracingState()


@pytest.fixture
def span_exporter() -> Iterator[InMemorySpanExporter]:
    """Install an SDK provider exporting to memory as the global tracer provider."""
    _reset_global_tracer_provider()
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    yield exporter
    provider.shutdown()
    _reset_global_tracer_provider()


@pytest.fixture
def fake_traceloop() -> Iterator[types.ModuleType]:
    """Make traceloop.sdk importable, with Traceloop.init mocked out."""
    package = types.ModuleType("traceloop")
    sdk = types.ModuleType("traceloop.sdk")
    decorators = make_fake_tool_decorators()
    sdk.Traceloop = MagicMock(name="Traceloop")
    sdk.decorators = decorators
    package.sdk = sdk
    with patch.dict(
        sys.modules,
        {"traceloop": package, "traceloop.sdk": sdk, "traceloop.sdk.decorators": decorators},
    ):
        yield sdk


@pytest.fixture
def tracing_ready():
    """Mark tracing ready with fake tool decorators; call with capture=True for payloads."""

    def _ready(capture: bool = False) -> tracing.TracingState:
        os.environ["TRACELOOP_TRACE_CONTENT"] = "true" if capture else "false"
        tracing._state = tracing.TracingState(
            status=tracing.STATUS_READY,
            capture_ai_payloads=capture,
            exporter_type="console",
            tool_decorators=make_fake_tool_decorators(),
        )
        return tracing._state

    return _ready


@pytest.fixture
def capture_payloads() -> tracing.TracingState:
    """Payload capture on, tracing itself not ready."""
    tracing._state = tracing.TracingState(status=tracing.STATUS_DISABLED, capture_ai_payloads=True)
    return tracing._state


@pytest.fixture
def mock_llm_provider() -> MockLLMProvider:
    """Create a mock LLM provider for testing."""
    return MockLLMProvider()
