"""
Bridge the root trace context across the agent runtime's scheduling boundary.

The agent runtime replaces the ambient OpenTelemetry context before it invokes
tool handlers. Tool spans created there start without a parent and end up in
their own traces. This module keeps the root request's context in separate
context variables, which the runtime does not touch, and tool handlers
re-activate it before creating their spans.

Resulting hierarchy:
  cluster-investigator.investigate
  ├── openai.chat
  ├── kubectl_get.tool
  ├── openai.chat
  └── kubectl_describe.tool

This is a compatibility shim for that one defect. Remove it once the runtime
propagates OpenTelemetry context to tool callbacks.
"""

import json
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Awaitable, Callable, Iterator, Optional, TypeVar

from opentelemetry import context as otel_context
from opentelemetry.context import Context
from opentelemetry.trace import Span

from cluster_investigator.observability.semconv import GenAIAttributes, TraceloopAttributes
from cluster_investigator.observability.tracing import is_capture_ai_payloads

T = TypeVar("T")

# asyncio copies these into every task spawned below store_and_run, so sibling
# tool calls each read the same root entry
_stored_context: ContextVar[Optional[Context]] = ContextVar("bridged_trace_context", default=None)
_root_span: ContextVar[Optional[Span]] = ContextVar("bridged_root_span", default=None)


async def store_and_run(ctx: Context, span: Span, fn: Callable[[], Awaitable[T]]) -> T:
    """Run fn with ctx and span as the bridged values, restoring the previous ones afterwards."""
    ctx_token = _stored_context.set(ctx)
    span_token = _root_span.set(span)
    try:
        return await fn()
    finally:
        _root_span.reset(span_token)
        _stored_context.reset(ctx_token)


def get_stored_context() -> Context:
    """
    Get the bridged trace context.

    Falls back to the current OpenTelemetry context when called outside a
    root request.
    """
    stored = _stored_context.get()
    return stored if stored is not None else otel_context.get_current()


@contextmanager
def use_stored_context() -> Iterator[Context]:
    """Make the bridged context the current OpenTelemetry context for the block."""
    ctx = get_stored_context()
    token = otel_context.attach(ctx)
    try:
        yield ctx
    finally:
        otel_context.detach(token)


async def run_with_stored_context(fn: Callable[[], Awaitable[T]]) -> T:
    """Await fn with the bridged context active, so spans it starts parent under the root span."""
    with use_stored_context():
        return await fn()


def get_root_span() -> Optional[Span]:
    return _root_span.get()


def set_trace_output(output: str, answer: Optional[str] = None) -> None:
    """
    Record the final output on the root span.

    Called once the answer is known, which is after the agent has finished
    streaming. Writes nothing unless AI payload capture is enabled.

    Args:
        output: Full output (reasoning and answer) for traceloop.entity.output
        answer: Clean answer for gen_ai.output.messages
    """
    span = _root_span.get()
    if span is None or not is_capture_ai_payloads():
        return
    span.set_attribute(TraceloopAttributes.ENTITY_OUTPUT, output)
    if answer is not None:
        span.set_attribute(
            GenAIAttributes.OUTPUT_MESSAGES,
            json.dumps([{"role": "assistant", "parts": [{"type": "text", "content": answer}]}]),
        )
