"""Unit tests for the trace context bridge (cluster_investigator.observability.context_bridge)."""

import asyncio
import json
import random

import pytest
from opentelemetry import context as otel_context
from opentelemetry import trace
from opentelemetry.context import Context

from cluster_investigator.observability.context_bridge import (
    get_root_span,
    get_stored_context,
    run_with_stored_context,
    set_trace_output,
    store_and_run,
    use_stored_context,
)


async def _runtime_invoke(callback):
    """Simulate the agent runtime: the ambient context is replaced before the callback runs."""
    token = otel_context.attach(Context())
    try:
        return await callback()
    finally:
        otel_context.detach(token)


def _child_handler(name: str):
    tracer = trace.get_tracer("test")

    async def handler():
        await asyncio.sleep(random.uniform(0, 0.005))
        with tracer.start_as_current_span(name):
            await asyncio.sleep(random.uniform(0, 0.005))
        return name

    return handler


@pytest.mark.unit
class TestStoreAndRun:
    @pytest.mark.asyncio
    async def test_concurrent_children_parent_under_root(self, span_exporter):
        tracer = trace.get_tracer("test")
        names = [f"child-{i}" for i in range(10)]

        with tracer.start_as_current_span("root") as root:
            ctx = trace.set_span_in_context(root)

            async def body():
                return await asyncio.gather(
                    *(
                        _runtime_invoke(lambda h=_child_handler(n): run_with_stored_context(h))
                        for n in names
                    )
                )

            results = await store_and_run(ctx, root, body)

        assert results == names
        spans = {s.name: s for s in span_exporter.get_finished_spans()}
        root_ctx = spans["root"].context
        for name in names:
            child = spans[name]
            assert child.parent is not None
            assert child.parent.span_id == root_ctx.span_id
            assert child.context.trace_id == root_ctx.trace_id

    @pytest.mark.asyncio
    async def test_without_bridge_children_lose_their_parent(self, span_exporter):
        """Negative control: the simulated runtime really does orphan spans."""
        tracer = trace.get_tracer("test")
        names = [f"child-{i}" for i in range(3)]

        with tracer.start_as_current_span("root"):
            await asyncio.gather(*(_runtime_invoke(_child_handler(n)) for n in names))

        spans = {s.name: s for s in span_exporter.get_finished_spans()}
        for name in names:
            assert spans[name].parent is None
            assert spans[name].context.trace_id != spans["root"].context.trace_id

    @pytest.mark.asyncio
    async def test_values_restored_after_run(self, span_exporter):
        tracer = trace.get_tracer("test")
        with tracer.start_as_current_span("root") as root:
            ctx = trace.set_span_in_context(root)

            async def body():
                assert get_root_span() is root
                assert get_stored_context() is ctx
                return "done"

            assert await store_and_run(ctx, root, body) == "done"

        assert get_root_span() is None

    @pytest.mark.asyncio
    async def test_values_restored_after_exception(self, span_exporter):
        tracer = trace.get_tracer("test")
        with tracer.start_as_current_span("root") as root:

            async def body():
                raise RuntimeError("boom")

            with pytest.raises(RuntimeError):
                await store_and_run(trace.set_span_in_context(root), root, body)

        assert get_root_span() is None


@pytest.mark.unit
class TestStoredContextFallback:
    def test_falls_back_to_current_context(self, span_exporter):
        with trace.get_tracer("test").start_as_current_span("outer") as outer:
            assert trace.get_current_span(get_stored_context()) is outer

    def test_use_stored_context_restores_previous(self, span_exporter):
        with trace.get_tracer("test").start_as_current_span("outer") as outer:
            with use_stored_context():
                assert trace.get_current_span() is outer
            assert trace.get_current_span() is outer


@pytest.mark.unit
class TestSetTraceOutput:
    @pytest.mark.asyncio
    async def test_writes_output_when_capturing(self, span_exporter, capture_payloads):
        tracer = trace.get_tracer("test")
        with tracer.start_as_current_span("root") as root:

            async def body():
                set_trace_output("=== Answer ===\nAll pods healthy", "All pods healthy")

            await store_and_run(trace.set_span_in_context(root), root, body)

        (span,) = span_exporter.get_finished_spans()
        assert span.attributes["traceloop.entity.output"] == "=== Answer ===\nAll pods healthy"
        messages = json.loads(span.attributes["gen_ai.output.messages"])
        assert messages == [
            {"role": "assistant", "parts": [{"type": "text", "content": "All pods healthy"}]}
        ]

    @pytest.mark.asyncio
    async def test_nothing_written_without_capture(self, span_exporter):
        tracer = trace.get_tracer("test")
        with tracer.start_as_current_span("root") as root:

            async def body():
                set_trace_output("secret output", "secret answer")

            await store_and_run(trace.set_span_in_context(root), root, body)

        (span,) = span_exporter.get_finished_spans()
        assert "traceloop.entity.output" not in span.attributes
        assert "gen_ai.output.messages" not in span.attributes

    def test_noop_outside_root(self, capture_payloads):
        set_trace_output("output", "answer")
