"""
Root spans for one investigation (CLI) or one MCP tool call.

Both helpers open an INTERNAL span, store it in the context bridge for the
duration of the body, and end it whatever happens. They differ in attributes
and in how failure is detected:

  trace_investigation  failure = the body raised
  trace_mcp_request    failure = the body raised, or returned isError=True
                       (status ERROR, no exception recorded, normal return)
"""

import json
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Mapping, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Span, SpanKind, Status, StatusCode

from cluster_investigator.observability.context_bridge import store_and_run
from cluster_investigator.observability.semconv import (
    GenAIAttributes,
    InvestigatorAttributes,
    TraceloopAttributes,
)
from cluster_investigator.observability.tracing import get_tracer, is_capture_ai_payloads

logger = logging.getLogger(__name__)

T = TypeVar("T")

McpToolResult = Dict[str, Any]

INVESTIGATE_SPAN_NAME = "cluster-investigator.investigate"
MCP_SPAN_PREFIX = "cluster-investigator.mcp."
DEFAULT_MCP_ERROR_MESSAGE = "MCP tool returned error"


def _mark_exception(span: Span, exc: BaseException) -> None:
    span.set_status(Status(StatusCode.ERROR, str(exc)))
    span.record_exception(exc)


def mcp_result_text(result: Mapping[str, Any]) -> str:
    """Join the text parts of an MCP tool result."""
    parts: List[str] = []
    for item in result.get("content") or []:
        if isinstance(item, Mapping):
            text, kind = item.get("text"), item.get("type")
        else:
            text, kind = getattr(item, "text", None), getattr(item, "type", None)
        if kind == "text" and text:
            parts.append(text)
    return "\n".join(parts)


async def _run_as_root(span: Span, fn: Callable[[], Awaitable[T]]) -> T:
    bridged = trace.set_span_in_context(span)
    return await store_and_run(bridged, span, fn)


async def trace_investigation(question: str, fn: Callable[[], Awaitable[T]]) -> T:
    """
    Run an investigation under a root workflow span.

    fn should call set_trace_output() once the final answer is known.

    Args:
        question: The user's question (recorded only with payload capture)
        fn: Async callable running the agent

    Returns:
        fn's result
    """
    attributes: Dict[str, Any] = {
        InvestigatorAttributes.OPERATION: "investigate",
        TraceloopAttributes.SPAN_KIND: TraceloopAttributes.WORKFLOW_KIND,
        TraceloopAttributes.ENTITY_NAME: "investigate",
    }
    if is_capture_ai_payloads():
        attributes[InvestigatorAttributes.USER_QUESTION] = question
        attributes[TraceloopAttributes.ENTITY_INPUT] = question

    with get_tracer().start_as_current_span(
        INVESTIGATE_SPAN_NAME,
        kind=SpanKind.INTERNAL,
        attributes=attributes,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            result = await _run_as_root(span, fn)
        except Exception as exc:
            _mark_exception(span, exc)
            raise
        span.set_status(Status(StatusCode.OK))
        return result


async def trace_mcp_request(
    tool_name: str,
    tool_input: Mapping[str, Any],
    fn: Callable[[], Awaitable[McpToolResult]],
) -> McpToolResult:
    """
    Run one MCP tool call under a root span.

    An isError result is a logical failure: the span gets ERROR with the
    result text as message, but no exception, and the result is returned.

    Args:
        tool_name: MCP tool name (e.g. "investigate")
        tool_input: Tool arguments (recorded only with payload capture)
        fn: Async callable producing {"content": [...], "isError": bool}
    """
    attributes: Dict[str, Any] = {
        InvestigatorAttributes.OPERATION: tool_name,
        TraceloopAttributes.SPAN_KIND: TraceloopAttributes.WORKFLOW_KIND,
        TraceloopAttributes.ENTITY_NAME: tool_name,
        InvestigatorAttributes.MCP_TOOL_NAME: tool_name,
        GenAIAttributes.OPERATION: GenAIAttributes.TOOL_EXECUTION_OPERATION,
        GenAIAttributes.TOOL_NAME: tool_name,
        GenAIAttributes.TOOL_TYPE: GenAIAttributes.FUNCTION_TOOL_TYPE,
        GenAIAttributes.TOOL_CALL_ID: str(uuid.uuid4()),
    }
    capture = is_capture_ai_payloads()
    if capture:
        attributes[TraceloopAttributes.ENTITY_INPUT] = json.dumps(dict(tool_input), default=str)

    with get_tracer().start_as_current_span(
        f"{MCP_SPAN_PREFIX}{tool_name}",
        kind=SpanKind.INTERNAL,
        attributes=attributes,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            result = await _run_as_root(span, fn)
        except Exception as exc:
            _mark_exception(span, exc)
            raise

        text = mcp_result_text(result)
        if result.get("isError"):
            span.set_status(Status(StatusCode.ERROR, text or DEFAULT_MCP_ERROR_MESSAGE))
            logger.debug("MCP tool %s returned an error result", tool_name)
        else:
            span.set_status(Status(StatusCode.OK))

        # set_trace_output() from the body takes precedence over the bare result text
        recorded = getattr(span, "attributes", None) or {}
        if capture and text and TraceloopAttributes.ENTITY_OUTPUT not in recorded:
            span.set_attribute(TraceloopAttributes.ENTITY_OUTPUT, text)
        return result
