"""
Tracing wrapper for tool handlers.

Every invocation:
  1. re-activates the bridged root context (the agent runtime dropped it),
  2. lets traceloop's ``tool`` helper open the "<name>.tool" span, so tool
     spans look like every other OpenLLMetry span; the helper records the
     tool input, the result and any exception on it,
  3. adds the GenAI semantic-convention tool attributes to that same span,
  4. with payload capture on, records serialized arguments and result.

The handler's return value and exceptions pass through untouched.

A result with isError=True still gets status OK here: the tool ran correctly
and reported an unhealthy cluster. Only the root MCP span treats isError as a
failed request.
"""

import functools
import json
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, TypeVar, Union

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from pydantic import BaseModel

from cluster_investigator.observability.context_bridge import run_with_stored_context
from cluster_investigator.observability.semconv import GenAIAttributes
from cluster_investigator.observability.tracing import is_capture_ai_payloads, with_tool

InputT = TypeVar("InputT")
ResultT = TypeVar("ResultT")


@dataclass(frozen=True)
class ToolTracingConfig:
    name: str
    description: str = ""


def serialize_payload(value: Any) -> str:
    """Render a tool argument or result as a span attribute string."""
    if isinstance(value, str):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    return json.dumps(value, default=str)


def _as_config(config: Union[ToolTracingConfig, Mapping[str, Any]]) -> ToolTracingConfig:
    if isinstance(config, ToolTracingConfig):
        return config
    return ToolTracingConfig(name=config["name"], description=config.get("description") or "")


def with_tool_tracing(
    config: Union[ToolTracingConfig, Mapping[str, Any]],
    handler: Callable[[InputT], Awaitable[ResultT]],
) -> Callable[[InputT], Awaitable[ResultT]]:
    """
    Wrap an async tool handler with a tool span.

    Args:
        config: Tool name and description
        handler: Async handler taking a single input

    Returns:
        An async handler with the same signature and behavior
    """
    cfg = _as_config(config)

    async def _invoke(tool_input: InputT, parent: trace.Span) -> ResultT:
        span = trace.get_current_span()
        if span is parent:
            # No tool span was opened; leave the parent's attributes alone
            return await handler(tool_input)

        span.set_attributes(
            {
                GenAIAttributes.OPERATION: GenAIAttributes.TOOL_EXECUTION_OPERATION,
                GenAIAttributes.TOOL_NAME: cfg.name,
                GenAIAttributes.TOOL_TYPE: GenAIAttributes.FUNCTION_TOOL_TYPE,
                GenAIAttributes.TOOL_CALL_ID: str(uuid.uuid4()),
                GenAIAttributes.TOOL_DESCRIPTION: cfg.description,
            }
        )
        capture = is_capture_ai_payloads()
        if capture:
            span.set_attribute(GenAIAttributes.TOOL_ARGUMENTS, serialize_payload(tool_input))

        # Exceptions propagate; the tool helper records them on this span and sets ERROR
        result = await handler(tool_input)

        if capture:
            span.set_attribute(GenAIAttributes.TOOL_RESULT, serialize_payload(result))
        span.set_status(Status(StatusCode.OK))
        return result

    @functools.wraps(handler)
    async def traced(tool_input: InputT) -> ResultT:
        async def _in_bridged_context() -> ResultT:
            parent = trace.get_current_span()
            return await with_tool(cfg.name, lambda value: _invoke(value, parent), tool_input)

        return await run_with_stored_context(_in_bridged_context)

    return traced
