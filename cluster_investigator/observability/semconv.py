"""Span attribute names.

Two vocabularies are written side by side on the same spans: OpenLLMetry's
``traceloop.*`` attributes and the OpenTelemetry GenAI semantic conventions
(https://opentelemetry.io/docs/specs/semconv/gen-ai/). Backends that read only
one of them still see complete spans.
"""


class GenAIAttributes:
    """OpenTelemetry GenAI semantic convention attributes."""

    OPERATION = "gen_ai.operation.name"
    TOOL_NAME = "gen_ai.tool.name"
    TOOL_TYPE = "gen_ai.tool.type"
    TOOL_CALL_ID = "gen_ai.tool.call.id"
    TOOL_DESCRIPTION = "gen_ai.tool.description"
    TOOL_ARGUMENTS = "gen_ai.tool.call.arguments"
    TOOL_RESULT = "gen_ai.tool.call.result"
    TOOL_DEFINITIONS = "gen_ai.tool.definitions"
    OUTPUT_MESSAGES = "gen_ai.output.messages"

    TOOL_EXECUTION_OPERATION = "execute_tool"
    FUNCTION_TOOL_TYPE = "function"


class TraceloopAttributes:
    """OpenLLMetry (traceloop) attributes."""

    SPAN_KIND = "traceloop.span.kind"
    ENTITY_NAME = "traceloop.entity.name"
    ENTITY_INPUT = "traceloop.entity.input"
    ENTITY_OUTPUT = "traceloop.entity.output"

    WORKFLOW_KIND = "workflow"


class InvestigatorAttributes:
    """Attributes namespaced to this service."""

    OPERATION = "cluster_investigator.service.operation"
    USER_QUESTION = "cluster_investigator.user.question"
    MCP_TOOL_NAME = "cluster_investigator.mcp.tool.name"


# Span names the LLM auto-instrumentation uses for chat completions
LLM_CHAT_SPAN_NAMES = frozenset({"openai.chat", "anthropic.chat"})
