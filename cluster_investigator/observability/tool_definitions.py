"""
Span processor that adds tool definitions to LLM chat spans.

The "openai.chat" spans are created by OpenLLMetry's auto-instrumentation,
which we do not control. A SpanProcessor sees every span at start, so it can
annotate those spans with gen_ai.tool.definitions: the tools the model could
call during that reasoning step.

Tool metadata is static for the process, so the JSON is built once, on the
first matching span, and reused. The tool registry is imported lazily: this
module is loaded by tracing initialization, before the tools are.
"""

import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from opentelemetry.context import Context
from opentelemetry.sdk.trace import ReadableSpan, Span, SpanProcessor

from cluster_investigator.observability.semconv import LLM_CHAT_SPAN_NAMES, GenAIAttributes

logger = logging.getLogger(__name__)

DefinitionsProvider = Callable[[], List[Dict[str, Any]]]


def _registry_definitions() -> List[Dict[str, Any]]:
    from cluster_investigator.core.tool_registry import get_tool_registry

    return get_tool_registry().get_definitions()


class ToolDefinitionsProcessor(SpanProcessor):
    """Sets gen_ai.tool.definitions on LLM chat spans."""

    def __init__(
        self,
        definitions_provider: Optional[DefinitionsProvider] = None,
        span_names: Iterable[str] = LLM_CHAT_SPAN_NAMES,
    ):
        self._definitions_provider = definitions_provider or _registry_definitions
        self._span_names = frozenset(span_names)
        self._cached_json: Optional[str] = None

    def _tool_definitions_json(self) -> str:
        if self._cached_json is None:
            from cluster_investigator.core.tool_registry import tools_to_openai_schema

            self._cached_json = json.dumps(tools_to_openai_schema(self._definitions_provider()))
            logger.debug("Cached tool definitions for LLM spans")
        return self._cached_json

    def on_start(self, span: Span, parent_context: Optional[Context] = None) -> None:
        if span.name in self._span_names:
            span.set_attribute(GenAIAttributes.TOOL_DEFINITIONS, self._tool_definitions_json())

    def on_end(self, span: ReadableSpan) -> None:
        pass

    def shutdown(self) -> None:
        pass

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return True
