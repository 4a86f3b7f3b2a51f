"""Mock LLM provider for testing."""

from typing import Any, Dict, List, Optional

from opentelemetry import trace

from cluster_investigator.llm.base import LLMProvider


class MockLLMProvider(LLMProvider):
    """Mock LLM provider replaying scripted responses in order."""

    def __init__(self, responses: Optional[List[str]] = None, emit_chat_span: bool = False):
        """
        Initialize mock LLM provider.

        Args:
            responses: Responses returned by successive generate() calls
            emit_chat_span: Open an "openai.chat" span per call, like the auto-instrumentation does
        """
        self.responses = list(responses or [])
        self.emit_chat_span = emit_chat_span
        self.call_history: List[Dict[str, Any]] = []
        self.default_response = '{"action": "finish", "answer": "This is a mock LLM response."}'

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> str:
        """Generate a mock response."""
        self.call_history.append(
            {
                "prompt": prompt,
                "system_prompt": system_prompt,
                "temperature": temperature,
                "max_tokens": max_tokens,
                **kwargs,
            }
        )
        response = self.responses.pop(0) if self.responses else self.default_response
        if self.emit_chat_span:
            with trace.get_tracer("opentelemetry.instrumentation.openai").start_as_current_span("openai.chat"):
                return response
        return response

    def reset(self):
        """Reset call history."""
        self.call_history = []
