"""OpenAI LLM provider implementation.

Calls made through this client are auto-instrumented by OpenLLMetry when
tracing is ready; they appear as "openai.chat" spans under the active root span.
"""

from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from cluster_investigator.core.config import settings
from cluster_investigator.core.exceptions import LLMProviderError
from cluster_investigator.llm.base import LLMProvider


class OpenAIProvider(LLMProvider):
    """OpenAI provider using GPT models."""

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Model identifier
            client: Preconfigured client (tests)
        """
        self.model = model or settings.openai_model
        self.client = client or AsyncOpenAI(api_key=api_key or settings.openai_api_key or None)

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> str:
        messages: List[Dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=settings.llm_temperature if temperature is None else temperature,
                max_tokens=max_tokens or settings.llm_max_tokens,
                **kwargs,
            )
        except OpenAIError as e:
            raise LLMProviderError(f"OpenAI request failed: {e}", provider=self.name) from e

        if not response.choices:
            raise LLMProviderError("OpenAI returned no choices", provider=self.name)
        return response.choices[0].message.content or ""
