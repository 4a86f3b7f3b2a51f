"""Base class for the chat models that drive the planner."""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional


class LLMProvider(ABC):
    """A chat model the planner can ask for its next step."""

    name = "llm"

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> str:
        """Return the model's reply to prompt; extra kwargs go to the provider API."""

    def as_planner_callable(self) -> Callable[[str, Optional[str]], Awaitable[str]]:
        """Adapt generate() to the planner's (prompt, system_prompt) signature."""

        async def _generate(prompt: str, system_prompt: Optional[str] = None) -> str:
            return await self.generate(prompt, system_prompt=system_prompt)

        return _generate
