"""Claude/Anthropic LLM provider."""

import asyncio
from typing import Optional

import anthropic

from .base import LLMProvider

# Summaries are cheap; categorization benefits from the stronger model
_SUMMARY_MODEL = "claude-haiku-4-5-20251001"
_MAX_OUTPUT = 1024


class AnthropicProvider(LLMProvider):
    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        summary_model: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self._client = anthropic.AsyncAnthropic(api_key=api_key)
        self._model = model
        self._summary_model = summary_model or _SUMMARY_MODEL

    @property
    def summary_model(self) -> str:
        return self._summary_model

    @property
    def categorization_model(self) -> str:
        return self._model

    async def _call_tool(
        self,
        tool_name: str,
        description: str,
        schema: dict,
        prompt: str,
        model: str,
    ) -> dict:
        last_error = None
        for attempt in range(3):
            try:
                response = await self._client.messages.create(
                    model=model,
                    max_tokens=_MAX_OUTPUT,
                    tools=[{
                        "name": tool_name,
                        "description": description,
                        "input_schema": schema,
                    }],
                    tool_choice={"type": "tool", "name": tool_name},
                    messages=[{"role": "user", "content": prompt}],
                )
                break
            except anthropic.RateLimitError as e:
                last_error = e
                if attempt < 2:
                    await asyncio.sleep(2 ** (attempt + 1))
        else:
            raise RuntimeError(f"Rate limited after 3 attempts: {last_error}")

        for block in response.content:
            if block.type == "tool_use" and block.name == tool_name:
                return dict(block.input)
        raise ValueError(f'No tool_use block found for tool "{tool_name}"')
