"""OpenAI (and OpenAI-compatible, e.g. OpenRouter) LLM provider."""

import asyncio
import json
from typing import Optional

import openai

from ..log import get_logger
from .base import LLMProvider

logger = get_logger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

_MAX_OUTPUT = 1024


class OpenAIProvider(LLMProvider):
    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: Optional[str] = None,
        summary_model: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self._client = openai.AsyncOpenAI(api_key=api_key, base_url=base_url)
        self._model = model
        self._summary_model = summary_model or model
        # Reasoning-era models reject max_tokens; flipped on the first
        # "unsupported parameter" error and remembered after that
        self._use_max_completion_tokens = not self._is_legacy_model(model)

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
        request = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "tools": [{
                "type": "function",
                "function": {
                    "name": tool_name,
                    "description": description,
                    "parameters": schema,
                },
            }],
            "tool_choice": {"type": "function", "function": {"name": tool_name}},
        }

        last_error = None
        for attempt in range(3):
            try:
                response = await self._call_api(request)
                break
            except openai.RateLimitError as e:
                last_error = e
                if attempt < 2:
                    await asyncio.sleep(2 ** (attempt + 1))
        else:
            raise RuntimeError(f"Rate limited after 3 attempts: {last_error}")

        if not response.choices:
            raise ValueError("Empty response: no choices returned")
        for call in response.choices[0].message.tool_calls or []:
            if call.function.name == tool_name:
                return json.loads(call.function.arguments)
        raise ValueError(f'No tool call found for tool "{tool_name}"')

    def _token_limit(self) -> dict:
        key = "max_completion_tokens" if self._use_max_completion_tokens else "max_tokens"
        return {key: _MAX_OUTPUT}

    async def _call_api(self, request: dict):
        create = self._client.chat.completions.create
        try:
            return await create(**request, **self._token_limit())
        except openai.BadRequestError as e:
            if "unsupported parameter" not in str(e).lower().replace("_", " "):
                raise
        self._use_max_completion_tokens = not self._use_max_completion_tokens
        logger.debug("token_limit_parameter_switched", model=request["model"], **self._token_limit())
        return await create(**request, **self._token_limit())

    @staticmethod
    def _is_legacy_model(model: str) -> bool:
        """True if the model takes max_tokens rather than max_completion_tokens."""
        legacy_prefixes = ("gpt-3.5", "gpt-4-", "gpt-4o", "gpt-4-turbo")
        # OpenRouter model ids are namespaced ("anthropic/claude-...") and
        # accept max_tokens
        return "/" in model or any(model.startswith(p) for p in legacy_prefixes)
