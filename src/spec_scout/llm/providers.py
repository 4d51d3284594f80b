"""Text-generation providers for the model-backed agents.

A provider turns a prompt into raw text; parsing and verdict mapping stay in
``spec_scout.agents.llm``. Only OpenAI-compatible endpoints are supported,
which covers hosted OpenAI as well as local servers exposing the same API.
"""

from __future__ import annotations

import os
from typing import Any, Optional, Protocol, runtime_checkable

from ..exceptions import ProviderError
from ..logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = 1024


@runtime_checkable
class LLMProvider(Protocol):
    """Anything that can answer a prompt with text."""

    def generate(self, prompt: str, system_prompt: str) -> str: ...


class OpenAIProvider:
    """Chat-completions provider backed by the ``openai`` client.

    Args:
        model: Model name sent with every request
        base_url: OpenAI-compatible endpoint; None uses the client default
        api_key: Explicit key; falls back to ``OPENAI_API_KEY``
        timeout: Client-side request timeout in seconds
    """

    name = "openai"

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> None:
        try:
            from openai import OpenAI
        except ImportError:
            raise ProviderError(
                self.name,
                "the 'openai' package is not installed (pip install spec-scout[llm])",
            )

        key = api_key or os.environ.get("OPENAI_API_KEY", "")
        if not key and not base_url:
            raise ProviderError(self.name, "no API key; set OPENAI_API_KEY or pass a base URL")

        client_kwargs: dict[str, Any] = {"api_key": key or "not-needed", "timeout": timeout}
        if base_url:
            client_kwargs["base_url"] = base_url

        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = OpenAI(**client_kwargs)

    def generate(self, prompt: str, system_prompt: str) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": prompt},
                ],
            )
        except Exception as e:
            raise ProviderError(self.name, str(e)) from e

        content = response.choices[0].message.content
        logger.debug(f"{self.name} returned {len(content or '')} characters")
        return content or ""
