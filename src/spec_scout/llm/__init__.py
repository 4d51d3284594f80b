"""Generative-model providers."""

from .providers import DEFAULT_MODEL, LLMProvider, OpenAIProvider

__all__ = ["DEFAULT_MODEL", "LLMProvider", "OpenAIProvider"]
