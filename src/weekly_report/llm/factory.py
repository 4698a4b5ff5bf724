"""
Build the text-generation client described by :class:`LLMSettings`.
"""

from __future__ import annotations

from typing import Union

from weekly_report.config.loader import PROVIDER_OLLAMA, LLMSettings
from weekly_report.llm.chat_client import ChatCompletionClient
from weekly_report.llm.ollama_client import OllamaClient


def build_llm_client(settings: LLMSettings) -> Union[ChatCompletionClient, OllamaClient]:
    """Return a client for the configured provider."""
    if settings.provider == PROVIDER_OLLAMA:
        return OllamaClient(
            base_url=settings.base_url,
            port=settings.port or 11434,
            model=settings.model,
            request_timeout=settings.request_timeout,
            max_tokens=settings.max_tokens,
        )
    return ChatCompletionClient(
        api_key=settings.api_key or "",
        model=settings.model,
        base_url=settings.base_url,
        request_timeout=settings.request_timeout,
        max_tokens=settings.max_tokens,
    )
