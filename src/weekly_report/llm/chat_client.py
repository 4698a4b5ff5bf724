"""
Client for OpenAI-compatible chat completion services.

DeepSeek, OpenAI and most hosted providers accept the same
``POST {base_url}/chat/completions`` request. The client sends a single
user message and returns the assistant's text, raising :class:`LLMError`
on any failure so callers can fall back deterministically.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from weekly_report.llm.ollama_client import LLMError, strip_thinking_tags


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


DEEPSEEK_BASE_URL = "https://api.deepseek.com"
DEEPSEEK_MODEL = "deepseek-chat"


@dataclass
class ChatCompletionClient:
    """Client for an OpenAI-compatible ``/chat/completions`` endpoint.

    Parameters
    ----------
    api_key : str
        Bearer token sent in the ``Authorization`` header.
    model : str
        Model identifier, e.g. ``"deepseek-chat"``.
    base_url : str
        Service root without the ``/chat/completions`` suffix.
    request_timeout : float, optional
        Timeout in seconds for HTTP requests. Defaults to 60 seconds.
    max_tokens : int, optional
        Default completion budget when a call does not pass one.
    """

    api_key: str
    model: str = DEEPSEEK_MODEL
    base_url: str = DEEPSEEK_BASE_URL
    request_timeout: float = 60.0
    max_tokens: Optional[int] = None

    def _endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"

    def generate(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Send ``prompt`` as a single user message and return the reply.

        Raises
        ------
        LLMError
            On connection errors, timeouts, non-200 responses or a payload
            without a message.
        """
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "stream": False,
        }
        if temperature is not None:
            payload["temperature"] = temperature
        budget = max_tokens if max_tokens is not None else self.max_tokens
        if budget is not None:
            payload["max_tokens"] = budget
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        url = self._endpoint()
        logger.debug("Sending chat completion to %s (model=%s)", url, self.model)
        try:
            response = requests.post(
                url, json=payload, headers=headers, timeout=self.request_timeout
            )
        except requests.RequestException as exc:
            logger.error("Failed to connect to LLM: %s", exc)
            raise LLMError(str(exc)) from exc
        if response.status_code != 200:
            logger.error(
                "LLM returned non-200 status %s: %s", response.status_code, response.text
            )
            raise LLMError(f"LLM returned status {response.status_code}: {response.text}")
        try:
            data = response.json()
        except ValueError as exc:
            logger.error("Failed to parse LLM response: %s", exc)
            raise LLMError("Failed to parse LLM response") from exc
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise LLMError("Unexpected response structure from LLM") from exc
        return strip_thinking_tags(str(content or ""))
