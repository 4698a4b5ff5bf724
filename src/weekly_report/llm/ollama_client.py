"""
Client for interacting with an Ollama LLM server.

This client wraps HTTP requests to the Ollama REST API via the
`/api/generate` endpoint. On error conditions (HTTP errors, timeouts,
unexpected payloads), a :class:`LLMError` is raised. The module also
hosts the helpers shared by every text-generation client.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


class LLMError(Exception):
    """Raised when communication with the LLM server fails."""

    pass


_THINKING_PATTERNS = [
    r"<think>.*?</think>",
    r"<thinking>.*?</thinking>",
    r"<thought>.*?</thought>",
    r"<reasoning>.*?</reasoning>",
]


def strip_thinking_tags(text: str) -> str:
    """Remove reasoning blocks from an LLM response.

    Reasoning models often wrap their chain of thought in tags such as
    ``<think>``. Those blocks and their contents are dropped, leaving only
    the answer.

    Examples
    --------
    >>> strip_thinking_tags("<think>reasoning...</think>Answer")
    'Answer'
    >>> strip_thinking_tags("<thinking>thoughts</thinking>\\n\\n[1, 2]")
    '[1, 2]'
    """
    result = text
    for pattern in _THINKING_PATTERNS:
        result = re.sub(pattern, "", result, flags=re.DOTALL | re.IGNORECASE)
    return result.strip()


@dataclass
class OllamaClient:
    """Client for interacting with an Ollama server.

    Parameters
    ----------
    base_url : str
        Base URL of the Ollama server, e.g. ``"http://localhost"``.
    port : int
        Port number of the Ollama server, e.g. ``11434``.
    model : str
        Name of the model to use for generation, e.g. ``"llama3"``.
    request_timeout : float, optional
        Timeout in seconds for HTTP requests. Defaults to 60 seconds.
    max_tokens : int, optional
        Default maximum number of tokens to generate, used when a call does
        not pass its own budget.
    """

    base_url: str
    port: int
    model: str
    request_timeout: float = 60.0
    max_tokens: Optional[int] = None

    def _endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}:{self.port}/api/generate"

    def generate(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Generate a completion from the model.

        Parameters
        ----------
        prompt : str
            The prompt to send to the model.
        temperature : float, optional
            Sampling temperature for this call.
        max_tokens : int, optional
            Token budget for this call; overrides the client default.

        Returns
        -------
        str
            The generated response text with reasoning blocks removed.

        Raises
        ------
        LLMError
            If the request fails or the server returns an error.
        """
        payload: Dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
        }
        options: Dict[str, Any] = {}
        budget = max_tokens if max_tokens is not None else self.max_tokens
        if budget is not None:
            options["num_predict"] = budget
        if temperature is not None:
            options["temperature"] = temperature
        if options:
            payload["options"] = options
        url = self._endpoint()
        logger.debug("Sending request to LLM at %s with payload: %s", url, payload)
        try:
            response = requests.post(url, json=payload, timeout=self.request_timeout)
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
        # /api/generate answers in 'response'; /api/chat style payloads use
        # 'message.content'.
        if isinstance(data, dict) and "response" in data:
            return strip_thinking_tags(str(data.get("response") or ""))
        if isinstance(data, dict) and isinstance(data.get("message"), dict):
            return strip_thinking_tags(str(data["message"].get("content") or ""))
        raise LLMError("Unexpected response structure from LLM")
