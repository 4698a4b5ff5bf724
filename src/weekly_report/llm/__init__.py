"""
Language model integration for weekly_report.

This package contains the HTTP clients for text-generation services
(:class:`ChatCompletionClient` for OpenAI-compatible APIs such as
DeepSeek, :class:`OllamaClient` for a local Ollama server) and the
:class:`CommitClassifier` which uses them to turn commits into report
entries.
"""

from .ollama_client import LLMError, OllamaClient  # noqa: F401
from .chat_client import ChatCompletionClient  # noqa: F401
from .commit_classifier import CommitClassifier  # noqa: F401
from .factory import build_llm_client  # noqa: F401
