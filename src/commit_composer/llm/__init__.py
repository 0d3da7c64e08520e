"""
Text summarizer collaborators for commit_composer.

This package contains the :class:`OllamaClient` for communicating with
an Ollama LLM server and the summarizers that turn a change group into
description and body text.
"""

from .ollama_client import LLMError, LLMTimeout, OllamaClient  # noqa: F401
from .summarizer import OllamaSummarizer, Summarizer, Summary, TemplateSummarizer  # noqa: F401
