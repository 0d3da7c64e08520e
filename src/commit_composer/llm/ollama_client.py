"""
Client for interacting with an Ollama LLM server.

This client wraps HTTP requests to the Ollama REST API ``/api/chat``
endpoint. Transport problems are reported as :class:`LLMError`, which is
a :class:`CollaboratorFailure`; timeouts raise :class:`LLMTimeout` so the
composer can degrade the affected group instead of hanging.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from commit_composer.errors import CollaboratorFailure, CollaboratorTimeout


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


class LLMError(CollaboratorFailure):
    """Raised when communication with the LLM server fails."""


class LLMTimeout(LLMError, CollaboratorTimeout):
    """Raised when the LLM server does not answer within the timeout."""


_THINKING_PATTERNS = [
    r"<think>.*?</think>",
    r"<thinking>.*?</thinking>",
    r"<thought>.*?</thought>",
    r"<reasoning>.*?</reasoning>",
]


def strip_thinking_tags(text: str) -> str:
    """Remove reasoning blocks such as ``<think>...</think>`` from a response.

    Examples
    --------
    >>> strip_thinking_tags("<think>reasoning...</think>Answer")
    'Answer'
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
        Maximum number of tokens to generate, passed as ``num_predict``.
    """

    base_url: str
    port: int
    model: str
    request_timeout: float = 60.0
    max_tokens: Optional[int] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "OllamaClient":
        """Build a client from the ``ollama`` section of the configuration."""
        return cls(
            base_url=config["base_url"],
            port=config["port"],
            model=config["model"],
            request_timeout=float(config.get("request_timeout", 60)),
            max_tokens=config.get("max_tokens"),
        )

    def _endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}:{self.port}/api/chat"

    def chat(self, prompt: str, system: Optional[str] = None, timeout: Optional[float] = None) -> str:
        """Send a single-turn chat request and return the assistant text.

        Parameters
        ----------
        prompt : str
            The user message.
        system : str, optional
            System instructions sent before the prompt.
        timeout : float, optional
            Overrides ``request_timeout`` for this call.

        Raises
        ------
        LLMTimeout
            If the server does not answer in time.
        LLMError
            If the request fails or the server returns an error.
        """
        messages: List[Dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        options: Dict[str, Any] = {"temperature": 0}
        if self.max_tokens is not None:
            options["num_predict"] = self.max_tokens
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "options": options,
        }
        url = self._endpoint()
        logger.debug("Sending chat request to LLM at %s (model %s)", url, self.model)
        try:
            response = requests.post(
                url,
                json=payload,
                timeout=timeout if timeout is not None else self.request_timeout,
            )
        except requests.Timeout as exc:
            logger.error("LLM request timed out: %s", exc)
            raise LLMTimeout(str(exc)) from exc
        except requests.RequestException as exc:
            logger.error("Failed to connect to LLM: %s", exc)
            raise LLMError(str(exc)) from exc
        if response.status_code != 200:
            logger.error("LLM returned non-200 status %s: %s", response.status_code, response.text)
            raise LLMError(f"LLM returned status {response.status_code}: {response.text}")
        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            logger.error("Failed to parse LLM response: %s", exc)
            raise LLMError("Failed to parse LLM response") from exc
        if isinstance(data.get("message"), dict):
            return strip_thinking_tags(data["message"].get("content", ""))
        # /api/generate style payloads carry the text in 'response'.
        if "response" in data:
            return strip_thinking_tags(data.get("response", ""))
        raise LLMError("Unexpected response structure from LLM")
