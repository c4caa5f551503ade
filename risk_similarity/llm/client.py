"""Ollama chat client.

Sends a single non-streaming chat request and returns the message text.
Errors are raised to the caller; the similarity scorer decides how to
degrade.
"""

import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 30.0


class LLMClient:
    """Client for the Ollama /api/chat endpoint."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model_name: str = "llama2",
        timeout: float = _DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the LLM client.

        Args:
            base_url: Ollama endpoint, e.g. http://localhost:11434.
            model_name: Chat model name.
            timeout: Request timeout in seconds.
            session: Optional requests session (shared or mocked).
        """
        self.base_url = base_url.rstrip("/")
        self.model_name = model_name
        self.timeout = timeout
        self.session = session or requests.Session()
        logger.info(
            "LLMClient initialized: model=%s, endpoint=%s", model_name, self.base_url
        )

    def chat(self, prompt: str) -> str:
        """Send one user message and return the reply text.

        Args:
            prompt: User message content.

        Returns:
            The reply content ("" if the backend sent none).

        Raises:
            requests.RequestException: On network errors or non-2xx status.
            ValueError: If the response body is not JSON.
        """
        response = self.session.post(
            f"{self.base_url}/api/chat",
            json={
                "model": self.model_name,
                "messages": [{"role": "user", "content": prompt}],
                "stream": False,
            },
            timeout=self.timeout,
        )
        response.raise_for_status()

        data = response.json()
        if not isinstance(data, dict):
            raise ValueError("Chat response is not a JSON object")

        message = data.get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        return content or data.get("response") or ""
