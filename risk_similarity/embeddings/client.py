"""Ollama embedding client.

Turns normalized risk text into an embedding vector via the Ollama
/api/embeddings endpoint. Any failure is reported as None, never raised.
"""

import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 30.0


class EmbeddingClient:
    """Client for Ollama text embeddings."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model_name: str = "nomic-embed-text",
        timeout: float = _DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the embedding client.

        Args:
            base_url: Ollama endpoint, e.g. http://localhost:11434.
            model_name: Embedding model name.
            timeout: Request timeout in seconds.
            session: Optional requests session (shared or mocked).
        """
        self.base_url = base_url.rstrip("/")
        self.model_name = model_name
        self.timeout = timeout
        self.session = session or requests.Session()
        logger.info(
            "EmbeddingClient initialized: model=%s, endpoint=%s",
            model_name,
            self.base_url,
        )

    def embed(self, text: str) -> Optional[list[float]]:
        """Get the embedding for a piece of text.

        Args:
            text: Text to embed (normally the output of normalize_risk_text).

        Returns:
            Embedding vector, or None if the text is blank or the backend
            could not produce one.
        """
        prompt = (text or "").strip()
        if not prompt:
            return None

        url = f"{self.base_url}/api/embeddings"
        try:
            response = self.session.post(
                url,
                json={"model": self.model_name, "prompt": prompt},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(
                "Embedding request to %s failed: %s. Make sure Ollama is running "
                "and model '%s' supports embeddings",
                url,
                e,
                self.model_name,
            )
            return None

        if not response.ok:
            logger.error(
                "Embedding request failed: HTTP %d: %s. Model '%s' may not "
                "support embeddings (try: ollama pull nomic-embed-text)",
                response.status_code,
                response.text,
                self.model_name,
            )
            return None

        try:
            data = response.json()
        except ValueError as e:
            logger.error("Embedding response was not valid JSON: %s", e)
            return None

        embedding = data.get("embedding") if isinstance(data, dict) else None
        if not isinstance(embedding, list) or not embedding:
            logger.error(
                "Model '%s' returned no embedding; it does not support "
                "embeddings. Configure an embedding model such as nomic-embed-text",
                self.model_name,
            )
            return None

        try:
            vector = [float(v) for v in embedding]
        except (TypeError, ValueError):
            logger.error("Model '%s' returned a non-numeric embedding", self.model_name)
            return None

        logger.debug(
            "Generated embedding of length %d for text: %.50s",
            len(vector),
            prompt,
        )
        return vector
