"""Vertex AI embedding client.

Alternative embedding backend with the same embed() contract as the
Ollama client, for deployments running on GCP.
"""

import logging
from typing import Optional

import vertexai
from vertexai.language_models import TextEmbeddingInput, TextEmbeddingModel

logger = logging.getLogger(__name__)


class VertexEmbeddingClient:
    """Client for Vertex AI text embeddings."""

    def __init__(
        self,
        project_id: str,
        region: str,
        model_name: str = "text-embedding-004",
        task_type: str = "SEMANTIC_SIMILARITY",
    ):
        """Initialize the embedding client.

        Args:
            project_id: GCP project ID.
            region: GCP region for Vertex AI endpoint.
            model_name: Embedding model name.
            task_type: Vertex AI task type used for every request.
        """
        vertexai.init(project=project_id, location=region)
        self.model = TextEmbeddingModel.from_pretrained(model_name)
        self.model_name = model_name
        self.task_type = task_type
        logger.info(
            "VertexEmbeddingClient initialized: model=%s, region=%s",
            model_name,
            region,
        )

    def embed(self, text: str) -> Optional[list[float]]:
        """Get the embedding for a piece of text, or None on any failure."""
        prompt = (text or "").strip()
        if not prompt:
            return None

        try:
            embeddings = self.model.get_embeddings(
                [TextEmbeddingInput(text=prompt, task_type=self.task_type)]
            )
        except Exception as e:
            logger.error(
                "Vertex AI embedding with model '%s' failed: %s", self.model_name, e
            )
            return None

        if not embeddings or not embeddings[0].values:
            logger.error("Vertex AI model '%s' returned no embedding", self.model_name)
            return None
        return list(embeddings[0].values)
