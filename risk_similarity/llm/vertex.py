"""Vertex AI Gemini chat client with the same chat() contract as LLMClient."""

import logging

import vertexai
from vertexai.generative_models import GenerationConfig, GenerativeModel

logger = logging.getLogger(__name__)


class VertexLLMClient:
    """Client for Vertex AI Gemini generative model."""

    def __init__(
        self,
        project_id: str,
        region: str,
        model_name: str = "gemini-1.5-flash",
    ):
        """Initialize the LLM client.

        Args:
            project_id: GCP project ID.
            region: GCP region for Vertex AI endpoint.
            model_name: Gemini model name.
        """
        vertexai.init(project=project_id, location=region)
        self.model = GenerativeModel(model_name)
        self.generation_config = GenerationConfig(
            response_mime_type="application/json",
            temperature=0.1,
            max_output_tokens=1024,
        )
        logger.info(
            "VertexLLMClient initialized: model=%s, region=%s", model_name, region
        )

    def chat(self, prompt: str) -> str:
        """Send the prompt and return the reply text. Errors propagate."""
        response = self.model.generate_content(
            prompt,
            generation_config=self.generation_config,
        )
        return response.text or ""
