"""Inference backend selection.

Both providers expose the same two capabilities: embed(text) for the
embedding client and chat(prompt) for the LLM client.
"""

import logging
from typing import Any

import requests

from risk_similarity.embeddings.client import EmbeddingClient
from risk_similarity.llm.client import LLMClient

logger = logging.getLogger(__name__)

PROVIDERS = ("ollama", "vertex")


def build_clients(config: dict[str, Any]) -> tuple[Any, Any]:
    """Create the (embedding_client, llm_client) pair for the configured provider.

    Args:
        config: Application configuration dict.

    Returns:
        Embedding client and LLM client.

    Raises:
        ValueError: If the provider is unknown or Vertex AI has no project.
    """
    llm_config = config.get("llm", {})
    provider = llm_config.get("provider", "ollama")

    if provider == "ollama":
        base_url = llm_config.get("base_url", "http://localhost:11434")
        timeout = llm_config.get("timeout_seconds", 30)
        # One connection pool for both endpoints
        session = requests.Session()
        embedding_client = EmbeddingClient(
            base_url=base_url,
            model_name=llm_config.get("embedding_model", "nomic-embed-text"),
            timeout=timeout,
            session=session,
        )
        llm_client = LLMClient(
            base_url=base_url,
            model_name=llm_config.get("chat_model", "llama2"),
            timeout=timeout,
            session=session,
        )
        return embedding_client, llm_client

    if provider == "vertex":
        gcp = config.get("gcp", {})
        if not gcp.get("project_id"):
            raise ValueError("gcp.project_id is required for the vertex provider")

        # The Vertex AI SDK is only imported when selected
        from risk_similarity.embeddings.vertex import VertexEmbeddingClient
        from risk_similarity.llm.vertex import VertexLLMClient

        vertex_config = config.get("vertex_ai", {})
        region = gcp.get("region", "us-east4")
        embedding_client = VertexEmbeddingClient(
            project_id=gcp["project_id"],
            region=region,
            model_name=vertex_config.get("embedding_model", "text-embedding-004"),
        )
        llm_client = VertexLLMClient(
            project_id=gcp["project_id"],
            region=region,
            model_name=vertex_config.get("generative_model", "gemini-1.5-flash"),
        )
        return embedding_client, llm_client

    raise ValueError(f"Unknown LLM provider {provider!r}; expected one of {PROVIDERS}")
