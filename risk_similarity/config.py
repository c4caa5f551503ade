"""Configuration loading for the risk similarity service."""

import copy
import logging
import os
from typing import Any

import yaml

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = "config/config.yaml"

DEFAULTS: dict[str, Any] = {
    "llm": {
        "provider": "ollama",
        "base_url": "http://localhost:11434",
        "embedding_model": "nomic-embed-text",
        "chat_model": "llama2",
        "timeout_seconds": 30,
        "max_embedding_text_length": 1024,
    },
    "vertex_ai": {
        "embedding_model": "text-embedding-004",
        "generative_model": "gemini-1.5-flash",
    },
    "gcp": {
        "region": "us-east4",
    },
    "similarity": {
        "threshold": 70,
        "draft_candidate_limit": 100,
        "min_title_length": 3,
    },
    "supplier_suggestions": {
        "threshold": 50,
        "candidate_limit": 100,
        "min_text_length": 10,
    },
    "risks_path": "data/risks.yaml",
}

# (env var, section or None for top level, key, type)
_ENV_OVERRIDES = [
    ("LLM_PROVIDER", "llm", "provider", str),
    ("OLLAMA_ENDPOINT", "llm", "base_url", str),
    ("LLM_BASE_URL", "llm", "base_url", str),
    ("OLLAMA_EMBEDDING_MODEL", "llm", "embedding_model", str),
    ("OLLAMA_CHAT_MODEL", "llm", "chat_model", str),
    ("LLM_TIMEOUT_SECONDS", "llm", "timeout_seconds", float),
    ("MAX_EMBEDDING_TEXT_LENGTH", "llm", "max_embedding_text_length", int),
    ("LLM_SIMILARITY_THRESHOLD", "similarity", "threshold", int),
    ("GCP_PROJECT_ID", "gcp", "project_id", str),
    ("GCP_REGION", "gcp", "region", str),
    ("RISKS_PATH", None, "risks_path", str),
]


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides in place and return the config."""
    for env_var, section, key, cast in _ENV_OVERRIDES:
        raw = os.environ.get(env_var)
        if not raw:
            continue
        try:
            value = cast(raw)
        except ValueError:
            raise ValueError(f"Invalid value for {env_var}: {raw!r}") from None
        if section is None:
            config[key] = value
        else:
            config.setdefault(section, {})[key] = value
        logger.debug("Config override from %s", env_var)
    return config


def load_config(config_path: str | None = None) -> dict[str, Any]:
    """Load configuration from YAML file with environment variable overrides.

    Args:
        config_path: Path to config YAML. Falls back to CONFIG_PATH env var,
                     then to config/config.yaml.

    Returns:
        Configuration dictionary, merged over the built-in defaults.
    """
    path = config_path or os.environ.get("CONFIG_PATH", _DEFAULT_CONFIG_PATH)
    logger.info("Loading config from %s", path)

    with open(path) as f:
        loaded = yaml.safe_load(f) or {}

    config = _merge(DEFAULTS, loaded)
    apply_env_overrides(config)

    threshold = config["similarity"]["threshold"]
    if not 0 <= threshold <= 100:
        raise ValueError(f"similarity.threshold must be within 0-100, got {threshold}")

    return config
