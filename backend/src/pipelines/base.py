import logging
from typing import Any, Optional

from adapters import BaseEmbedder, EmbeddingProvider, create_embedder
from config import get_config_value
from models import FilteringConfig

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1024
DEFAULT_CHUNK_OVERLAP = 50
DEFAULT_EMBEDDING = {"provider": "ollama", "model": "nomic-embed-text"}
DEFAULT_RERANKING = {"provider": "ollama", "model": "mxbai-embed-large"}

DEFAULT_SYSTEM_PREAMBLE = "You are a helpful assistant with access to a knowledge base."

KNOWLEDGE_CONTEXT_TEMPLATE = """==========================================
KNOWLEDGE BASE CONTEXT
==========================================

{context}

==========================================

IMPORTANT: Everything needed to answer the user's question is ALREADY in the "KNOWLEDGE BASE CONTEXT" section above.

INSTRUCTIONS:
1. Read the context above carefully.
2. Use ONLY this information to form your answer.
3. Do NOT ask the user to provide or re-send the text: it is already in the context.
4. Answer the user's question specifically, using information from the context.
5. If the context does not contain the needed information, say so, but do NOT ask for the text."""

# Keys of the [embedding] / [reranking] sections that are not embedder kwargs
_NON_EMBEDDER_KEYS = ("provider", "model", "enabled", "max_workers")


def _create_embedder_from_section(
    config: dict[str, Any], section: str, defaults: dict[str, str]
) -> BaseEmbedder:
    """Create an embedder from one config section."""
    section_config = config.get(section, {})
    provider = section_config.get("provider", defaults["provider"])
    model = section_config.get("model", defaults["model"])

    extra_kwargs = {
        k: v for k, v in section_config.items() if k not in _NON_EMBEDDER_KEYS
    }

    return create_embedder(provider, model=model, **extra_kwargs)


def create_embedder_from_config(config: dict[str, Any]) -> BaseEmbedder:
    """Create the primary embedder from configuration."""
    return _create_embedder_from_section(config, "embedding", DEFAULT_EMBEDDING)


def reranking_enabled(config: dict[str, Any]) -> bool:
    enabled = get_config_value(config, "reranking.enabled", False)
    if isinstance(enabled, str):
        return enabled.strip().lower() in ("1", "true", "yes", "on")
    return bool(enabled)


def create_embedding_provider_from_config(config: dict[str, Any]) -> EmbeddingProvider:
    """Create the primary/secondary embedding provider from configuration.

    The secondary (reranking) embedder is only created when
    ``reranking.enabled`` is true.
    """
    primary = create_embedder_from_config(config)
    secondary: Optional[BaseEmbedder] = None
    if reranking_enabled(config):
        secondary = _create_embedder_from_section(
            config, "reranking", DEFAULT_RERANKING
        )
        logger.info(f"Reranking enabled with model {secondary.model}")
    return EmbeddingProvider(primary=primary, secondary=secondary)


def filtering_config_from_config(config: dict[str, Any]) -> FilteringConfig:
    """Pick the filtering preset named by ``retrieval.preset``."""
    return FilteringConfig.preset(get_config_value(config, "retrieval.preset", "default"))
