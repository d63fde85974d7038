from typing import Any, Type

from adapters.base import BaseEmbedder, EmbeddingError

_EMBEDDER_REGISTRY: dict[str, Type[BaseEmbedder]] = {}


def register_embedder(provider: str, cls: Type[BaseEmbedder]) -> None:
    """Register an embedder provider.

    Args:
        provider: Provider name (e.g., "openai", "ollama")
        cls: Embedder class to register
    """
    _EMBEDDER_REGISTRY[provider] = cls


def create_embedder(provider: str, **kwargs: Any) -> BaseEmbedder:
    """Create an embedder instance based on provider.

    Args:
        provider: Provider name
        **kwargs: Additional provider-specific parameters

    Returns:
        BaseEmbedder instance

    Raises:
        ValueError: If provider is not registered
    """
    if provider not in _EMBEDDER_REGISTRY:
        available = list(_EMBEDDER_REGISTRY.keys())
        raise ValueError(
            f"Unknown embedder provider: {provider}. Available: {available}"
        )
    return _EMBEDDER_REGISTRY[provider](**kwargs)


def list_embedder_providers() -> list[str]:
    """List all registered embedder providers."""
    return list(_EMBEDDER_REGISTRY.keys())


from adapters.embedding import OllamaEmbedder, OpenAIEmbedder
from adapters.provider import EmbeddingModel, EmbeddingProvider, RetrievalCancelled

register_embedder("openai", OpenAIEmbedder)
register_embedder("ollama", OllamaEmbedder)

__all__ = [
    "BaseEmbedder",
    "EmbeddingError",
    "EmbeddingModel",
    "EmbeddingProvider",
    "OllamaEmbedder",
    "OpenAIEmbedder",
    "RetrievalCancelled",
    "create_embedder",
    "list_embedder_providers",
    "register_embedder",
]
