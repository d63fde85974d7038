from abc import ABC, abstractmethod
from typing import Any


class EmbeddingError(RuntimeError):
    """Raised when an embedding provider fails or returns a malformed payload."""


class BaseEmbedder(ABC):
    """Abstract base class for embedding providers."""

    def __init__(self, model: str, **kwargs: Any):
        self.model = model
        self.kwargs = kwargs

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        pass

    @abstractmethod
    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        pass

    @property
    @abstractmethod
    def dimension(self) -> int:
        pass

    def close(self) -> None:
        """Release network resources held by the embedder."""
