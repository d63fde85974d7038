"""Two-model embedding access: a primary model for search, a secondary for reranking."""

import logging
import threading
from enum import Enum
from typing import Optional

from adapters.base import BaseEmbedder, EmbeddingError

logger = logging.getLogger(__name__)


class RetrievalCancelled(RuntimeError):
    """Raised at the next embedding call once the caller has cancelled the request."""


class EmbeddingModel(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


class EmbeddingProvider:
    """Routes embedding requests to the primary or secondary embedder.

    Every failure, whatever the underlying client raised, surfaces as
    ``EmbeddingError`` so callers only need to handle one "unavailable" case.
    """

    def __init__(
        self,
        primary: BaseEmbedder,
        secondary: Optional[BaseEmbedder] = None,
    ):
        self.primary = primary
        self.secondary = secondary

    @property
    def has_secondary(self) -> bool:
        return self.secondary is not None

    def embedder_for(self, model: EmbeddingModel) -> BaseEmbedder:
        if model is EmbeddingModel.PRIMARY:
            return self.primary
        if self.secondary is None:
            raise EmbeddingError("No secondary embedding model configured")
        return self.secondary

    def embed(
        self,
        text: str,
        model: EmbeddingModel = EmbeddingModel.PRIMARY,
        cancel_event: Optional[threading.Event] = None,
    ) -> list[float]:
        if cancel_event is not None and cancel_event.is_set():
            raise RetrievalCancelled(f"Cancelled before {model.value} embedding call")

        embedder = self.embedder_for(model)
        try:
            vector = embedder.embed(text)
        except EmbeddingError:
            raise
        except Exception as e:
            raise EmbeddingError(
                f"{model.value} embedder '{embedder.model}' failed: {e}"
            ) from e

        if not vector:
            raise EmbeddingError(
                f"{model.value} embedder '{embedder.model}' returned an empty vector"
            )
        logger.debug(f"Embedded {len(text)} chars with {embedder.model} ({len(vector)} dims)")
        return [float(x) for x in vector]

    def close(self) -> None:
        for embedder in (self.primary, self.secondary):
            if embedder is not None:
                embedder.close()
