from abc import ABC, abstractmethod
from typing import Any, Optional

from models import Chunk, KnowledgeBaseStats


class BaseChunkStore(ABC):
    """Abstract base class for chunk stores.

    Retrieval only ever reads from a store; ``get_all_chunks`` must return a
    consistent snapshot that never contains a partially inserted document.
    """

    @abstractmethod
    def get_all_chunks(self) -> list[Chunk]:
        """Return a snapshot of every stored chunk."""
        pass

    @abstractmethod
    def add_document(
        self,
        source: str,
        contents: list[str],
        embeddings: list[list[float]],
        metadata: Optional[dict[str, Any]] = None,
    ) -> str:
        """Store all chunks of a document at once and return its id."""
        pass

    @abstractmethod
    def delete_document(self, document_id: str) -> bool:
        """Delete a document and its chunks."""
        pass

    @abstractmethod
    def delete_all(self) -> None:
        """Delete all documents from the store."""
        pass

    @property
    @abstractmethod
    def count(self) -> int:
        """Return the number of chunks in the store."""
        pass

    def stats(self) -> KnowledgeBaseStats:
        chunks = self.get_all_chunks()
        dimensions: dict[int, int] = {}
        for chunk in chunks:
            dimensions[chunk.dimension] = dimensions.get(chunk.dimension, 0) + 1
        return KnowledgeBaseStats(
            total_documents=len({c.document_id for c in chunks}),
            total_chunks=len(chunks),
            dimensions=dimensions,
        )
