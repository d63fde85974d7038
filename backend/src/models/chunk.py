"""Data models for knowledge-rag."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Chunk(BaseModel):
    """A stored slice of an ingested document together with its embedding.

    Chunks are immutable once stored. The embedding dimension is fixed by the
    model that produced it, so chunks written before an embedding model change
    may no longer be comparable with new query embeddings.

    Attributes:
        id: Unique chunk identifier.
        document_id: Identifier of the document the chunk belongs to.
        content: The chunk text content.
        index: Position of the chunk inside its document.
        embedding: Precomputed embedding vector.
        source: The source file name (e.g., "guide.pdf").
        metadata: Any additional metadata from the source document.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    document_id: str
    content: str
    index: int
    embedding: list[float]
    source: str = "unknown"
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def dimension(self) -> int:
        return len(self.embedding)


class SearchResult(BaseModel):
    """A chunk paired with its similarity to the query.

    After reranking, ``similarity`` holds the rerank score instead of the
    first-pass cosine similarity.
    """

    chunk: Chunk
    similarity: float


class Message(BaseModel):
    """A chat message as passed to the LLM."""

    role: str
    content: str
