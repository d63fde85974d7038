import itertools
import math
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from adapters import BaseEmbedder, EmbeddingError, EmbeddingProvider
from search import Reranker, VectorSearchEngine
from stores import JSONChunkStore


class MockEmbedder(BaseEmbedder):
    """Mock embedder returning fixed vectors per text."""

    def __init__(
        self,
        vectors: Optional[dict[str, list[float]]] = None,
        dimension: int = 2,
        fail_on: Optional[set[str]] = None,
        fail_all: bool = False,
        **kwargs: Any,
    ):
        super().__init__("mock-embedder", **kwargs)
        self.vectors = vectors or {}
        self._dimension = dimension
        self.fail_on = fail_on or set()
        self.fail_all = fail_all
        self.calls: list[str] = []
        self.closed = False

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_all or text in self.fail_on:
            raise EmbeddingError(f"mock failure for {text!r}")
        return self.vectors.get(text, [1.0] + [0.0] * (self._dimension - 1))

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        return [self.embed(text) for text in texts]

    def close(self) -> None:
        self.closed = True


def unit_vector(similarity: float) -> list[float]:
    """2-d unit vector whose cosine similarity with [1, 0] is ``similarity``."""
    return [similarity, math.sqrt(max(0.0, 1.0 - similarity**2))]


QUERY_VECTOR = [1.0, 0.0]


@pytest.fixture
def memory_store() -> JSONChunkStore:
    return JSONChunkStore()


@pytest.fixture
def add_chunk(memory_store: JSONChunkStore) -> Callable[..., str]:
    """Add a single-chunk document with a given similarity to QUERY_VECTOR."""
    counter = itertools.count()

    def _add(content: str, similarity: float, source: Optional[str] = None) -> str:
        # Each call is its own document unless a source is given
        source = source or f"doc-{next(counter)}.txt"
        return memory_store.add_document(source, [content], [unit_vector(similarity)])

    return _add


@pytest.fixture
def search_engine(memory_store: JSONChunkStore) -> VectorSearchEngine:
    return VectorSearchEngine(memory_store)


@pytest.fixture
def primary_embedder() -> MockEmbedder:
    return MockEmbedder(dimension=2)


@pytest.fixture
def secondary_embedder() -> MockEmbedder:
    return MockEmbedder(dimension=3)


@pytest.fixture
def embedding_provider(
    primary_embedder: MockEmbedder, secondary_embedder: MockEmbedder
) -> EmbeddingProvider:
    return EmbeddingProvider(primary=primary_embedder, secondary=secondary_embedder)


@pytest.fixture
def reranker(embedding_provider: EmbeddingProvider) -> Reranker:
    return Reranker(embedding_provider)


@pytest.fixture
def temp_storage_dir(tmp_path: Path) -> Path:
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return storage_dir


@pytest.fixture
def temp_config(tmp_path: Path) -> Path:
    config_content = """
[embedding]
provider = "ollama"
model = "nomic-embed-text"
base_url = "${TEST_OLLAMA_URL:-http://localhost:11434}"

[reranking]
enabled = true
provider = "ollama"
model = "mxbai-embed-large"
max_workers = 2

[storage]
directory = "storage"

[ingestion]
directory = "data/documents"
chunk_size = 256
chunk_overlap = 20

[retrieval]
preset = "strict"
relevance_threshold = 0.65
max_context_tokens = 2048
"""
    config_path = tmp_path / "config.toml"
    config_path.write_text(config_content)
    return config_path
