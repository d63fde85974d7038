import logging
from pathlib import Path
from typing import Any, Optional

from adapters import EmbeddingProvider
from config import get_chunk_store_path, get_float, get_int, load_config
from models import KnowledgeBaseStats
from search import Reranker, VectorSearchEngine
from stores import BaseChunkStore, ChunkStore
from .base import (
    create_embedding_provider_from_config,
    filtering_config_from_config,
)
from .retrieval import RetrievalPipeline

logger = logging.getLogger(__name__)


class RAGService:
    """Owns the chunk store, embedders and pipeline for one server instance.

    Create one per process (or per app instance) and pass it to request
    handlers; call ``close()`` (or use it as a context manager) on shutdown.
    """

    def __init__(
        self,
        chunk_store: BaseChunkStore,
        embedding_provider: EmbeddingProvider,
        pipeline: RetrievalPipeline,
    ):
        self.chunk_store = chunk_store
        self.embedding_provider = embedding_provider
        self.pipeline = pipeline

    @classmethod
    def from_config(cls, config: dict[str, Any], config_path: Path) -> "RAGService":
        """Build every component from configuration."""
        chunk_store = ChunkStore(path=get_chunk_store_path(config, config_path))
        embedding_provider = create_embedding_provider_from_config(config)

        reranker: Optional[Reranker] = None
        if embedding_provider.has_secondary:
            reranker = Reranker(
                embedding_provider,
                max_workers=get_int(config, "reranking.max_workers", 1),
            )

        pipeline = RetrievalPipeline(
            embedding_provider=embedding_provider,
            search_engine=VectorSearchEngine(chunk_store),
            reranker=reranker,
            use_reranking=reranker is not None,
            default_config=filtering_config_from_config(config),
            relevance_threshold=get_float(config, "retrieval.relevance_threshold"),
            max_context_tokens=get_int(config, "retrieval.max_context_tokens"),
        )
        return cls(chunk_store, embedding_provider, pipeline)

    def augment(self, *args: Any, **kwargs: Any):
        return self.pipeline.augment(*args, **kwargs)

    def stats(self) -> KnowledgeBaseStats:
        return self.chunk_store.stats()

    def close(self) -> None:
        self.embedding_provider.close()
        logger.info("RAG service closed")

    def __enter__(self) -> "RAGService":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def get_rag_service(config_path: Path = Path("config.toml")) -> RAGService:
    """Create a RAG service from a config file."""
    config = load_config(config_path)
    return RAGService.from_config(config, config_path)
