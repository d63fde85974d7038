from .base import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    KNOWLEDGE_CONTEXT_TEMPLATE,
    create_embedder_from_config,
    create_embedding_provider_from_config,
    filtering_config_from_config,
)
from .ingestion import IngestionPipeline, run_ingestion
from .retrieval import RetrievalPipeline, build_augmented_messages
from .service import RAGService, get_rag_service

__all__ = [
    "IngestionPipeline",
    "run_ingestion",
    "RetrievalPipeline",
    "build_augmented_messages",
    "RAGService",
    "get_rag_service",
    "create_embedder_from_config",
    "create_embedding_provider_from_config",
    "filtering_config_from_config",
    "KNOWLEDGE_CONTEXT_TEMPLATE",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_CHUNK_OVERLAP",
]
