from .chunk import Chunk, Message, SearchResult
from .retrieval import (
    FilteringConfig,
    FilteringStats,
    KnowledgeBaseStats,
    RAGEnrichmentInfo,
    RerankingStats,
)

__all__ = [
    "Chunk",
    "Message",
    "SearchResult",
    "FilteringConfig",
    "FilteringStats",
    "KnowledgeBaseStats",
    "RAGEnrichmentInfo",
    "RerankingStats",
]
