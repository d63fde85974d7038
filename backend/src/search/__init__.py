from .engine import DUPLICATE_JACCARD_THRESHOLD, VectorSearchEngine
from .reranker import Reranker
from .similarity import cosine_similarity, jaccard_similarity, tokenize

__all__ = [
    "DUPLICATE_JACCARD_THRESHOLD",
    "Reranker",
    "VectorSearchEngine",
    "cosine_similarity",
    "jaccard_similarity",
    "tokenize",
]
