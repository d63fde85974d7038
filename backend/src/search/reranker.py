import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from adapters import EmbeddingError, EmbeddingModel, EmbeddingProvider
from models import RerankingStats, SearchResult
from .similarity import cosine_similarity

logger = logging.getLogger(__name__)


class Reranker:
    """Second-pass scoring of search candidates with the secondary embedding model.

    First-pass embeddings are tuned for cheap recall over the whole store;
    the secondary model only ever sees the small candidate set. Failures
    degrade instead of raising: if the query cannot be embedded the
    candidates come back unchanged, and chunks that cannot be embedded are
    dropped from the reranked output.
    """

    def __init__(self, embedding_provider: EmbeddingProvider, max_workers: int = 1):
        self.embedding_provider = embedding_provider
        self.max_workers = max(1, max_workers)

    def rerank(
        self,
        query_text: str,
        candidates: list[SearchResult],
        top_k: int = 5,
        cancel_event: Optional[threading.Event] = None,
    ) -> tuple[list[SearchResult], RerankingStats]:
        """Rerank candidates by secondary-model cosine similarity.

        Args:
            query_text: The user query.
            candidates: Ranked output of the vector search.
            top_k: Number of results to keep after reranking.
            cancel_event: Optional event; when set, the next embedding call
                raises ``RetrievalCancelled``.

        Returns:
            Tuple of (reranked results with rerank scores as similarity, stats).
        """
        if not candidates:
            return [], RerankingStats()

        start = time.perf_counter()
        logger.info(f"Reranking {len(candidates)} candidates (top-{top_k})")
        scores_before = [c.similarity for c in candidates]

        try:
            query_embedding = self.embedding_provider.embed(
                query_text, EmbeddingModel.SECONDARY, cancel_event=cancel_event
            )
        except EmbeddingError as e:
            logger.warning(f"Reranking skipped, could not embed query: {e}")
            kept = candidates[:top_k]
            return kept, RerankingStats(
                total_candidates=len(candidates),
                reranked_count=0,
                failed_count=0,
                avg_score_before=_mean(scores_before),
                avg_score_after=_mean([c.similarity for c in kept]),
                score_improvement_percent=0.0,
                processing_time_ms=(time.perf_counter() - start) * 1000,
            )

        def score(candidate: SearchResult) -> Optional[SearchResult]:
            return self._score_candidate(query_embedding, candidate, cancel_event)

        if self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                scored = list(executor.map(score, candidates))
        else:
            scored = [score(candidate) for candidate in candidates]

        reranked = [r for r in scored if r is not None]
        reranked.sort(key=lambda r: r.similarity, reverse=True)
        top_results = reranked[:top_k]

        avg_before = _mean(scores_before)
        avg_after = _mean([r.similarity for r in reranked])
        if reranked and avg_before != 0:
            improvement = (avg_after - avg_before) / avg_before * 100
        else:
            improvement = 0.0

        stats = RerankingStats(
            total_candidates=len(candidates),
            reranked_count=len(reranked),
            failed_count=len(candidates) - len(reranked),
            avg_score_before=avg_before,
            avg_score_after=avg_after,
            score_improvement_percent=improvement,
            processing_time_ms=(time.perf_counter() - start) * 1000,
        )

        logger.info(
            f"Reranking done: {stats.reranked_count} chunks, "
            f"score change {improvement:+.2f}%, {stats.processing_time_ms:.0f}ms"
        )
        for rank, result in enumerate(top_results, start=1):
            logger.debug(f"  {rank}. rerank={result.similarity:.3f} chunk={result.chunk.id}")

        return top_results, stats

    def _score_candidate(
        self,
        query_embedding: list[float],
        candidate: SearchResult,
        cancel_event: Optional[threading.Event],
    ) -> Optional[SearchResult]:
        try:
            chunk_embedding = self.embedding_provider.embed(
                candidate.chunk.content,
                EmbeddingModel.SECONDARY,
                cancel_event=cancel_event,
            )
            rerank_score = cosine_similarity(query_embedding, chunk_embedding)
        except (EmbeddingError, ValueError) as e:
            logger.warning(f"Could not rerank chunk {candidate.chunk.id}: {e}")
            return None

        logger.debug(
            f"Chunk {candidate.chunk.id}: {candidate.similarity:.3f} -> {rerank_score:.3f}"
        )
        return SearchResult(chunk=candidate.chunk, similarity=rerank_score)


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0
