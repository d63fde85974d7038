import logging
import math
import time
from typing import Sequence

from models import Chunk, FilteringConfig, FilteringStats, SearchResult
from stores import BaseChunkStore
from .similarity import cosine_similarity, jaccard_similarity, tokenize

logger = logging.getLogger(__name__)

DUPLICATE_JACCARD_THRESHOLD = 0.7


def similarity_bucket(similarity: float) -> str:
    """Label of the 0.1-wide bucket a similarity falls into, e.g. "0.7-0.8"."""
    low = min(math.floor(similarity * 10), 9) / 10
    return f"{low:.1f}-{low + 0.1:.1f}"


class VectorSearchEngine:
    """Multi-stage similarity search over every chunk in the store.

    Stages: cosine scoring, primary filter (bounded candidate pool), smart
    filter (stricter threshold), near-duplicate removal, top-k truncation.
    No index is maintained; each search is a full scan of a store snapshot.
    """

    def __init__(
        self,
        chunk_store: BaseChunkStore,
        duplicate_threshold: float = DUPLICATE_JACCARD_THRESHOLD,
    ):
        self.chunk_store = chunk_store
        self.duplicate_threshold = duplicate_threshold

    def search(
        self,
        query_embedding: Sequence[float],
        config: FilteringConfig = FilteringConfig.DEFAULT,
    ) -> tuple[list[SearchResult], FilteringStats]:
        """Find the chunks most similar to a query embedding.

        Chunks whose embedding dimension differs from the query are skipped
        and counted in ``dimension_mismatches``; they never reach the results
        or the similarity aggregates.

        Args:
            query_embedding: Primary-model embedding of the query.
            config: Thresholds and sizes for the filtering stages.

        Returns:
            Tuple of (results sorted by descending similarity, stats).
        """
        start = time.perf_counter()
        chunks = self.chunk_store.get_all_chunks()

        if not chunks:
            logger.warning("Knowledge base is empty")
            return [], self._build_stats(config, start)

        logger.info(f"Searching knowledge base: {len(chunks)} chunks")

        scored, mismatches = self._score(query_embedding, chunks)
        scored.sort(key=lambda r: r.similarity, reverse=True)

        primary = [r for r in scored if r.similarity >= config.primary_threshold]
        primary = primary[: config.initial_candidates]

        smart = [r for r in primary if r.similarity >= config.smart_threshold]

        if config.remove_duplicates:
            deduplicated = self._remove_duplicates(smart)
        else:
            deduplicated = smart

        final = deduplicated[: config.top_k]

        stats = self._build_stats(
            config,
            start,
            total_chunks=len(chunks),
            dimension_mismatches=mismatches,
            scored=scored,
            after_primary=len(primary),
            after_smart=len(smart),
            duplicates_removed=len(smart) - len(deduplicated),
            final=final,
        )

        logger.info(
            f"Found {len(final)} relevant chunks "
            f"(primary: {len(primary)}, smart: {len(smart)}, "
            f"threshold={config.smart_threshold}, "
            f"{stats.processing_time_ms:.1f}ms)"
        )
        for rank, result in enumerate(final, start=1):
            logger.debug(
                f"  {rank}. similarity={result.similarity:.3f} "
                f"chunk={result.chunk.id} {result.chunk.content[:100]!r}"
            )

        return final, stats

    def get_relevant_context(
        self,
        query_embedding: Sequence[float],
        config: FilteringConfig = FilteringConfig.DEFAULT,
    ) -> str:
        """Search and join the matching chunk contents with blank lines."""
        results, _ = self.search(query_embedding, config)
        return "\n\n".join(r.chunk.content for r in results)

    def _score(
        self, query_embedding: Sequence[float], chunks: list[Chunk]
    ) -> tuple[list[SearchResult], int]:
        """Score every comparable chunk. Returns (results, mismatch count)."""
        dimension = len(query_embedding)
        results = []
        mismatches = 0

        for chunk in chunks:
            if chunk.dimension != dimension:
                mismatches += 1
                logger.warning(
                    f"Skipping chunk {chunk.id} (document {chunk.document_id}): "
                    f"embedding dimension {chunk.dimension} != query dimension {dimension}"
                )
                continue
            results.append(
                SearchResult(
                    chunk=chunk,
                    similarity=cosine_similarity(query_embedding, chunk.embedding),
                )
            )

        return results, mismatches

    def _remove_duplicates(self, results: list[SearchResult]) -> list[SearchResult]:
        """Keep the highest-ranked representative of near-identical chunks.

        ``results`` must already be in ranked order.
        """
        accepted: list[SearchResult] = []
        accepted_tokens: list[set[str]] = []

        for result in results:
            tokens = tokenize(result.chunk.content)
            duplicate_of = next(
                (
                    accepted[i]
                    for i, other in enumerate(accepted_tokens)
                    if jaccard_similarity(tokens, other) > self.duplicate_threshold
                ),
                None,
            )
            if duplicate_of is not None:
                logger.debug(
                    f"Dropping chunk {result.chunk.id} as duplicate of {duplicate_of.chunk.id}"
                )
                continue
            accepted.append(result)
            accepted_tokens.append(tokens)

        return accepted

    def _build_stats(
        self,
        config: FilteringConfig,
        start: float,
        total_chunks: int = 0,
        dimension_mismatches: int = 0,
        scored: list[SearchResult] | None = None,
        after_primary: int = 0,
        after_smart: int = 0,
        duplicates_removed: int = 0,
        final: list[SearchResult] | None = None,
    ) -> FilteringStats:
        all_scores = [r.similarity for r in scored or []]
        final_scores = [r.similarity for r in final or []]

        distribution: dict[str, int] = {}
        for score in final_scores:
            bucket = similarity_bucket(score)
            distribution[bucket] = distribution.get(bucket, 0) + 1

        return FilteringStats(
            total_chunks=total_chunks,
            dimension_mismatches=dimension_mismatches,
            after_primary_filter=after_primary,
            after_smart_filter=after_smart,
            duplicates_removed=duplicates_removed,
            final_results=len(final_scores),
            avg_similarity_before=_mean(all_scores),
            avg_similarity_after=_mean(final_scores),
            min_similarity=min(final_scores, default=0.0),
            max_similarity=max(final_scores, default=0.0),
            similarity_distribution=distribution,
            processing_time_ms=(time.perf_counter() - start) * 1000,
            config=config,
        )


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0
