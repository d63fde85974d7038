import pytest

from conftest import QUERY_VECTOR
from models import FilteringConfig
from search import VectorSearchEngine
from stores import JSONChunkStore


class TestVectorSearchEngine:
    def test_scenario_default_config_keeps_chunks_above_smart_threshold(
        self, search_engine: VectorSearchEngine, add_chunk
    ) -> None:
        add_chunk("refund policy allows returns within thirty days", 0.9)
        add_chunk("shipping takes five business days worldwide", 0.6)
        add_chunk("our office cat is named biscuit", 0.1)

        results, stats = search_engine.search(QUERY_VECTOR, FilteringConfig.DEFAULT)

        assert [r.chunk.content for r in results] == [
            "refund policy allows returns within thirty days",
            "shipping takes five business days worldwide",
        ]
        assert results[0].similarity == pytest.approx(0.9)
        assert results[1].similarity == pytest.approx(0.6)
        assert stats.total_chunks == 3
        assert stats.after_primary_filter == 2
        assert stats.after_smart_filter == 2
        assert stats.final_results == 2

    def test_empty_store_returns_empty_results(
        self, search_engine: VectorSearchEngine
    ) -> None:
        results, stats = search_engine.search(QUERY_VECTOR)

        assert results == []
        assert stats.total_chunks == 0
        assert stats.after_primary_filter == 0
        assert stats.final_results == 0
        assert stats.avg_similarity_before == 0.0

    def test_all_chunks_with_other_dimension_are_skipped(
        self, memory_store: JSONChunkStore, search_engine: VectorSearchEngine
    ) -> None:
        memory_store.add_document(
            "old.txt", ["legacy chunk one", "legacy chunk two"], [[1.0, 0.0, 0.0]] * 2
        )

        results, stats = search_engine.search(QUERY_VECTOR)

        assert results == []
        assert stats.total_chunks == 2
        assert stats.dimension_mismatches == 2
        assert stats.after_primary_filter == 0

    def test_mismatched_chunk_excluded_from_results_and_aggregates(
        self, memory_store: JSONChunkStore, search_engine: VectorSearchEngine, add_chunk
    ) -> None:
        add_chunk("current model chunk about invoices", 0.8)
        memory_store.add_document("stale.txt", ["stale chunk"], [[1.0, 0.0, 0.0]])

        results, stats = search_engine.search(QUERY_VECTOR)

        assert [r.chunk.content for r in results] == [
            "current model chunk about invoices"
        ]
        assert stats.total_chunks == 2
        assert stats.dimension_mismatches == 1
        assert stats.avg_similarity_before == pytest.approx(0.8)

    def test_results_sorted_and_bounded_by_top_k(
        self, search_engine: VectorSearchEngine, add_chunk
    ) -> None:
        similarities = [0.55, 0.95, 0.7, 0.85, 0.6, 0.75, 0.9]
        for i, similarity in enumerate(similarities):
            add_chunk(f"distinct topic number {i} with unique words w{i}", similarity)

        config = FilteringConfig.LENIENT.model_copy(update={"top_k": 4})
        results, stats = search_engine.search(QUERY_VECTOR, config)

        scores = [r.similarity for r in results]
        assert stats.total_chunks == 7
        assert len(results) == 4
        assert scores == sorted(scores, reverse=True)
        assert scores == pytest.approx([0.95, 0.9, 0.85, 0.75])
        assert stats.final_results == 4
        assert stats.max_similarity == pytest.approx(0.95)
        assert stats.min_similarity == pytest.approx(0.75)

    def test_primary_filter_truncates_to_initial_candidates(
        self, search_engine: VectorSearchEngine, add_chunk
    ) -> None:
        for i in range(6):
            add_chunk(f"candidate {i} mentions term{i}", 0.9 - i * 0.05)

        config = FilteringConfig(
            initial_candidates=3, primary_threshold=0.3, smart_threshold=0.5, top_k=5
        )
        results, stats = search_engine.search(QUERY_VECTOR, config)

        assert stats.after_primary_filter == 3
        assert len(results) == 3

    def test_smart_filter_counts(
        self, search_engine: VectorSearchEngine, add_chunk
    ) -> None:
        add_chunk("strong match on deployment steps", 0.8)
        add_chunk("weak match on deployment history", 0.45)
        add_chunk("irrelevant chunk about lunch menus", 0.2)

        results, stats = search_engine.search(QUERY_VECTOR, FilteringConfig.STRICT)

        assert stats.after_primary_filter == 2
        assert stats.after_smart_filter == 1
        assert len(results) == 1

    def test_near_duplicates_keep_highest_similarity(
        self, search_engine: VectorSearchEngine, add_chunk
    ) -> None:
        add_chunk("the api key must be rotated every ninety days", 0.7, "a.md")
        add_chunk("The API key must be rotated every ninety days.", 0.65, "b.md")
        add_chunk("the api key must be rotated every ninety days", 0.9, "c.md")
        add_chunk("backups run nightly at two in the morning", 0.6, "d.md")

        results, stats = search_engine.search(QUERY_VECTOR, FilteringConfig.DEFAULT)

        assert [r.chunk.source for r in results] == ["c.md", "d.md"]
        assert stats.duplicates_removed == 2

    def test_duplicates_kept_when_disabled(
        self, search_engine: VectorSearchEngine, add_chunk
    ) -> None:
        add_chunk("same words in the same order", 0.9, "a.md")
        add_chunk("same words in the same order", 0.8, "b.md")

        config = FilteringConfig.DEFAULT.model_copy(update={"remove_duplicates": False})
        results, stats = search_engine.search(QUERY_VECTOR, config)

        assert len(results) == 2
        assert stats.duplicates_removed == 0

    def test_similarity_distribution_buckets_final_results(
        self, search_engine: VectorSearchEngine, add_chunk
    ) -> None:
        add_chunk("first unique passage alpha", 0.92)
        add_chunk("second unique passage beta", 0.95)
        add_chunk("third unique passage gamma", 0.71)

        _, stats = search_engine.search(QUERY_VECTOR)

        assert stats.similarity_distribution == {"0.9-1.0": 2, "0.7-0.8": 1}
        assert stats.config == FilteringConfig.DEFAULT
        assert stats.processing_time_ms >= 0

    def test_get_relevant_context_joins_with_blank_line(
        self, search_engine: VectorSearchEngine, add_chunk
    ) -> None:
        add_chunk("first relevant passage", 0.9)
        add_chunk("second relevant passage here", 0.8)

        context = search_engine.get_relevant_context(QUERY_VECTOR)

        assert context == "first relevant passage\n\nsecond relevant passage here"
