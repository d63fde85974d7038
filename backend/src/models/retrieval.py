"""Filtering configuration and per-query statistics."""

from typing import ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from models.chunk import Message


class FilteringConfig(BaseModel):
    """Knobs of the multi-stage vector search.

    Attributes:
        initial_candidates: Size of the candidate pool kept by the primary filter.
        primary_threshold: Minimum similarity for the primary filter.
        smart_threshold: Minimum similarity for the smart filter.
        top_k: Maximum number of results returned.
        remove_duplicates: Drop near-duplicate chunks before truncation.
    """

    model_config = ConfigDict(frozen=True)

    initial_candidates: int = Field(default=20, ge=1)
    primary_threshold: float = Field(default=0.3, ge=-1.0, le=1.0)
    smart_threshold: float = Field(default=0.5, ge=-1.0, le=1.0)
    top_k: int = Field(default=5, ge=1)
    remove_duplicates: bool = True

    DEFAULT: ClassVar["FilteringConfig"]
    STRICT: ClassVar["FilteringConfig"]
    LENIENT: ClassVar["FilteringConfig"]

    @model_validator(mode="after")
    def _check_threshold_order(self) -> "FilteringConfig":
        if self.primary_threshold > self.smart_threshold:
            raise ValueError(
                f"primary_threshold ({self.primary_threshold}) must not exceed "
                f"smart_threshold ({self.smart_threshold})"
            )
        return self

    @classmethod
    def preset(cls, name: str) -> "FilteringConfig":
        """Resolve a named preset ("default", "strict" or "lenient")."""
        presets = {
            "default": cls.DEFAULT,
            "strict": cls.STRICT,
            "lenient": cls.LENIENT,
        }
        key = name.strip().lower()
        if key not in presets:
            raise ValueError(
                f"Unknown filtering preset: {name}. Available: {list(presets)}"
            )
        return presets[key]


FilteringConfig.DEFAULT = FilteringConfig(
    initial_candidates=20,
    primary_threshold=0.3,
    smart_threshold=0.5,
    top_k=5,
    remove_duplicates=True,
)
FilteringConfig.STRICT = FilteringConfig(
    initial_candidates=15,
    primary_threshold=0.4,
    smart_threshold=0.65,
    top_k=3,
    remove_duplicates=True,
)
FilteringConfig.LENIENT = FilteringConfig(
    initial_candidates=30,
    primary_threshold=0.2,
    smart_threshold=0.4,
    top_k=7,
    remove_duplicates=True,
)


class FilteringStats(BaseModel):
    """Counts and similarity aggregates for one search call.

    Purely observational: nothing downstream branches on these values.
    ``avg_similarity_before`` covers every comparable chunk, the remaining
    aggregates cover the final results only.
    """

    total_chunks: int = 0
    dimension_mismatches: int = 0
    after_primary_filter: int = 0
    after_smart_filter: int = 0
    duplicates_removed: int = 0
    final_results: int = 0
    avg_similarity_before: float = 0.0
    avg_similarity_after: float = 0.0
    min_similarity: float = 0.0
    max_similarity: float = 0.0
    similarity_distribution: dict[str, int] = Field(default_factory=dict)
    processing_time_ms: float = 0.0
    config: FilteringConfig = Field(default_factory=lambda: FilteringConfig.DEFAULT)


class RerankingStats(BaseModel):
    """Outcome of a reranking pass."""

    total_candidates: int = 0
    reranked_count: int = 0
    failed_count: int = 0
    avg_score_before: float = 0.0
    avg_score_after: float = 0.0
    score_improvement_percent: float = 0.0
    processing_time_ms: float = 0.0


class RAGEnrichmentInfo(BaseModel):
    """Everything the pipeline did for one chat turn."""

    augmented_messages: list[Message]
    rag_used: bool
    rag_context: Optional[str] = None
    chunks_count: int = 0
    similarity_scores: list[float] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
    filtering_stats: Optional[FilteringStats] = None
    reranking_stats: Optional[RerankingStats] = None


class KnowledgeBaseStats(BaseModel):
    """Size of the knowledge base, with a histogram of embedding dimensions."""

    total_documents: int = 0
    total_chunks: int = 0
    dimensions: dict[int, int] = Field(default_factory=dict)
