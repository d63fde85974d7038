import logging
import threading
from functools import lru_cache
from typing import Any, Optional, Sequence

import tiktoken

from adapters import EmbeddingError, EmbeddingModel, EmbeddingProvider
from models import (
    FilteringConfig,
    FilteringStats,
    Message,
    RAGEnrichmentInfo,
    RerankingStats,
    SearchResult,
)
from search import Reranker, VectorSearchEngine
from .base import DEFAULT_SYSTEM_PREAMBLE, KNOWLEDGE_CONTEXT_TEMPLATE

logger = logging.getLogger(__name__)

MessageLike = Message | dict[str, Any]


@lru_cache(maxsize=8)
def get_tokenizer(model: str) -> tiktoken.Encoding:
    try:
        return tiktoken.encoding_for_model(model)
    except KeyError:
        return tiktoken.get_encoding("cl100k_base")


def count_tokens(text: str, model: str = "gpt-4") -> int:
    return len(get_tokenizer(model).encode(text))


def build_augmented_messages(
    original_messages: Sequence[Message], knowledge_context: str
) -> list[Message]:
    """Inject the knowledge context into the system message.

    The first existing system message gets the context block appended in
    place; all other messages keep their order. Without a system message a
    new one is prepended.
    """
    context_block = KNOWLEDGE_CONTEXT_TEMPLATE.format(context=knowledge_context)
    system_index = next(
        (i for i, m in enumerate(original_messages) if m.role == "system"), None
    )

    if system_index is None:
        system_message = Message(
            role="system", content=f"{DEFAULT_SYSTEM_PREAMBLE}\n\n{context_block}"
        )
        return [system_message, *original_messages]

    augmented = list(original_messages)
    existing = augmented[system_index]
    augmented[system_index] = Message(
        role="system", content=f"{existing.content}\n\n{context_block}"
    )
    return augmented


class RetrievalPipeline:
    """Embeds a query, searches, optionally reranks, and injects context.

    Every failure degrades to "no augmentation": the original messages are
    returned with ``rag_used=False``. Only caller cancellation
    (``RetrievalCancelled``) propagates.
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        search_engine: VectorSearchEngine,
        reranker: Optional[Reranker] = None,
        use_reranking: bool = False,
        default_config: FilteringConfig = FilteringConfig.DEFAULT,
        relevance_threshold: Optional[float] = None,
        max_context_tokens: Optional[int] = None,
        tokenizer_model: str = "gpt-4",
    ):
        self.embedding_provider = embedding_provider
        self.search_engine = search_engine
        self.reranker = reranker
        self.use_reranking = use_reranking
        self.default_config = default_config
        self.relevance_threshold = relevance_threshold
        self.max_context_tokens = max_context_tokens
        self.tokenizer_model = tokenizer_model

    def augment(
        self,
        query_text: str,
        original_messages: Sequence[MessageLike],
        config: Optional[FilteringConfig] = None,
        use_reranking: Optional[bool] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> RAGEnrichmentInfo:
        """Augment a message list with knowledge base context.

        Args:
            query_text: The user query used for retrieval.
            original_messages: Outgoing messages (``Message`` or role/content dicts).
            config: Filtering config; defaults to the pipeline's preset.
            use_reranking: Override the pipeline's reranking default.
            cancel_event: When set, the pipeline stops at the next embedding call.

        Returns:
            RAGEnrichmentInfo with the augmented messages and statistics.
        """
        config = config or self.default_config
        messages = [
            m if isinstance(m, Message) else Message.model_validate(m)
            for m in original_messages
        ]
        rerank = self.use_reranking if use_reranking is None else use_reranking

        try:
            query_embedding = self.embedding_provider.embed(
                query_text, EmbeddingModel.PRIMARY, cancel_event=cancel_event
            )
        except EmbeddingError as e:
            logger.warning(f"Could not embed query, continuing without RAG: {e}")
            return self._passthrough(messages)

        try:
            results, filtering_stats = self.search_engine.search(query_embedding, config)
        except Exception:
            logger.exception("Knowledge base search failed, continuing without RAG")
            return self._passthrough(messages)

        if not results:
            logger.info("No relevant knowledge base context found")
            return self._passthrough(messages, filtering_stats)

        if self.relevance_threshold is not None:
            avg_similarity = sum(r.similarity for r in results) / len(results)
            if avg_similarity < self.relevance_threshold:
                logger.info(
                    f"Context not injected: average similarity {avg_similarity:.3f} "
                    f"< relevance threshold {self.relevance_threshold:.2f}"
                )
                return self._passthrough(messages, filtering_stats)

        reranking_stats: Optional[RerankingStats] = None
        if rerank:
            if self.reranker is None:
                logger.warning("Reranking requested but no reranker is configured")
            else:
                results, reranking_stats = self.reranker.rerank(
                    query_text, results, config.top_k, cancel_event=cancel_event
                )
                if not results:
                    logger.warning("Reranking left no candidates, continuing without RAG")
                    return self._passthrough(messages, filtering_stats, reranking_stats)

        included = self._fit_to_budget(results)
        if not included:
            return self._passthrough(messages, filtering_stats, reranking_stats)

        rag_context = "\n\n".join(r.chunk.content for r in included)
        augmented_messages = build_augmented_messages(messages, rag_context)

        logger.info(
            f"Injected knowledge base context ({len(rag_context)} chars, "
            f"{len(included)} chunks)"
        )

        return RAGEnrichmentInfo(
            augmented_messages=augmented_messages,
            rag_used=True,
            rag_context=rag_context,
            chunks_count=len(included),
            similarity_scores=[r.similarity for r in included],
            sources=list(dict.fromkeys(r.chunk.source for r in included)),
            filtering_stats=filtering_stats,
            reranking_stats=reranking_stats,
        )

    def augment_messages(
        self,
        query_text: str,
        original_messages: Sequence[MessageLike],
        config: Optional[FilteringConfig] = None,
    ) -> tuple[list[Message], bool, Optional[str]]:
        """Short form of ``augment``: (messages, rag_used, rag_context)."""
        info = self.augment(query_text, original_messages, config)
        return info.augmented_messages, info.rag_used, info.rag_context

    def is_available(self) -> bool:
        """Whether the knowledge base has anything to retrieve."""
        try:
            stats = self.search_engine.chunk_store.stats()
        except Exception:
            logger.exception("Could not read knowledge base stats")
            return False
        logger.info(
            f"Knowledge base: {stats.total_documents} documents, {stats.total_chunks} chunks"
        )
        return stats.total_chunks > 0

    def _fit_to_budget(self, results: list[SearchResult]) -> list[SearchResult]:
        """Keep results in rank order while they fit in the context token budget.

        If the tokenizer cannot be loaded (tiktoken fetches its encoding on
        first use), the budget is skipped rather than failing the turn.
        """
        if self.max_context_tokens is None:
            return results

        try:
            token_counts = [
                count_tokens(r.chunk.content, self.tokenizer_model) for r in results
            ]
        except Exception as e:
            logger.warning(f"Context token budget skipped, tokenizer unavailable: {e}")
            return results

        included = []
        current_tokens = 0
        for result, tokens in zip(results, token_counts):
            if current_tokens + tokens > self.max_context_tokens:
                logger.warning(
                    f"Context truncated to {len(included)}/{len(results)} chunks "
                    f"({current_tokens} tokens, limit: {self.max_context_tokens})"
                )
                break
            included.append(result)
            current_tokens += tokens
        return included

    @staticmethod
    def _passthrough(
        messages: list[Message],
        filtering_stats: Optional[FilteringStats] = None,
        reranking_stats: Optional[RerankingStats] = None,
    ) -> RAGEnrichmentInfo:
        return RAGEnrichmentInfo(
            augmented_messages=messages,
            rag_used=False,
            filtering_stats=filtering_stats,
            reranking_stats=reranking_stats,
        )
