import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Optional

import openai
import requests
from openai import OpenAI
from pydantic import BaseModel, Field, ValidationError

from adapters.base import BaseEmbedder, EmbeddingError
from adapters.utils import create_session_with_pooling

EMBEDDING_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

OLLAMA_DIMENSIONS = {
    "nomic-embed-text": 768,
    "mxbai-embed-large": 1024,
    "all-minilm": 384,
}

DEFAULT_BATCH_SIZE = 500
DEFAULT_OLLAMA_DIMENSION = 768


class OllamaEmbeddingResponse(BaseModel):
    """Payload of Ollama's /api/embeddings endpoint."""

    embedding: list[float] = Field(min_length=1)


class OllamaBatchEmbeddingResponse(BaseModel):
    """Payload of Ollama's /api/embed endpoint."""

    embeddings: list[list[float]] = Field(min_length=1)


def _decode(schema: type[BaseModel], response: requests.Response) -> Any:
    """Strictly decode a provider response, failing fast on malformed bodies."""
    try:
        return schema.model_validate(response.json())
    except (ValueError, ValidationError) as e:
        raise EmbeddingError(
            f"Malformed embedding response ({schema.__name__}): {e}"
        ) from e


class OpenAIEmbedder(BaseEmbedder):
    """OpenAI embedding provider."""

    def __init__(self, model: str = "text-embedding-3-small", **kwargs: Any):
        api_key = kwargs.pop("api_key", None) or os.environ.get("OPENAI_API_KEY")
        base_url = kwargs.pop("base_url", None)
        super().__init__(model, **kwargs)

        self.client = OpenAI(api_key=api_key, base_url=base_url)
        self._dimension: Optional[int] = kwargs.get("dimensions")

    @property
    def dimension(self) -> int:
        return self._dimension or EMBEDDING_DIMENSIONS.get(self.model, 1536)

    def _create_embedding_params(self, input_data: str | list[str]) -> dict[str, Any]:
        """Build parameters for embedding API call."""
        params = {"model": self.model, "input": input_data}
        if self._dimension is not None:
            params["dimensions"] = self._dimension
        return params

    def _create(self, input_data: str | list[str]) -> list[list[float]]:
        try:
            response = self.client.embeddings.create(
                **self._create_embedding_params(input_data)
            )
        except openai.OpenAIError as e:
            raise EmbeddingError(f"OpenAI embedding request failed: {e}") from e

        embeddings = [item.embedding for item in response.data]
        if not embeddings or any(not emb for emb in embeddings):
            raise EmbeddingError("OpenAI returned an empty embedding")
        return embeddings

    def embed(self, text: str) -> list[float]:
        return self._create(text)[0]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        embeddings = self._create(texts)
        if len(embeddings) != len(texts):
            raise EmbeddingError(
                f"OpenAI returned {len(embeddings)} embeddings for {len(texts)} texts"
            )
        return embeddings

    def close(self) -> None:
        self.client.close()


class OllamaEmbedder(BaseEmbedder):
    """Ollama local embedding provider with batch processing and connection pooling."""

    def __init__(
        self,
        model: str = "nomic-embed-text",
        base_url: str = "http://localhost:11434",
        max_workers: int = 8,
        batch_size: int = DEFAULT_BATCH_SIZE,
        timeout: float = 30,
        **kwargs: Any,
    ):
        super().__init__(model, **kwargs)
        self.base_url = base_url.rstrip("/")
        self._dimension = kwargs.get(
            "dimension", OLLAMA_DIMENSIONS.get(model, DEFAULT_OLLAMA_DIMENSION)
        )
        self._max_workers = max_workers
        self._batch_size = batch_size
        self._timeout = timeout
        self.session = create_session_with_pooling(pool_maxsize=max(max_workers, 1))

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed(self, text: str) -> list[float]:
        try:
            response = self.session.post(
                f"{self.base_url}/api/embeddings",
                json={"model": self.model, "prompt": text},
                timeout=self._timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise EmbeddingError(f"Ollama embedding request failed: {e}") from e
        return _decode(OllamaEmbeddingResponse, response).embedding

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Batch embedding using /api/embed endpoint with chunking for large batches."""
        if not texts:
            return []

        if len(texts) <= self._batch_size:
            return self._embed_batch_single(texts)

        # Chunk large batches to avoid payload size issues
        results = []
        for i in range(0, len(texts), self._batch_size):
            chunk = texts[i : i + self._batch_size]
            results.extend(self._embed_batch_single(chunk))

        return results

    def _embed_batch_single(self, texts: list[str]) -> list[list[float]]:
        """Send a single batch request to Ollama's /api/embed endpoint."""
        if not texts:
            return []

        try:
            response = self.session.post(
                f"{self.base_url}/api/embed",
                json={"model": self.model, "input": texts},
                timeout=120,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException:
            # Fall back to parallel individual requests if batch fails
            return self._embed_batch_parallel(texts)

        embeddings = _decode(OllamaBatchEmbeddingResponse, response).embeddings
        if len(embeddings) != len(texts):
            raise EmbeddingError(
                f"Ollama returned {len(embeddings)} embeddings for {len(texts)} texts"
            )
        return embeddings

    def _embed_batch_parallel(self, texts: list[str]) -> list[list[float]]:
        """Fallback: parallel embedding using ThreadPoolExecutor."""
        results: list[Optional[list[float]]] = [None] * len(texts)
        errors: list[tuple[int, Exception]] = []

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            futures = {
                executor.submit(self.embed, text): i for i, text in enumerate(texts)
            }

            for future in as_completed(futures):
                idx = futures[future]
                try:
                    results[idx] = future.result()
                except Exception as e:
                    errors.append((idx, e))

        if errors:
            failed_indices = sorted(idx for idx, _ in errors)
            first_error = errors[0][1]
            raise EmbeddingError(
                f"Embedding failed for {len(errors)}/{len(texts)} texts "
                f"at indices {failed_indices}. First error: {first_error}"
            )

        return results  # type: ignore

    def close(self) -> None:
        self.session.close()
