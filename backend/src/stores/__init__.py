from pathlib import Path
from typing import Any, Optional

from .base import BaseChunkStore
from .jsonfile import JSONChunkStore

ChunkStore = JSONChunkStore


def create_chunk_store(
    provider: str,
    path: Optional[Path] = None,
    **kwargs: Any,
) -> BaseChunkStore:
    """Create a chunk store instance based on provider.

    Args:
        provider: Provider name ("json" or "memory")
        path: Storage file for persistent providers
        **kwargs: Additional provider-specific parameters

    Returns:
        BaseChunkStore instance
    """
    if provider == "json":
        return JSONChunkStore(path=path, **kwargs)
    elif provider == "memory":
        return JSONChunkStore(path=None, **kwargs)
    else:
        raise ValueError(f"Unknown chunk store provider: {provider}")


__all__ = ["BaseChunkStore", "ChunkStore", "JSONChunkStore", "create_chunk_store"]
