import fcntl
import json
import logging
import threading
import uuid
from pathlib import Path
from typing import Any, Optional

from models import Chunk
from .base import BaseChunkStore

logger = logging.getLogger(__name__)


class JSONChunkStore(BaseChunkStore):
    """Chunk store persisted as a single JSON file.

    Embeddings are stored inline with each chunk, so chunks produced by
    different embedding models (and dimensions) can coexist. Writes build a
    new chunk list and swap it in under a lock, which keeps every read a
    consistent snapshot. Without a ``path`` the store lives in memory only.
    """

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path) if path else None
        self._lock = threading.RLock()
        self._chunks: list[Chunk] = self._load()

    def _load(self) -> list[Chunk]:
        if self._path and self._path.exists():
            with open(self._path, "r") as f:
                data = json.load(f)
            chunks = [Chunk.model_validate(item) for item in data.get("chunks", [])]
            logger.info(f"Loaded {len(chunks)} chunks from {self._path}")
            return chunks
        return []

    def _acquire_file_lock(self) -> None:
        """Acquire file lock for process-safe writes."""
        if self._path:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._lock_file = open(self._path.with_suffix(".lock"), "w")
            fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_EX)

    def _release_file_lock(self) -> None:
        if hasattr(self, "_lock_file"):
            fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_UN)
            self._lock_file.close()
            del self._lock_file

    def save(self, chunks: Optional[list[Chunk]] = None) -> None:
        if not self._path:
            return
        chunks = self._chunks if chunks is None else chunks
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        with open(tmp_path, "w") as f:
            json.dump(
                {"chunks": [chunk.model_dump() for chunk in chunks]}, f, indent=2
            )
        tmp_path.replace(self._path)

    def _commit(self, chunks: list[Chunk]) -> None:
        """Swap in a new chunk list and persist it."""
        self._acquire_file_lock()
        try:
            self.save(chunks)
            self._chunks = chunks
        finally:
            self._release_file_lock()

    def get_all_chunks(self) -> list[Chunk]:
        with self._lock:
            return list(self._chunks)

    def add_document(
        self,
        source: str,
        contents: list[str],
        embeddings: list[list[float]],
        metadata: Optional[dict[str, Any]] = None,
    ) -> str:
        if len(contents) != len(embeddings):
            raise ValueError(
                f"Got {len(contents)} chunks but {len(embeddings)} embeddings"
            )

        document_id = uuid.uuid4().hex
        new_chunks = [
            Chunk(
                id=f"{document_id}:{i}",
                document_id=document_id,
                content=content,
                index=i,
                embedding=embedding,
                source=source,
                metadata=dict(metadata or {}),
            )
            for i, (content, embedding) in enumerate(zip(contents, embeddings))
        ]

        with self._lock:
            kept = [c for c in self._chunks if c.source != source]
            replaced = len(self._chunks) - len(kept)
            self._commit(kept + new_chunks)

        if replaced:
            logger.info(f"Replaced {replaced} existing chunks from {source}")
        logger.info(f"Stored document {document_id} ({source}): {len(new_chunks)} chunks")
        return document_id

    def delete_document(self, document_id: str) -> bool:
        with self._lock:
            kept = [c for c in self._chunks if c.document_id != document_id]
            if len(kept) == len(self._chunks):
                return False
            self._commit(kept)
        logger.info(f"Deleted document {document_id}")
        return True

    def delete_all(self) -> None:
        with self._lock:
            self._commit([])

    @property
    def count(self) -> int:
        with self._lock:
            return len(self._chunks)
