import json
import logging
from pathlib import Path
from typing import Any, Optional

from adapters import BaseEmbedder
from config import (
    get_chunk_store_path,
    get_config_value,
    get_ingestion_dir,
    get_storage_dir,
    load_config,
)
from loaders import SUPPORTED_EXTENSIONS, BaseDocumentLoader, DocumentLoader
from splitters import BaseTextSplitter, TextSplitter
from stores import BaseChunkStore, ChunkStore
from .base import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    create_embedder_from_config,
)
from .utils import compute_file_hash

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Loads, splits and embeds documents into the chunk store.

    A document is stored only when every one of its chunks was embedded;
    an embedding failure leaves the store untouched and propagates.
    """

    def __init__(
        self,
        embedder: BaseEmbedder,
        splitter: BaseTextSplitter,
        loader: BaseDocumentLoader,
        chunk_store: BaseChunkStore,
        storage_dir: Optional[Path] = None,
    ):
        self.embedder = embedder
        self.splitter = splitter
        self.loader = loader
        self.chunk_store = chunk_store
        self.storage_dir = storage_dir

        self._processed_files: dict[str, str] = {}  # filepath -> hash

    @classmethod
    def from_config(
        cls, config: dict[str, Any], config_path: Path
    ) -> "IngestionPipeline":
        """Create pipeline from configuration dictionary."""
        embedder = create_embedder_from_config(config)

        chunk_size = int(
            get_config_value(config, "ingestion.chunk_size", DEFAULT_CHUNK_SIZE)
        )
        chunk_overlap = int(
            get_config_value(config, "ingestion.chunk_overlap", DEFAULT_CHUNK_OVERLAP)
        )
        splitter = TextSplitter(chunk_size=chunk_size, chunk_overlap=chunk_overlap)

        chunk_store = ChunkStore(path=get_chunk_store_path(config, config_path))
        loader = DocumentLoader(get_ingestion_dir(config, config_path))

        return cls(
            embedder=embedder,
            splitter=splitter,
            loader=loader,
            chunk_store=chunk_store,
            storage_dir=get_storage_dir(config, config_path),
        )

    def _load_processed_files(self) -> dict[str, str]:
        """Load processed file tracking from storage."""
        if not self.storage_dir:
            return {}
        tracking_file = self.storage_dir / "processed_files.json"
        if tracking_file.exists():
            try:
                with open(tracking_file, "r") as f:
                    return json.load(f)
            except (json.JSONDecodeError, IOError) as e:
                logger.warning(f"Ignoring unreadable {tracking_file}: {e}")
        return {}

    def _save_processed_files(self) -> None:
        if not self.storage_dir:
            return
        tracking_file = self.storage_dir / "processed_files.json"
        tracking_file.parent.mkdir(parents=True, exist_ok=True)
        with open(tracking_file, "w") as f:
            json.dump(self._processed_files, f, indent=2)

    def _discover_files(self, directory: Path) -> list[Path]:
        """Discover all supported files in directory."""
        if not directory.exists():
            return []
        return sorted(
            p
            for p in directory.iterdir()
            if p.is_file() and p.suffix.lower() in SUPPORTED_EXTENSIONS
        )

    def ingest_text(
        self,
        text: str,
        source: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Optional[str]:
        """Split, embed and store raw text. Returns the document id."""
        return self._store(source, self.splitter.split_text(text), metadata)

    def ingest_file(self, file_path: Path) -> Optional[str]:
        """Load, split, embed and store one file. Returns the document id.

        Re-ingesting a file replaces its previous chunks.
        """
        file_path = Path(file_path)
        logger.info(f"Ingesting {file_path}")
        documents = self.loader.load_file(file_path)
        contents = self.splitter.split_documents(documents)
        return self._store(file_path.name, contents, {"file_path": str(file_path)})

    def _store(
        self,
        source: str,
        contents: list[str],
        metadata: Optional[dict[str, Any]],
    ) -> Optional[str]:
        if not contents:
            logger.warning(f"No text extracted from {source}, skipping")
            return None

        logger.info(f"Embedding {len(contents)} chunks from {source}")
        embeddings = self.embedder.embed_batch(contents)
        return self.chunk_store.add_document(source, contents, embeddings, metadata)

    def ingest_files(self, files: list[Path]) -> dict[str, Any]:
        """Ingest specific files; a failing file is reported, not raised.

        Returns:
            Summary counts in the same shape as ``process_directory``.
        """
        documents = 0
        failed: list[str] = []
        for file_path in files:
            try:
                document_id = self.ingest_file(file_path)
            except Exception as e:
                logger.error(f"Failed to ingest {file_path}: {e}")
                failed.append(str(file_path))
                continue
            if document_id is not None:
                documents += 1

        return {
            "documents": documents,
            "skipped": 0,
            "failed": failed,
            "total_chunks": self.chunk_store.count,
        }

    def process_directory(
        self,
        directory: Optional[Path] = None,
        force: bool = False,
    ) -> dict[str, Any]:
        """Ingest new and changed files from a directory.

        Args:
            directory: Directory to scan; defaults to the loader's directory.
            force: Clear the store and re-ingest every file.

        Returns:
            Summary counts for the run.
        """
        directory = Path(directory) if directory else Path(self.loader.directory)

        if force:
            logger.info("Force re-indexing - clearing existing chunks")
            self.chunk_store.delete_all()
            self._processed_files = {}
        else:
            self._processed_files = self._load_processed_files()

        files = self._discover_files(directory)
        changed = [
            f for f in files if self._processed_files.get(str(f)) != compute_file_hash(f)
        ]

        if not changed:
            logger.info("No new or changed files to process")

        documents = 0
        failed: list[str] = []
        for file_path in changed:
            try:
                document_id = self.ingest_file(file_path)
            except Exception as e:
                logger.error(f"Failed to ingest {file_path}: {e}")
                failed.append(str(file_path))
                continue
            if document_id is not None:
                documents += 1
            self._processed_files[str(file_path)] = compute_file_hash(file_path)

        self._save_processed_files()

        return {
            "documents": documents,
            "skipped": len(files) - len(changed),
            "failed": failed,
            "total_chunks": self.chunk_store.count,
        }


def run_ingestion(
    config_path: Path = Path("config.toml"),
    force: bool = False,
    files: Optional[list[Path]] = None,
) -> dict[str, Any]:
    """Run the ingestion pipeline.

    Args:
        config_path: Path to configuration file.
        force: If True, re-index all documents.
        files: Optional list of specific files to ingest instead of a directory scan.

    Returns:
        Dictionary with ingestion results.
    """
    config = load_config(config_path)
    pipeline = IngestionPipeline.from_config(config, config_path)

    try:
        if files:
            return pipeline.ingest_files(files)
        return pipeline.process_directory(force=force)
    finally:
        pipeline.embedder.close()
