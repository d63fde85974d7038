import hashlib
from pathlib import Path


def compute_file_hash(file_path: Path) -> str:
    """SHA-256 of a file's bytes, used to skip unchanged files on re-ingestion."""
    hasher = hashlib.sha256()
    with open(file_path, "rb") as f:
        for block in iter(lambda: f.read(65536), b""):
            hasher.update(block)
    return hasher.hexdigest()
