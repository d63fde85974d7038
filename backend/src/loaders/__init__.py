from .base import SUPPORTED_EXTENSIONS, BaseDocumentLoader
from .directory import DirectoryLoader

DocumentLoader = DirectoryLoader

__all__ = ["BaseDocumentLoader", "DirectoryLoader", "DocumentLoader", "SUPPORTED_EXTENSIONS"]
