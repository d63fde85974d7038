from abc import ABC, abstractmethod

from llama_index.core.schema import Document as LlamaDocument


class BaseTextSplitter(ABC):
    """Abstract base class for text splitters."""

    @abstractmethod
    def split_documents(self, documents: list[LlamaDocument]) -> list[str]:
        """Split loaded documents into chunk texts, in document order."""
        pass

    @abstractmethod
    def split_text(self, text: str) -> list[str]:
        """Split raw text into chunk texts."""
        pass
