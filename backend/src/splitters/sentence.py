from llama_index.core.node_parser import SentenceSplitter
from llama_index.core.schema import Document as LlamaDocument

from .base import BaseTextSplitter


class SentenceTextSplitter(BaseTextSplitter):
    """Sentence-aware chunking backed by llama-index's SentenceSplitter.

    Chunks prefer to end on sentence boundaries and overlap by
    ``chunk_overlap`` tokens so context is not lost between neighbours.
    """

    def __init__(
        self,
        chunk_size: int = 1024,
        chunk_overlap: int = 50,
    ):
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.splitter = SentenceSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
        )

    def split_documents(self, documents: list[LlamaDocument]) -> list[str]:
        nodes = self.splitter.get_nodes_from_documents(documents)
        return [text for text in (node.get_content().strip() for node in nodes) if text]

    def split_text(self, text: str) -> list[str]:
        return [chunk for chunk in self.splitter.split_text(text) if chunk.strip()]
