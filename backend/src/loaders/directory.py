from pathlib import Path

from llama_index.core import SimpleDirectoryReader
from llama_index.core.schema import Document as LlamaDocument

from .base import SUPPORTED_EXTENSIONS, BaseDocumentLoader


class DirectoryLoader(BaseDocumentLoader):
    """Loads PDF, plain text and Markdown files using llama-index."""

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    def load(self) -> list[LlamaDocument]:
        if not self.directory.exists():
            raise FileNotFoundError(f"Directory not found: {self.directory}")

        reader = SimpleDirectoryReader(
            str(self.directory), required_exts=sorted(SUPPORTED_EXTENSIONS)
        )
        return reader.load_data()

    def load_file(self, file_path: Path | str) -> list[LlamaDocument]:
        file_path = Path(file_path)
        if file_path.suffix.lower() not in SUPPORTED_EXTENSIONS:
            raise ValueError(f"No loader available for file type: {file_path.suffix}")
        reader = SimpleDirectoryReader(input_files=[str(file_path)])
        return reader.load_data()
