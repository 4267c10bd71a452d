# knowledge/documents.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Protocol, Tuple

from telemetry.logger import get_logger

logger = get_logger(__name__)

KB_EXTENSIONS: Tuple[str, ...] = (".md", ".txt")


@dataclass(frozen=True)
class Document:
    name: str
    raw_text: str


class DocumentStore(Protocol):
    def list_documents(self) -> List[Document]: ...


class DirectoryDocumentStore:
    """Markdown / plain-text files in one directory, re-read on every call."""

    def __init__(self, directory: str) -> None:
        self.directory = Path(directory)

    def list_documents(self) -> List[Document]:
        if not self.directory.is_dir():
            logger.info(f"KB: {self.directory} not found, skipping.")
            return []

        docs: List[Document] = []
        for path in sorted(self.directory.iterdir()):
            if not path.is_file() or path.suffix.lower() not in KB_EXTENSIONS:
                continue
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"KB: could not read {path.name}: {e}")
                continue
            if not text.strip():
                continue
            docs.append(Document(name=path.name, raw_text=text))

        if not docs:
            logger.info("KB: no .md/.txt files.")
        return docs


class InMemoryDocumentStore:
    def __init__(self, documents: List[Document]) -> None:
        self.documents = list(documents)

    def list_documents(self) -> List[Document]:
        return [d for d in self.documents if d.raw_text.strip()]
