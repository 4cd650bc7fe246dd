import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Iterator

from docx import Document
from pypdf import PdfReader

from ensemble_search.core.models.document import SourceDocument

logger = logging.getLogger(__name__)


def read_text(file_path: Path) -> str:
    return file_path.read_text(encoding="utf-8")


def read_pdf(file_path: Path) -> str:
    reader = PdfReader(file_path)
    pages = [page.extract_text() or "" for page in reader.pages]
    return "\n\n".join(p.strip() for p in pages if p.strip())


def read_docx(file_path: Path) -> str:
    doc = Document(file_path)
    return "\n\n".join(p.text.strip() for p in doc.paragraphs if p.text.strip())


READERS: dict[str, Callable[[Path], str]] = {
    ".txt": read_text,
    ".md": read_text,
    ".markdown": read_text,
    ".pdf": read_pdf,
    ".docx": read_docx,
}


class DirectoryCorpus:
    """Corpus of files in a single directory, read in name order."""

    def __init__(self, docs_path: str = "./docs", extensions: Iterable[str] | None = None):
        """Initialize corpus.

        Args:
            docs_path: Directory with documents.
            extensions: Suffixes to read. Defaults to every supported one.
        """
        self._docs_path = Path(docs_path)
        wanted = {e.lower() for e in (extensions or READERS)}
        unsupported = wanted - READERS.keys()
        if unsupported:
            raise ValueError(f"Unsupported document types: {sorted(unsupported)}")
        self._extensions = wanted

    def supports(self, file_path: Path) -> bool:
        return file_path.is_file() and file_path.suffix.lower() in self._extensions

    def documents(self) -> Iterator[SourceDocument]:
        if not self._docs_path.is_dir():
            logger.error(f"Docs path not found: {self._docs_path}")
            return

        files = sorted(p for p in self._docs_path.iterdir() if self.supports(p))
        logger.info(f"Found {len(files)} documents in {self._docs_path}")

        for file_path in files:
            try:
                text = READERS[file_path.suffix.lower()](file_path)
                stat = file_path.stat()
            except Exception as e:
                logger.error(f"Failed to load {file_path}: {e}")
                continue

            yield SourceDocument(
                name=file_path.name,
                path=file_path,
                text=text,
                size_bytes=stat.st_size,
                last_modified=datetime.fromtimestamp(stat.st_mtime),
            )
