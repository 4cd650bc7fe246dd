"""Text splitter - recursive separator-aware chunking."""

import logging
from collections import deque
from dataclasses import dataclass

from ..exceptions import ChunkingConfigError
from ..models.document import Chunk, SourceDocument

logger = logging.getLogger(__name__)

# Coarsest to finest; "" falls back to single characters.
DEFAULT_SEPARATORS = ("\n\n\n", "\n\n", "\n", ". ", " ", "")

Span = tuple[int, int]


@dataclass(frozen=True)
class ChunkingConfig:
    """Chunk geometry."""
    chunk_size: int = 8000
    chunk_overlap: int = 1600
    separators: tuple[str, ...] = DEFAULT_SEPARATORS

    def __post_init__(self) -> None:
        object.__setattr__(self, "separators", tuple(self.separators))

        if self.chunk_size <= 0:
            raise ChunkingConfigError(
                f"chunk_size must be positive, got {self.chunk_size}",
                {"chunk_size": self.chunk_size},
            )
        if not 0 <= self.chunk_overlap < self.chunk_size:
            raise ChunkingConfigError(
                "chunk_overlap must be in [0, chunk_size)",
                {"chunk_size": self.chunk_size, "chunk_overlap": self.chunk_overlap},
            )
        if not self.separators or self.separators[-1] != "":
            raise ChunkingConfigError(
                "separators must end with the empty string",
                {"separators": list(self.separators)},
            )


class RecursiveTextSplitter:
    """Split documents into overlapping chunks.

    Text is cut on the coarsest separator that occurs in it. Pieces that are
    still longer than ``chunk_size`` are cut again with the finer separators.
    Separators stay attached to the preceding piece, so the pieces tile the
    text and every chunk is an exact slice of the document.
    """

    def __init__(self, config: ChunkingConfig | None = None):
        """Initialize splitter.

        Args:
            config: Chunk geometry. Defaults to 8000/1600 characters.
        """
        self._config = config or ChunkingConfig()

    @property
    def config(self) -> ChunkingConfig:
        return self._config

    def _pieces(
        self, text: str, start: int, end: int, separators: tuple[str, ...]
    ) -> list[Span]:
        """Cut text[start:end] into pieces no longer than chunk_size."""
        for i, sep in enumerate(separators):
            if sep == "" or text.find(sep, start, end) != -1:
                break
        finer = separators[i + 1:]

        if sep == "":
            return [(pos, pos + 1) for pos in range(start, end)]

        pieces: list[Span] = []
        pos = start
        while pos < end:
            idx = text.find(sep, pos, end)
            piece_end = end if idx == -1 else idx + len(sep)
            if piece_end - pos > self._config.chunk_size:
                pieces.extend(self._pieces(text, pos, piece_end, finer))
            else:
                pieces.append((pos, piece_end))
            pos = piece_end
        return pieces

    def split_spans(self, text: str) -> list[Span]:
        """Split text into (start, end) character spans.

        Args:
            text: Text to split.

        Returns:
            Ordered spans; each chunk after the first starts inside the
            previous one by at most chunk_overlap characters.
        """
        if not text:
            return []

        size = self._config.chunk_size
        overlap = self._config.chunk_overlap

        if len(text) <= size:
            return [(0, len(text))]

        spans: list[Span] = []
        window: deque[Span] = deque()
        total = 0

        for piece in self._pieces(text, 0, len(text), self._config.separators):
            length = piece[1] - piece[0]
            if window and total + length > size:
                spans.append((window[0][0], window[-1][1]))
                # Keep a tail of at most `overlap` chars that still leaves room
                while window and (total > overlap or total + length > size):
                    first = window.popleft()
                    total -= first[1] - first[0]
            window.append(piece)
            total += length

        if window:
            spans.append((window[0][0], window[-1][1]))

        return spans

    def split(self, document: SourceDocument) -> list[Chunk]:
        """Split a document into chunks with provenance metadata.

        Args:
            document: Source document.

        Returns:
            Chunks in document order. Empty for an empty document.
        """
        spans = self.split_spans(document.text)
        total = len(spans)

        chunks = [
            Chunk(
                id=Chunk.make_id(document.name, index),
                text=document.text[start:end],
                source_file=document.name,
                chunk_index=index,
                total_chunks=total,
                start_offset=start,
                end_offset=end,
                size_bytes=document.size_bytes,
                last_modified=document.last_modified,
            )
            for index, (start, end) in enumerate(spans)
        ]

        logger.debug(f"Split {document.name} into {total} chunks")
        return chunks
