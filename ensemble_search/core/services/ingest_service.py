"""Ingest service - one-time corpus indexing."""

import logging

from ..models.document import Chunk, IngestReport
from ..protocols.corpus import CorpusSourceProtocol
from ..protocols.vector_index import VectorIndexProtocol
from .search_service import SearchService
from .text_splitter import RecursiveTextSplitter

logger = logging.getLogger(__name__)


class IngestService:
    """Service for indexing the corpus into both search indices."""

    def __init__(
        self,
        vector_index: VectorIndexProtocol,
        search_service: SearchService,
        corpus: CorpusSourceProtocol,
        splitter: RecursiveTextSplitter,
    ):
        """Initialize ingest service.

        Args:
            vector_index: Persistent vector index.
            search_service: Search service to initialize after indexing.
            corpus: Source of raw documents.
            splitter: Chunking pipeline.
        """
        self._vector_index = vector_index
        self._search = search_service
        self._corpus = corpus
        self._splitter = splitter

    def ingest_if_empty(self) -> IngestReport:
        """Index the corpus unless the store already holds chunks.

        Returns:
            Chunk and document counts. ``skipped`` is set when the store
            was already populated.
        """
        current_count = self._vector_index.count()
        if current_count > 0:
            documents = {c.source_file for c in self._vector_index.chunks()}
            logger.info(
                f"Vector store already has {current_count} chunks - skipping ingestion"
            )
            return IngestReport(
                chunk_count=current_count, document_count=len(documents), skipped=True
            )

        all_chunks: list[Chunk] = []
        document_count = 0

        for document in self._corpus.documents():
            chunks = self._splitter.split(document)
            if not chunks:
                logger.debug(f"Skip empty document: {document.name}")
                continue

            logger.info(f"Split {document.name} into {len(chunks)} chunks")
            all_chunks.extend(chunks)
            document_count += 1

        if not all_chunks:
            logger.warning("No documents found to ingest")
            return IngestReport(chunk_count=0, document_count=0)

        self._vector_index.add(all_chunks)
        self._search.initialize(all_chunks)

        logger.info(
            f"Indexing complete: {len(all_chunks)} chunks from {document_count} files"
        )
        return IngestReport(chunk_count=len(all_chunks), document_count=document_count)
