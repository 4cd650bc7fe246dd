import logging
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from .config.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Container:
    _factories: dict[type, Callable[[], Any]] = field(default_factory=dict)
    _singletons: dict[type, Any] = field(default_factory=dict)
    _singleton_flags: set[type] = field(default_factory=set)

    def register(
        self, interface: type[T], factory: Callable[[], T], singleton: bool = False
    ) -> None:
        """Register factory for interface.

        Args:
            interface: Interface type.
            factory: Factory function.
            singleton: Whether to cache instance.
        """
        self._factories[interface] = factory
        if singleton:
            self._singleton_flags.add(interface)
        else:
            self._singleton_flags.discard(interface)
        self._singletons.pop(interface, None)

    def resolve(self, interface: type[T]) -> T:
        if interface in self._singletons:
            return self._singletons[interface]

        if interface not in self._factories:
            raise KeyError(f"No factory registered for {interface}")

        instance = self._factories[interface]()

        if interface in self._singleton_flags:
            self._singletons[interface] = instance

        return instance

    def reset(self) -> None:
        """Reset singletons (for testing)."""
        self._singletons.clear()


container = Container()


def configure_container(settings: Settings) -> Container:
    """Configure container with all dependencies.

    Args:
        settings: Application settings.

    Returns:
        Configured container.

    Raises:
        ChunkingConfigError: If chunk geometry is invalid.
    """
    from .core.protocols.corpus import CorpusSourceProtocol
    from .core.protocols.embedder import EmbedderProtocol
    from .core.protocols.lexical_index import LexicalIndexProtocol
    from .core.protocols.vector_index import VectorIndexProtocol
    from .core.services.ingest_service import IngestService
    from .core.services.search_service import SearchService
    from .core.services.text_splitter import ChunkingConfig, RecursiveTextSplitter
    from .core.strategies.fusion import LEXICAL, VECTOR, FusionStrategy, ReciprocalRankFusion
    from .infrastructure.document_loaders import DirectoryCorpus
    from .infrastructure.lexical.bm25_index import BM25Index
    from .infrastructure.vector_stores.local_store import LocalVectorIndex

    # Fail fast on bad chunk geometry
    chunking = ChunkingConfig(
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
        separators=tuple(settings.chunk_separators),
    )

    def make_embedder() -> EmbedderProtocol:
        if settings.embedding_provider == "huggingface":
            from .infrastructure.embeddings.huggingface_inference import (
                HuggingFaceInferenceEmbedder,
            )

            return HuggingFaceInferenceEmbedder(
                model_name=settings.embedding_model,
                api_key=settings.huggingface_api_key,
                base_url=settings.huggingface_base_url,
                timeout=settings.embedding_timeout,
            )

        from .infrastructure.embeddings.sentence_transformer import (
            SentenceTransformerEmbedder,
        )

        return SentenceTransformerEmbedder(settings.embedding_model)

    def make_vector_index() -> VectorIndexProtocol:
        index = LocalVectorIndex(
            embedder=container.resolve(EmbedderProtocol),
            storage_dir=settings.storage_dir,
            batch_size=settings.embedding_batch_size,
            passage_prefix=settings.embedding_passage_prefix,
            query_prefix=settings.embedding_query_prefix,
        )
        index.load()
        return index

    container.register(EmbedderProtocol, make_embedder, singleton=True)

    container.register(VectorIndexProtocol, make_vector_index, singleton=True)

    container.register(
        LexicalIndexProtocol,
        lambda: BM25Index(k1=settings.bm25_k1, b=settings.bm25_b),
        singleton=True,
    )

    container.register(
        FusionStrategy,
        lambda: ReciprocalRankFusion(
            weights={LEXICAL: settings.lexical_weight, VECTOR: settings.vector_weight},
            c=settings.rrf_constant,
        ),
        singleton=True,
    )

    container.register(
        RecursiveTextSplitter, lambda: RecursiveTextSplitter(chunking), singleton=True
    )

    container.register(
        CorpusSourceProtocol,
        lambda: DirectoryCorpus(settings.docs_path, settings.docs_extensions),
        singleton=True,
    )

    container.register(
        SearchService,
        lambda: SearchService(
            vector_index=container.resolve(VectorIndexProtocol),
            lexical_index=container.resolve(LexicalIndexProtocol),
            fusion=container.resolve(FusionStrategy),
            top_k=settings.rag_top_k,
            fetch_k=settings.rag_fetch_k,
        ),
        singleton=True,
    )

    container.register(
        IngestService,
        lambda: IngestService(
            vector_index=container.resolve(VectorIndexProtocol),
            search_service=container.resolve(SearchService),
            corpus=container.resolve(CorpusSourceProtocol),
            splitter=container.resolve(RecursiveTextSplitter),
        ),
        singleton=True,
    )

    logger.info("Container configured")
    return container
