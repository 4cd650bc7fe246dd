
import logging
import sys

from ensemble_search.config.settings import settings
from ensemble_search.container import configure_container, container
from ensemble_search.core.exceptions import EnsembleSearchError
from ensemble_search.core.models.document import FusedResult
from ensemble_search.core.protocols.vector_index import VectorIndexProtocol
from ensemble_search.core.services.ingest_service import IngestService
from ensemble_search.core.services.search_service import SearchService

logger = logging.getLogger(__name__)

_SNIPPET_LENGTH = 160


def _bootstrap() -> SearchService:
    """Configure the container and restore persisted indices."""
    configure_container(settings)
    search_service = container.resolve(SearchService)
    search_service.restore()
    return search_service


def _format_result(position: int, result: FusedResult) -> str:
    snippet = " ".join(result.chunk.text.split())[:_SNIPPET_LENGTH]
    ranks = ", ".join(f"{name}#{rank}" for name, rank in sorted(result.ranks.items()))
    return (
        f"{position}. [{result.score:.5f}] {result.chunk.source_file} "
        f"(chunk {result.chunk.chunk_index + 1}/{result.chunk.total_chunks}; {ranks})\n"
        f"   {snippet}"
    )


def cmd_ingest():
    """Ingest command - index documents unless already indexed."""
    _bootstrap()
    ingest_service = container.resolve(IngestService)
    report = ingest_service.ingest_if_empty()
    if report.skipped:
        logger.info(f"Store already populated: {report.chunk_count} chunks")
    else:
        logger.info(
            f"Indexed {report.chunk_count} chunks from {report.document_count} documents"
        )


def cmd_search(query: str, limit: int | None = None):
    """Search command - print ranked chunks for a query."""
    search_service = _bootstrap()
    results = search_service.search(query, limit)

    if not results:
        print("No relevant chunks found")
        return

    mode = "fused" if results[0].fused else "vector-only"
    print(f"{len(results)} result(s), {mode}:")
    for position, result in enumerate(results, 1):
        print(_format_result(position, result))


def cmd_status():
    """Status command - print engine state and index size."""
    search_service = _bootstrap()
    vector_index = container.resolve(VectorIndexProtocol)
    print(f"State: {search_service.state.value}")
    print(f"Indexed chunks: {vector_index.count()}")


def _parse_search_args(args: list[str]) -> tuple[str, int | None]:
    limit = None
    if len(args) >= 2 and args[0] in ("-k", "--limit"):
        limit = int(args[1])
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        args = args[2:]
    return " ".join(args).strip(), limit


def main(argv: list[str] | None = None):
    """CLI entry point."""
    argv = sys.argv if argv is None else argv
    logging.basicConfig(level=settings.log_level.upper(), format="%(message)s")

    if len(argv) < 2:
        print("Usage: ensemble-search <command>")
        print("Commands: ingest, search [--limit N] <query>, status")
        sys.exit(1)

    command = argv[1]

    try:
        if command == "ingest":
            cmd_ingest()
        elif command == "search":
            try:
                query, limit = _parse_search_args(argv[2:])
            except ValueError:
                print("Limit must be a positive integer")
                sys.exit(1)
            if not query:
                print("Usage: ensemble-search search [--limit N] <query>")
                sys.exit(1)
            cmd_search(query, limit)
        elif command == "status":
            cmd_status()
        else:
            print(f"Unknown command: {command}")
            sys.exit(1)
    except EnsembleSearchError as e:
        logger.error(f"{command} failed: {e}")
        sys.exit(2)


if __name__ == "__main__":
    main()
