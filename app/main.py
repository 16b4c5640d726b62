import argparse
import json
import mimetypes
import sys
from dataclasses import asdict
from pathlib import Path

from app.analysis.orchestrator import build_orchestrator
from app.config.settings import Settings
from app.database.connection import close_pool, init_pool
from app.database.repositories.document_repository import DocumentRepository
from app.database.schema import ensure_schema
from app.errors import DocIntelError
from app.ingestion.lifecycle import DocumentLifecycle, build_lifecycle
from app.logging.logger import Log
from app.worker.pool import ProcessingPool
from app.worker.worker import Worker

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def cmd_worker(args: argparse.Namespace, settings: Settings, lifecycle: DocumentLifecycle) -> int:
    worker = Worker(DocumentRepository(), lifecycle, settings)
    worker.run()
    return 0


def cmd_ingest(args: argparse.Namespace, settings: Settings, lifecycle: DocumentLifecycle) -> int:
    path = Path(args.path)
    content_type = args.content_type or mimetypes.guess_type(path.name)[0] or DEFAULT_CONTENT_TYPE
    record = lifecycle.ingest(
        path.read_bytes(),
        path.name,
        content_type,
        args.uploaded_by,
        tags=args.tag or [],
    )
    print(record.id)
    return 0


def cmd_analyze(args: argparse.Namespace, settings: Settings, lifecycle: DocumentLifecycle) -> int:
    orchestrator = build_orchestrator(settings, lifecycle)
    try:
        record = orchestrator.analyze(args.document_id, args.analysis_type)
    finally:
        orchestrator.close()
    print(json.dumps(asdict(record), default=str, indent=2))
    return 0 if record.error_message is None else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docintel",
        description="Document ingestion and analysis worker",
    )
    parser.set_defaults(func=cmd_worker)
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    sub = subparsers.add_parser("worker", help="Run the recovery worker loop")
    sub.set_defaults(func=cmd_worker)

    sub = subparsers.add_parser("ingest", help="Ingest a file and extract its text")
    sub.add_argument("path", help="File to ingest")
    sub.add_argument("--content-type", help="MIME type (guessed from the name if omitted)")
    sub.add_argument("--uploaded-by", default=None, help="Uploader identifier")
    sub.add_argument("--tag", action="append", help="Tag to attach (repeatable)")
    sub.set_defaults(func=cmd_ingest)

    sub = subparsers.add_parser("analyze", help="Run an analysis on a processed document")
    sub.add_argument("document_id")
    sub.add_argument(
        "analysis_type",
        help="entity_extraction, classification, summarization, "
        "sentiment_analysis or comprehensive",
    )
    sub.set_defaults(func=cmd_analyze)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point: initialize pool -> ensure schema -> run the sub-command."""
    args = build_parser().parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    pool = ProcessingPool(
        workers=settings.processing_workers,
        capacity=settings.processing_queue_capacity,
    )
    try:
        ensure_schema()
        lifecycle = build_lifecycle(settings, pool)
        return args.func(args, settings, lifecycle)
    except DocIntelError as exc:
        Log.error(f"{exc.__class__.__name__}: {exc}")
        return 1
    finally:
        pool.shutdown(wait=True)
        close_pool()


if __name__ == "__main__":
    sys.exit(main())
