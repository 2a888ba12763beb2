"""Argparse front end over :class:`~docqa.pipeline.orchestrator.PipelineOrchestrator`."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from pathlib import Path

from docqa.config.loader import load_config
from docqa.config.settings import Settings
from docqa.models.pipeline import ProgressStatus, QuestionStatus
from docqa.pipeline.orchestrator import PipelineOrchestrator
from docqa.utils.errors import DocQAError


def _print_progress(status: ProgressStatus) -> None:
    print(
        f"  progress: {status.total_percent:3d}% total, "
        f"{status.document_percent:3d}% current document",
        file=sys.stderr,
    )


async def _ingest_files(orchestrator: PipelineOrchestrator, files: Sequence[str]) -> int:
    failures = 0
    for file_name in files:
        path = Path(file_name)
        try:
            content = path.read_bytes()
            record = await orchestrator.submit_document(path.name, None, content)
        except (OSError, DocQAError) as exc:
            print(f"Failed: {path} ({exc})", file=sys.stderr)
            failures += 1
            continue
        print(f"Queued: {record.title} [{record.id}] {record.mime}")

    await orchestrator.drain()
    return failures


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_ingest(args: argparse.Namespace, orchestrator: PipelineOrchestrator) -> int:
    orchestrator.set_progress_listener(_print_progress)
    failures = await _ingest_files(orchestrator, args.files)

    records = await orchestrator.list_documents()
    print(f"\nCatalog now holds {len(records)} document(s).")
    return 1 if failures else 0


async def _handle_ask(args: argparse.Namespace, orchestrator: PipelineOrchestrator) -> int:
    if args.ingest:
        await _ingest_files(orchestrator, args.ingest)
    # Startup may have queued a rebuild of the index.
    await orchestrator.drain()

    job = orchestrator.submit_question(args.question)
    await orchestrator.drain()
    job = orchestrator.get_job(job.id) or job

    if args.json:
        print(json.dumps(job.model_dump(mode="json"), indent=2))
    else:
        print(job.answer or "")
    return 0 if job.status == QuestionStatus.COMPLETED else 1


async def _handle_list(args: argparse.Namespace, orchestrator: PipelineOrchestrator) -> int:
    records = await orchestrator.list_documents()
    if args.json:
        print(json.dumps([r.model_dump(mode="json") for r in records], indent=2))
        return 0

    if not records:
        print("No documents.")
        return 0
    for record in records:
        print(
            f"{record.id}  {record.status.value:<10} {record.chunks:>5} chunks  {record.title}"
        )
    return 0


async def _handle_delete(args: argparse.Namespace, orchestrator: PipelineOrchestrator) -> int:
    try:
        await orchestrator.delete_document(args.doc_id)
    except DocQAError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"Deleted {args.doc_id}")
    return 0


async def _handle_reindex(args: argparse.Namespace, orchestrator: PipelineOrchestrator) -> int:
    orchestrator.set_progress_listener(_print_progress)
    queued = await orchestrator.reindex_all()
    await orchestrator.drain()

    records = await orchestrator.list_documents()
    print(f"Reindexed {len(records)} of {queued} document(s).")
    return 0 if len(records) == queued else 1


_HANDLERS = {
    "ingest": _handle_ingest,
    "ask": _handle_ask,
    "list": _handle_list,
    "delete": _handle_delete,
    "reindex": _handle_reindex,
}


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    # Deferred so that --help works without the provider stack installed.
    from docqa.main import build_orchestrator

    orchestrator = build_orchestrator(app_settings)
    await orchestrator.initialize(rebuild_empty_index=args.command != "reindex")
    try:
        return await _HANDLERS[args.command](args, orchestrator)
    finally:
        await orchestrator.stop()


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m docqa",
        description="Ask questions over your own documents.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    ingest_parser = subparsers.add_parser("ingest", help="Store and index documents")
    ingest_parser.add_argument("files", nargs="+", help="PDF or text files")

    ask_parser = subparsers.add_parser("ask", help="Answer a question from the index")
    ask_parser.add_argument("question", help="The question to answer")
    ask_parser.add_argument(
        "--ingest",
        nargs="*",
        default=[],
        metavar="FILE",
        help="Ingest these files before asking",
    )
    ask_parser.add_argument("--json", action="store_true", help="Print the job as JSON")

    list_parser = subparsers.add_parser("list", help="List catalog documents")
    list_parser.add_argument("--json", action="store_true", help="Print records as JSON")

    delete_parser = subparsers.add_parser("delete", help="Delete a document")
    delete_parser.add_argument("doc_id", help="Document id from 'list'")

    subparsers.add_parser("reindex", help="Rebuild the search index from the catalog")

    config_parser = subparsers.add_parser("config", help="Show the resolved configuration")
    config_parser.add_argument(
        "--path",
        default="config/config.yaml",
        help="YAML defaults file (default: config/config.yaml)",
    )

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: Sequence[str] | None = None) -> int:
    """Parse *argv*, run the command and return its exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    app_settings = Settings()
    if args.command == "config":
        print(json.dumps(load_config(args.path, settings=app_settings), indent=2))
        return 0

    return asyncio.run(_run(args, app_settings))
