"""Command line entry point for analysing and re-parsing bank statements."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from statement_parser.block_cache import BlockCache
from statement_parser.core.config import Settings, get_settings
from statement_parser.document_processing import InvalidBlockStreamError
from statement_parser.job_store import JobRecord, JobStore
from statement_parser.services.statement_processor import (
    DocumentNotFoundError,
    DocumentProcessor,
    JobNotFoundError,
    ProcessingOutcome,
    reparse_blocks,
)
from statement_parser.services.textract_client import AnalysisServiceError, TextractAnalysisService
from statement_parser.statement_exporter import JsonResultSink

logger = logging.getLogger("statement_parser.cli")


def _build_processor(settings: Settings) -> DocumentProcessor:
    if not settings.bucket_name:
        raise AnalysisServiceError("Set STATEMENT_PARSER_BUCKET_NAME to analyse documents")
    service = TextractAnalysisService(
        settings.bucket_name,
        region_name=settings.aws_region,
        feature_types=settings.feature_types,
        poll_interval=settings.poll_interval_seconds,
        max_attempts=settings.max_poll_attempts,
    )
    cache = BlockCache(settings.block_cache_dir) if settings.block_cache_dir else None
    return DocumentProcessor(
        service,
        JobStore(settings.jobs_file),
        JsonResultSink(settings.output_dir),
        block_cache=cache,
    )


def _outcome_payload(outcome: ProcessingOutcome) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "job_id": outcome.job_id,
        "status": outcome.status,
        "output_file": str(outcome.output_file) if outcome.output_file else None,
        "already_processed": outcome.already_processed,
    }
    if outcome.result is not None:
        payload["summary_fields"] = len(outcome.result.summary)
        payload["transactions"] = len(outcome.result.transactions)
    return payload


def _job_payload(record: JobRecord) -> dict[str, Any]:
    return record.to_dict()


def _emit(payload: Any) -> None:
    json.dump(payload, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")


def _cmd_process(args: argparse.Namespace, settings: Settings) -> int:
    outcome = _build_processor(settings).process_document(args.document, force=args.force)
    _emit(_outcome_payload(outcome))
    return 0


def _cmd_check(args: argparse.Namespace, settings: Settings) -> int:
    outcome = _build_processor(settings).check_job(args.job_id)
    _emit(_outcome_payload(outcome))
    return 0


def _cmd_reparse(args: argparse.Namespace, settings: Settings) -> int:
    outcome = reparse_blocks(args.blocks_file, JsonResultSink(settings.output_dir), args.output)
    _emit(_outcome_payload(outcome))
    return 0


def _cmd_jobs(args: argparse.Namespace, settings: Settings) -> int:
    store = JobStore(settings.jobs_file)
    records = store.list_pending() if args.pending else store.list_all()
    _emit([_job_payload(record) for record in records])
    return 0


def _cmd_prune(args: argparse.Namespace, settings: Settings) -> int:
    removed = JobStore(settings.jobs_file).prune_older_than(args.days)
    _emit({"removed": removed})
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="statement-parser",
        description="Extract account summaries and transactions from analysed bank statements.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    process_parser = subparsers.add_parser("process", help="Analyse a statement stored in the bucket")
    process_parser.add_argument("document", help="Object key of the statement")
    process_parser.add_argument(
        "--force",
        action="store_true",
        help="Start a new analysis even when an output already exists",
    )
    process_parser.set_defaults(func=_cmd_process)

    check_parser = subparsers.add_parser("check", help="Wait for a tracked job and extract its statement")
    check_parser.add_argument("job_id", help="Analysis job identifier")
    check_parser.set_defaults(func=_cmd_check)

    reparse_parser = subparsers.add_parser("reparse", help="Re-run extraction over a saved block dump")
    reparse_parser.add_argument("blocks_file", type=Path, help="JSON file with the analysis blocks")
    reparse_parser.add_argument("--output", type=Path, help="Destination file (default: output directory)")
    reparse_parser.set_defaults(func=_cmd_reparse)

    jobs_parser = subparsers.add_parser("jobs", help="List tracked analysis jobs")
    jobs_parser.add_argument("--pending", action="store_true", help="Only jobs without a terminal status")
    jobs_parser.set_defaults(func=_cmd_jobs)

    prune_parser = subparsers.add_parser("prune", help="Forget finished jobs older than N days")
    prune_parser.add_argument("--days", type=int, default=30, help="Age threshold in days (default: 30)")
    prune_parser.set_defaults(func=_cmd_prune)

    return parser


def main(argv: list[str] | None = None, *, settings: Settings | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s %(name)s %(message)s")

    handler = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args, settings)
    except (DocumentNotFoundError, JobNotFoundError) as exc:
        logger.error("%s", exc)
    except InvalidBlockStreamError as exc:
        logger.error("Invalid block file: %s", exc)
    except AnalysisServiceError as exc:
        logger.error("Analysis failed: %s", exc)
    except OSError as exc:
        logger.error("%s", exc)

    return 1


__all__ = ["main"]


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
