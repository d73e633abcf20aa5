"""Utilities for writing extracted statements into standalone JSON files."""
from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from pathlib import Path

from .statement_builder import statement_to_dict
from .statement_extractor import BankStatementResult

logger = logging.getLogger(__name__)

_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def _sanitize_stem(value: str) -> str:
    """Return a filesystem-safe stem for the generated document."""

    sanitized = re.sub(r"[^0-9A-Za-z_.-]+", "_", value).strip("._")
    return sanitized or "statement"


def _ensure_export_dir(path: Path) -> Path:
    export_dir = Path(path)
    export_dir.mkdir(parents=True, exist_ok=True)
    return export_dir


def _next_available_path(directory: Path, filename: str) -> Path:
    candidate = directory / filename
    if not candidate.exists():
        return candidate

    stem = candidate.stem
    suffix = candidate.suffix
    counter = 1
    while True:
        updated = directory / f"{stem}_{counter}{suffix}"
        if not updated.exists():
            return updated
        counter += 1


def build_output_name(document_name: str, job_id: str, *, timestamp: datetime | None = None) -> str:
    """``<document>_<jobId>-<YYYYmmdd_HHMMSS>.json`` for one extraction run."""

    stamp = (timestamp or datetime.now()).strftime(_TIMESTAMP_FORMAT)
    stem = _sanitize_stem(Path(document_name or "").stem)
    return f"{stem}_{_sanitize_stem(job_id)}-{stamp}.json"


class JsonResultSink:
    """Writes statement results as indented JSON files into one directory."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = Path(output_dir)

    def write(self, result: BankStatementResult, destination: str) -> Path:
        """Write ``result`` under ``destination`` (a file name or an absolute path)."""

        target = Path(destination)
        if target.is_absolute() or target.parent != Path("."):
            _ensure_export_dir(target.parent)
        else:
            target = _next_available_path(_ensure_export_dir(self.output_dir), target.name)

        payload = json.dumps(statement_to_dict(result), ensure_ascii=False, indent=2)
        target.write_text(payload, encoding="utf-8")
        logger.info(
            "Results saved to %s (%s summary fields, %s transactions)",
            target,
            len(result.summary),
            len(result.transactions),
        )
        return target

    def write_for_job(self, result: BankStatementResult, document_name: str, job_id: str) -> Path:
        return self.write(result, build_output_name(document_name, job_id))

    def find_existing(self, document_name: str, job_id: str) -> Path | None:
        """Return an earlier output for this document/job pair, if one was written."""

        if not self.output_dir.is_dir():
            return None
        pattern = f"{_sanitize_stem(Path(document_name or '').stem)}_{_sanitize_stem(job_id)}-*.json"
        matches = sorted(self.output_dir.glob(pattern))
        return matches[0] if matches else None


__all__ = ["JsonResultSink", "build_output_name"]
