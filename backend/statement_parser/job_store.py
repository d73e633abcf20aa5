"""JSON-file persistence for analysis job metadata."""
from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from .job_status import SUBMITTED, TERMINAL_STATUSES

logger = logging.getLogger(__name__)

_LOCK = threading.RLock()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(slots=True)
class JobRecord:
    job_id: str
    document_name: str
    bucket_name: str
    status: str
    created_at: datetime
    updated_at: datetime | None = None
    output_file: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        data["updated_at"] = self.updated_at.isoformat() if self.updated_at else None
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JobRecord":
        return cls(
            job_id=str(data["job_id"]),
            document_name=str(data.get("document_name") or ""),
            bucket_name=str(data.get("bucket_name") or ""),
            status=str(data.get("status") or ""),
            created_at=_parse_timestamp(data.get("created_at")) or _utcnow(),
            updated_at=_parse_timestamp(data.get("updated_at")),
            output_file=data.get("output_file"),
        )


class JobStore:
    """Keeps track of submitted analysis jobs in a single JSON file.

    The file is re-read under a process-wide lock before every read or change,
    so several stores pointing at the same file never write back a stale list.
    Writes go to a temporary file that then replaces the jobs file.
    """

    def __init__(self, path: Path, *, clock=_utcnow) -> None:
        self.path = Path(path)
        self._clock = clock

    # ------------------------------------------------------------------
    def _load(self) -> list[JobRecord]:
        if not self.path.is_file():
            return []
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8") or "[]")
            return [JobRecord.from_dict(item) for item in payload]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Could not read job records from %s: %s", self.path, exc)
            return []

    def _save(self, jobs: list[JobRecord]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps([job.to_dict() for job in jobs], ensure_ascii=False, indent=2)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Jobs saved to %s", self.path)

    @staticmethod
    def _find(jobs: list[JobRecord], job_id: str) -> JobRecord | None:
        return next((job for job in jobs if job.job_id == job_id), None)

    # ------------------------------------------------------------------
    def add(self, job_id: str, document_name: str, bucket_name: str = "", *, status: str = SUBMITTED) -> JobRecord:
        record = JobRecord(
            job_id=job_id,
            document_name=document_name,
            bucket_name=bucket_name,
            status=status,
            created_at=self._clock(),
        )
        with _LOCK:
            jobs = self._load()
            jobs.append(record)
            self._save(jobs)
        logger.info("Added job %s for document %s", job_id, document_name)
        return record

    def update_status(self, job_id: str, status: str, *, output_file: str | None = None) -> JobRecord | None:
        with _LOCK:
            jobs = self._load()
            record = self._find(jobs, job_id)
            if record is None:
                logger.warning("Cannot update unknown job %s", job_id)
                return None
            record.status = status
            record.updated_at = self._clock()
            if output_file is not None:
                record.output_file = output_file
            self._save(jobs)
        logger.info("Updated job %s status to %s", job_id, status)
        return record

    def get_by_job_id(self, job_id: str) -> JobRecord | None:
        with _LOCK:
            return self._find(self._load(), job_id)

    def get_by_document_name(self, document_name: str) -> JobRecord | None:
        """Most recently submitted job for the document."""

        with _LOCK:
            matches = [job for job in self._load() if job.document_name == document_name]
        return max(matches, key=lambda job: job.created_at) if matches else None

    def list_all(self) -> list[JobRecord]:
        with _LOCK:
            jobs = self._load()
        return sorted(jobs, key=lambda job: job.created_at, reverse=True)

    def list_pending(self) -> list[JobRecord]:
        with _LOCK:
            pending = [job for job in self._load() if job.status not in TERMINAL_STATUSES]
        return sorted(pending, key=lambda job: job.created_at)

    def remove(self, job_id: str) -> bool:
        with _LOCK:
            jobs = self._load()
            record = self._find(jobs, job_id)
            if record is None:
                return False
            jobs.remove(record)
            self._save(jobs)
        logger.info("Removed job %s", job_id)
        return True

    def prune_older_than(self, days: int = 30) -> int:
        """Drop finished jobs created more than ``days`` ago; pending jobs are kept."""

        cutoff = self._clock() - timedelta(days=days)
        with _LOCK:
            jobs = self._load()
            kept = [job for job in jobs if job.created_at >= cutoff or job.status not in TERMINAL_STATUSES]
            removed = len(jobs) - len(kept)
            if removed:
                self._save(kept)
        if removed:
            logger.info("Cleaned up %s old jobs", removed)
        return removed


__all__ = ["JobRecord", "JobStore", "SUBMITTED", "TERMINAL_STATUSES"]
