"""Service orchestrating analysis jobs from submission to the written statement."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Tuple

from statement_parser.block_cache import BlockCache
from statement_parser.document_processing import load_blocks, parse_blocks
from statement_parser.job_store import JobStore
from statement_parser.job_status import READABLE_STATUSES
from statement_parser.statement_exporter import JsonResultSink
from statement_parser.statement_extractor import BankStatementResult, extract_bank_statement

logger = logging.getLogger(__name__)


class DocumentNotFoundError(LookupError):
    """Raised when the document to analyse is not in the bucket."""


class JobNotFoundError(LookupError):
    """Raised when a job id is unknown to the job store."""


class DocumentAnalysisService(Protocol):
    bucket_name: str

    def document_exists(self, document_name: str) -> bool: ...

    def start_analysis(self, document_name: str) -> str: ...

    def wait_for_completion(self, job_id: str) -> str: ...

    def fetch_blocks(self, job_id: str) -> Tuple[List[Dict[str, Any]], int]: ...


@dataclass
class ProcessingOutcome:
    """Normalized result returned by the processing service."""

    job_id: str
    status: str
    output_file: Optional[Path] = None
    already_processed: bool = False
    result: Optional[BankStatementResult] = None


class DocumentProcessor:
    """Drive a statement through analysis, extraction and persistence."""

    def __init__(
        self,
        analysis_service: DocumentAnalysisService,
        job_store: JobStore,
        result_sink: JsonResultSink,
        *,
        block_cache: Optional[BlockCache] = None,
    ) -> None:
        self._service = analysis_service
        self._jobs = job_store
        self._sink = result_sink
        self._cache = block_cache

    # ------------------------------------------------------------------
    def process_document(self, document_name: str, *, force: bool = False) -> ProcessingOutcome:
        """Analyse ``document_name`` unless an earlier run already produced an output."""

        if not self._service.document_exists(document_name):
            raise DocumentNotFoundError(
                f"Document {document_name} not found in bucket {self._service.bucket_name}"
            )

        existing = self._jobs.get_by_document_name(document_name)
        if existing is not None and not force:
            output = self._sink.find_existing(document_name, existing.job_id)
            if output is not None:
                logger.info("Document %s has already been processed: %s", document_name, output)
                return ProcessingOutcome(
                    job_id=existing.job_id,
                    status=existing.status,
                    output_file=output,
                    already_processed=True,
                )

        job_id = self._service.start_analysis(document_name)
        self._jobs.add(job_id, document_name, self._service.bucket_name)
        return self.check_job(job_id)

    def check_job(self, job_id: str) -> ProcessingOutcome:
        """Wait for a tracked job and extract its statement once it succeeds."""

        record = self._jobs.get_by_job_id(job_id)
        if record is None:
            raise JobNotFoundError(f"No job found with ID: {job_id}")

        logger.info("Checking status for job %s (document %s, last status %s)", job_id, record.document_name, record.status)
        status = self._service.wait_for_completion(job_id)
        self._jobs.update_status(job_id, status)

        if status not in READABLE_STATUSES:
            logger.warning("Job %s finished with status %s; nothing to extract", job_id, status)
            return ProcessingOutcome(job_id=job_id, status=status)

        result = extract_bank_statement(parse_blocks(self._load_raw_blocks(job_id)))
        output = self._sink.write_for_job(result, record.document_name, job_id)
        self._jobs.update_status(job_id, status, output_file=str(output))
        return ProcessingOutcome(job_id=job_id, status=status, output_file=output, result=result)

    # ------------------------------------------------------------------
    def _load_raw_blocks(self, job_id: str) -> List[Dict[str, Any]]:
        if self._cache is not None:
            cached = self._cache.get(job_id)
            if cached is not None:
                logger.info("Using %s cached blocks for job %s", len(cached), job_id)
                return cached

        blocks, pages = self._service.fetch_blocks(job_id)
        logger.debug("Job %s returned %s blocks over %s pages", job_id, len(blocks), pages)
        if self._cache is not None:
            self._cache.put(job_id, blocks)
        return blocks


def _split_blocks_name(blocks_file: Path) -> Tuple[str, str]:
    """``<document>_<jobId>_blocks.json`` -> (document, job id)."""

    parts = blocks_file.stem.split("_")
    if len(parts) >= 2:
        return parts[0], parts[1]
    return blocks_file.stem, "reparsed"


def reparse_blocks(
    blocks_file: Path,
    result_sink: JsonResultSink,
    output: Optional[Path] = None,
) -> ProcessingOutcome:
    """Re-run extraction over a saved block dump without calling the analysis service."""

    blocks_file = Path(blocks_file)
    document_name, job_id = _split_blocks_name(blocks_file)
    result = extract_bank_statement(load_blocks(blocks_file.read_bytes()))
    if output is not None:
        target = result_sink.write(result, str(Path(output).resolve()))
    else:
        target = result_sink.write_for_job(result, document_name, job_id)
    return ProcessingOutcome(job_id=job_id, status="REPARSED", output_file=target, result=result)


__all__ = [
    "DocumentAnalysisService",
    "DocumentNotFoundError",
    "DocumentProcessor",
    "JobNotFoundError",
    "ProcessingOutcome",
    "reparse_blocks",
]
