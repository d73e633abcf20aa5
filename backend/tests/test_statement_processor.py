"""Tests for the document processing workflow."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from statement_parser.block_cache import BlockCache
from statement_parser.job_store import JobStore
from statement_parser.services.statement_processor import (
    DocumentNotFoundError,
    DocumentProcessor,
    JobNotFoundError,
    reparse_blocks,
)
from statement_parser.statement_exporter import JsonResultSink


class FakeAnalysisService:
    """In-memory stand-in for the Textract facade."""

    bucket_name = "statements"

    def __init__(self, blocks: list[dict[str, Any]], *, status: str = "SUCCEEDED") -> None:
        self.blocks = blocks
        self.status = status
        self.documents = {"statement.pdf"}
        self.started: list[str] = []
        self.fetched: list[str] = []

    def document_exists(self, document_name: str) -> bool:
        return document_name in self.documents

    def start_analysis(self, document_name: str) -> str:
        self.started.append(document_name)
        return f"job-{len(self.started)}"

    def wait_for_completion(self, job_id: str) -> str:
        return self.status

    def fetch_blocks(self, job_id: str) -> tuple[list[dict[str, Any]], int]:
        self.fetched.append(job_id)
        return list(self.blocks), 2


@pytest.fixture
def service(statement_blocks) -> FakeAnalysisService:
    return FakeAnalysisService(statement_blocks)


@pytest.fixture
def job_store(tmp_path: Path) -> JobStore:
    return JobStore(tmp_path / "jobs.json")


@pytest.fixture
def sink(tmp_path: Path) -> JsonResultSink:
    return JsonResultSink(tmp_path / "output")


@pytest.fixture
def processor(service: FakeAnalysisService, job_store: JobStore, sink: JsonResultSink) -> DocumentProcessor:
    return DocumentProcessor(service, job_store, sink)


def test_process_document_writes_statement(processor: DocumentProcessor, job_store: JobStore) -> None:
    outcome = processor.process_document("statement.pdf")

    assert outcome.status == "SUCCEEDED"
    assert outcome.already_processed is False
    assert outcome.output_file is not None and outcome.output_file.name.startswith("statement_job-1-")
    payload = json.loads(outcome.output_file.read_text(encoding="utf-8"))
    assert payload["summary"]["Account Number"] == "00112233"
    assert payload["transactions"][0]["Reference"] == "REF1"

    record = job_store.get_by_job_id("job-1")
    assert record.status == "SUCCEEDED"
    assert record.output_file == str(outcome.output_file)


def test_missing_document_raises(processor: DocumentProcessor, service: FakeAnalysisService) -> None:
    with pytest.raises(DocumentNotFoundError):
        processor.process_document("missing.pdf")
    assert service.started == []


def test_already_processed_document_is_skipped_unless_forced(
    processor: DocumentProcessor, service: FakeAnalysisService
) -> None:
    first = processor.process_document("statement.pdf")

    second = processor.process_document("statement.pdf")
    assert second.already_processed is True
    assert second.output_file == first.output_file
    assert service.started == ["statement.pdf"]

    forced = processor.process_document("statement.pdf", force=True)
    assert forced.job_id == "job-2"
    assert forced.already_processed is False


def test_failed_job_has_no_output(
    statement_blocks, job_store: JobStore, sink: JsonResultSink
) -> None:
    service = FakeAnalysisService(statement_blocks, status="FAILED")
    outcome = DocumentProcessor(service, job_store, sink).process_document("statement.pdf")

    assert outcome.status == "FAILED"
    assert outcome.output_file is None
    assert service.fetched == []
    assert job_store.get_by_job_id("job-1").status == "FAILED"


def test_check_unknown_job_raises(processor: DocumentProcessor) -> None:
    with pytest.raises(JobNotFoundError):
        processor.check_job("job-404")


def test_block_cache_avoids_second_fetch(
    service: FakeAnalysisService, job_store: JobStore, sink: JsonResultSink, tmp_path: Path
) -> None:
    processor = DocumentProcessor(service, job_store, sink, block_cache=BlockCache(tmp_path / "cache"))
    processor.process_document("statement.pdf")

    outcome = processor.check_job("job-1")

    assert service.fetched == ["job-1"]
    assert outcome.result is not None and len(outcome.result.transactions) == 1


def test_reparse_saved_blocks(statement_blocks, sink: JsonResultSink, tmp_path: Path) -> None:
    blocks_file = tmp_path / "statement_job-9_blocks.json"
    blocks_file.write_text(json.dumps(statement_blocks), encoding="utf-8")

    outcome = reparse_blocks(blocks_file, sink)

    assert outcome.job_id == "job-9"
    assert outcome.output_file.parent == sink.output_dir
    assert outcome.output_file.name.startswith("statement_job-9-")
    assert outcome.result.summary["Currency"] == "NGN"


def test_reparse_to_explicit_output(statement_blocks, sink: JsonResultSink, tmp_path: Path) -> None:
    blocks_file = tmp_path / "dump.json"
    blocks_file.write_text(json.dumps({"Blocks": statement_blocks}), encoding="utf-8")
    target = tmp_path / "result.json"

    outcome = reparse_blocks(blocks_file, sink, target)

    assert outcome.output_file == target.resolve()
    assert json.loads(target.read_text(encoding="utf-8"))["summary"]["Account Name"] == "Jane Doe"
