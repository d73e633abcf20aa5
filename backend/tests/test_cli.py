"""Tests for the command line entry point."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from botocore.exceptions import NoRegionError

from statement_parser import cli
from statement_parser.core.config import Settings
from statement_parser.job_store import JobStore
from statement_parser.services import textract_client

from test_statement_processor import FakeAnalysisService


@pytest.fixture
def fake_service(statement_blocks, monkeypatch: pytest.MonkeyPatch) -> FakeAnalysisService:
    service = FakeAnalysisService(statement_blocks)
    monkeypatch.setattr(cli, "TextractAnalysisService", lambda bucket_name, **kwargs: service)
    return service


def test_process_prints_outcome(settings: Settings, fake_service: FakeAnalysisService, capsys) -> None:
    assert cli.main(["process", "statement.pdf"], settings=settings) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["job_id"] == "job-1"
    assert payload["transactions"] == 1
    assert Path(payload["output_file"]).parent == settings.output_dir


def test_process_missing_document_exits_with_error(settings: Settings, fake_service: FakeAnalysisService) -> None:
    assert cli.main(["process", "missing.pdf"], settings=settings) == 1


def test_process_without_bucket(settings: Settings) -> None:
    settings = settings.model_copy(update={"bucket_name": None})

    assert cli.main(["process", "statement.pdf"], settings=settings) == 1


def test_check_unknown_job(settings: Settings, fake_service: FakeAnalysisService) -> None:
    assert cli.main(["check", "job-404"], settings=settings) == 1


def test_reparse(settings: Settings, statement_blocks, tmp_path: Path, capsys) -> None:
    blocks_file = tmp_path / "statement_job-7_blocks.json"
    blocks_file.write_text(json.dumps(statement_blocks), encoding="utf-8")
    output = tmp_path / "reparsed.json"

    assert cli.main(["reparse", str(blocks_file), "--output", str(output)], settings=settings) == 0

    assert json.loads(output.read_text(encoding="utf-8"))["summary"]["Currency"] == "NGN"
    assert json.loads(capsys.readouterr().out)["job_id"] == "job-7"


def test_reparse_invalid_file(settings: Settings, tmp_path: Path) -> None:
    blocks_file = tmp_path / "broken.json"
    blocks_file.write_text("{not json", encoding="utf-8")

    assert cli.main(["reparse", str(blocks_file)], settings=settings) == 1
    assert cli.main(["reparse", str(tmp_path / "absent.json")], settings=settings) == 1


def test_jobs_and_prune(settings: Settings, capsys) -> None:
    store = JobStore(settings.jobs_file)
    store.add("job-1", "a.pdf")
    store.add("job-2", "b.pdf")
    store.update_status("job-2", "SUCCEEDED")

    assert cli.main(["jobs", "--pending"], settings=settings) == 0
    assert [job["job_id"] for job in json.loads(capsys.readouterr().out)] == ["job-1"]

    assert cli.main(["prune", "--days", "0"], settings=settings) == 0
    assert json.loads(capsys.readouterr().out) == {"removed": 1}
    assert [job.job_id for job in JobStore(settings.jobs_file).list_all()] == ["job-1"]


def test_process_without_region_exits_with_error(settings: Settings, monkeypatch: pytest.MonkeyPatch) -> None:
    def no_region(*args, **kwargs):
        raise NoRegionError()

    monkeypatch.setattr(textract_client.boto3, "client", no_region)

    assert cli.main(["process", "statement.pdf"], settings=settings) == 1
