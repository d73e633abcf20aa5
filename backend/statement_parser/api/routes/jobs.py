"""Endpoints driving analysis jobs for statements stored in the bucket."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from statement_parser.api.deps import get_document_processor, get_job_store
from statement_parser.job_store import JobRecord, JobStore
from statement_parser.schemas import JobRecordSchema, ProcessDocumentRequest, ProcessingOutcomeSchema
from statement_parser.services.statement_processor import (
    DocumentNotFoundError,
    DocumentProcessor,
    JobNotFoundError,
    ProcessingOutcome,
)
from statement_parser.services.textract_client import AnalysisServiceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"])


def _job_schema(record: JobRecord) -> JobRecordSchema:
    return JobRecordSchema(
        job_id=record.job_id,
        document_name=record.document_name,
        bucket_name=record.bucket_name,
        status=record.status,
        created_at=record.created_at,
        updated_at=record.updated_at,
        output_file=record.output_file,
    )


def _outcome_schema(outcome: ProcessingOutcome) -> ProcessingOutcomeSchema:
    result = outcome.result
    return ProcessingOutcomeSchema(
        job_id=outcome.job_id,
        status=outcome.status,
        output_file=str(outcome.output_file) if outcome.output_file else None,
        already_processed=outcome.already_processed,
        summary_fields=len(result.summary) if result else 0,
        transactions=len(result.transactions) if result else 0,
    )


@router.get("", response_model=list[JobRecordSchema])
def list_jobs(pending: bool = False, job_store: JobStore = Depends(get_job_store)) -> list[JobRecordSchema]:
    records = job_store.list_pending() if pending else job_store.list_all()
    return [_job_schema(record) for record in records]


@router.get("/{job_id}", response_model=JobRecordSchema)
def get_job(job_id: str, job_store: JobStore = Depends(get_job_store)) -> JobRecordSchema:
    record = job_store.get_by_job_id(job_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"No job found with ID: {job_id}")
    return _job_schema(record)


@router.post("", response_model=ProcessingOutcomeSchema)
def process_document(
    request: ProcessDocumentRequest,
    processor: DocumentProcessor = Depends(get_document_processor),
) -> ProcessingOutcomeSchema:
    try:
        outcome = processor.process_document(request.document_name, force=request.force)
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except AnalysisServiceError as exc:
        logger.error("Analysis of %s failed: %s", request.document_name, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return _outcome_schema(outcome)


@router.post("/{job_id}/check", response_model=ProcessingOutcomeSchema)
def check_job(
    job_id: str,
    processor: DocumentProcessor = Depends(get_document_processor),
) -> ProcessingOutcomeSchema:
    try:
        outcome = processor.check_job(job_id)
    except JobNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except AnalysisServiceError as exc:
        logger.error("Checking job %s failed: %s", job_id, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return _outcome_schema(outcome)
