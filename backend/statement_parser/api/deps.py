"""Common dependency functions for API routes."""

from functools import lru_cache
from typing import Generator

from fastapi import Depends, HTTPException

from statement_parser.block_cache import BlockCache
from statement_parser.core.config import Settings, get_settings
from statement_parser.job_store import JobStore
from statement_parser.services.statement_processor import DocumentProcessor
from statement_parser.services.textract_client import AnalysisServiceError, TextractAnalysisService
from statement_parser.statement_exporter import JsonResultSink


def get_app_settings() -> Generator:
    yield get_settings()


def get_job_store(settings: Settings = Depends(get_app_settings)) -> JobStore:
    return JobStore(settings.jobs_file)


def get_result_sink(settings: Settings = Depends(get_app_settings)) -> JsonResultSink:
    return JsonResultSink(settings.output_dir)


def get_block_cache(settings: Settings = Depends(get_app_settings)) -> BlockCache | None:
    if settings.block_cache_dir is None:
        return None
    return BlockCache(settings.block_cache_dir)


@lru_cache
def _analysis_service(
    bucket_name: str,
    region_name: str | None,
    feature_types: tuple[str, ...],
    poll_interval: float,
    max_attempts: int,
) -> TextractAnalysisService:
    return TextractAnalysisService(
        bucket_name,
        region_name=region_name,
        feature_types=feature_types,
        poll_interval=poll_interval,
        max_attempts=max_attempts,
    )


def get_analysis_service(settings: Settings = Depends(get_app_settings)) -> TextractAnalysisService:
    if not settings.bucket_name:
        raise HTTPException(status_code=503, detail="No S3 bucket configured for document analysis")
    try:
        return _analysis_service(
            settings.bucket_name,
            settings.aws_region,
            tuple(settings.feature_types),
            settings.poll_interval_seconds,
            settings.max_poll_attempts,
        )
    except AnalysisServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


def get_document_processor(
    service: TextractAnalysisService = Depends(get_analysis_service),
    job_store: JobStore = Depends(get_job_store),
    sink: JsonResultSink = Depends(get_result_sink),
    cache: BlockCache | None = Depends(get_block_cache),
) -> DocumentProcessor:
    return DocumentProcessor(service, job_store, sink, block_cache=cache)
