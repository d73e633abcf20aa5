"""Client wrapper around the Textract asynchronous analysis API and its S3 bucket."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from statement_parser.job_status import (
    ERROR,
    FAILED,
    IN_PROGRESS,
    NOT_FOUND,
    PARTIAL_SUCCESS,
    READABLE_STATUSES,
    SUCCEEDED,
    TERMINAL_STATUSES,
)

logger = logging.getLogger(__name__)

_MISSING_OBJECT_CODES = {"404", "NoSuchKey", "NotFound"}


class AnalysisServiceError(RuntimeError):
    """Raised when the analysis service or the bucket returns an unexpected response."""


class TextractAnalysisService:
    """Synchronous facade over the Textract document-analysis job lifecycle."""

    def __init__(
        self,
        bucket_name: str,
        *,
        textract: Any = None,
        s3: Any = None,
        region_name: Optional[str] = None,
        feature_types: Sequence[str] = ("TABLES", "FORMS"),
        poll_interval: float = 5.0,
        max_attempts: int = 60,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.bucket_name = bucket_name
        try:
            self._textract = textract or boto3.client("textract", region_name=region_name)
            self._s3 = s3 or boto3.client("s3", region_name=region_name)
        except BotoCoreError as exc:
            raise AnalysisServiceError(f"Failed to create AWS clients: {exc}") from exc
        self.feature_types = list(feature_types)
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self._sleep = sleep

    # ---------------------------------------------------------------------
    # Helper calls
    # ---------------------------------------------------------------------
    def _get_analysis_page(self, job_id: str, next_token: Optional[str] = None) -> Dict[str, Any]:
        request: Dict[str, Any] = {"JobId": job_id}
        if next_token:
            request["NextToken"] = next_token
        return self._textract.get_document_analysis(**request)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def document_exists(self, document_name: str) -> bool:
        """Return whether the document is present in the configured bucket."""

        try:
            self._s3.head_object(Bucket=self.bucket_name, Key=document_name)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_OBJECT_CODES:
                return False
            raise AnalysisServiceError(
                f"Failed to look up {document_name} in bucket {self.bucket_name}: {exc}"
            ) from exc
        except BotoCoreError as exc:  # pragma: no cover - network errors are rare
            raise AnalysisServiceError(f"Failed to reach S3: {exc}") from exc
        return True

    def start_analysis(self, document_name: str) -> str:
        """Submit the document for table and form analysis and return the job id."""

        try:
            response = self._textract.start_document_analysis(
                DocumentLocation={"S3Object": {"Bucket": self.bucket_name, "Name": document_name}},
                FeatureTypes=self.feature_types,
            )
        except (BotoCoreError, ClientError) as exc:
            raise AnalysisServiceError(f"Failed to start analysis for {document_name}: {exc}") from exc
        job_id = response["JobId"]
        logger.info("Started Textract job %s for %s", job_id, document_name)
        return job_id

    def get_job_status(self, job_id: str) -> str:
        """Return the current job status; unknown jobs map to ``NOT_FOUND``."""

        try:
            response = self._get_analysis_page(job_id)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "InvalidJobIdException":
                logger.warning("Job %s not found", job_id)
                return NOT_FOUND
            logger.error("Error checking job status for %s: %s", job_id, exc)
            return ERROR
        except BotoCoreError as exc:  # pragma: no cover - network errors are rare
            logger.error("Error checking job status for %s: %s", job_id, exc)
            return ERROR

        status = str(response.get("JobStatus") or "")
        if status == FAILED:
            logger.warning("Job %s failed: %s", job_id, response.get("StatusMessage") or "no error message")
        elif status in READABLE_STATUSES:
            logger.info("Job %s %s, pages processed: %s", job_id, status, response.get("DocumentMetadata", {}).get("Pages"))
        return status

    def wait_for_completion(self, job_id: str) -> str:
        """Poll until the job reaches a terminal status."""

        for attempt in range(1, self.max_attempts + 1):
            status = self.get_job_status(job_id)
            if status in TERMINAL_STATUSES:
                return status
            if status != IN_PROGRESS:
                raise AnalysisServiceError(f"Unknown job status: {status}")
            logger.info(
                "Job %s is still in progress (attempt %s/%s). Waiting %s seconds...",
                job_id,
                attempt,
                self.max_attempts,
                self.poll_interval,
            )
            if attempt < self.max_attempts:
                self._sleep(self.poll_interval)

        raise AnalysisServiceError(
            f"Job {job_id} did not complete within {self.max_attempts * self.poll_interval:g} seconds"
        )

    def fetch_blocks(self, job_id: str) -> Tuple[List[Dict[str, Any]], int]:
        """Return every block of a finished job, concatenated across result pages."""

        blocks: List[Dict[str, Any]] = []
        try:
            response = self._get_analysis_page(job_id)
            pages = int(response.get("DocumentMetadata", {}).get("Pages") or 0)
            blocks.extend(response.get("Blocks", []))
            while response.get("NextToken"):
                logger.debug("Fetched batch with %s blocks, requesting next page", len(response.get("Blocks", [])))
                response = self._get_analysis_page(job_id, response["NextToken"])
                blocks.extend(response.get("Blocks", []))
        except (BotoCoreError, ClientError) as exc:
            raise AnalysisServiceError(f"Failed to retrieve blocks for job {job_id}: {exc}") from exc

        logger.info("Retrieved %s blocks for job %s (%s pages)", len(blocks), job_id, pages)
        return blocks, pages


__all__ = [
    "AnalysisServiceError",
    "ERROR",
    "FAILED",
    "IN_PROGRESS",
    "NOT_FOUND",
    "PARTIAL_SUCCESS",
    "READABLE_STATUSES",
    "SUCCEEDED",
    "TERMINAL_STATUSES",
    "TextractAnalysisService",
]
