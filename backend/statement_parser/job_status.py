"""Analysis job status values shared by the analysis service and the job store."""

SUBMITTED = "SUBMITTED"
SUCCEEDED = "SUCCEEDED"
FAILED = "FAILED"
IN_PROGRESS = "IN_PROGRESS"
PARTIAL_SUCCESS = "PARTIAL_SUCCESS"
NOT_FOUND = "NOT_FOUND"
ERROR = "ERROR"

TERMINAL_STATUSES = frozenset({SUCCEEDED, FAILED, PARTIAL_SUCCESS, NOT_FOUND, ERROR})
READABLE_STATUSES = frozenset({SUCCEEDED, PARTIAL_SUCCESS})

__all__ = [
    "ERROR",
    "FAILED",
    "IN_PROGRESS",
    "NOT_FOUND",
    "PARTIAL_SUCCESS",
    "READABLE_STATUSES",
    "SUBMITTED",
    "SUCCEEDED",
    "TERMINAL_STATUSES",
]
