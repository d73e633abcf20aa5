"""Health check endpoints."""

from fastapi import APIRouter, Depends

from statement_parser.api.deps import get_app_settings
from statement_parser.core.config import Settings
from statement_parser.schemas import HealthResponse

router = APIRouter()


@router.get("/health", tags=["system"], response_model=HealthResponse)
def healthcheck(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """Simple readiness probe."""

    return HealthResponse(
        status="ok",
        environment=settings.environment,
        bucket_configured=bool(settings.bucket_name),
    )
