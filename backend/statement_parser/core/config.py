"""Application configuration and settings management."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="STATEMENT_PARSER_", extra="ignore")

    app_name: str = Field(default="Bank Statement Parser API", description="Human readable application name.")
    environment: Literal["local", "development", "staging", "production"] = Field(
        default="local",
        description="Deployment environment name.",
    )
    aws_region: str | None = Field(
        default=None,
        description="AWS region for Textract and S3 clients. Falls back to the boto3 default chain.",
    )
    bucket_name: str | None = Field(
        default=None,
        description="S3 bucket holding the statements submitted for analysis.",
    )
    output_dir: Path = Field(
        default=Path.home() / "Documents" / "TextractOutput",
        description="Directory receiving the extracted statement JSON files.",
    )
    jobs_file: Path = Field(
        default=Path("jobs.json"),
        description="JSON file used to persist analysis job metadata.",
    )
    block_cache_dir: Path | None = Field(
        default=None,
        description="Optional directory caching raw analysis blocks per job.",
    )
    poll_interval_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Delay between two job status checks.",
    )
    max_poll_attempts: int = Field(
        default=60,
        ge=1,
        description="Number of status checks before giving up on a running job.",
    )
    feature_types: list[str] = Field(
        default_factory=lambda: ["TABLES", "FORMS"],
        description="Textract feature types requested when a job is started.",
    )
    log_level: str = Field(default="INFO", description="Root logging level.")


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()


settings = get_settings()
