from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from statement_parser.api.routes import health, jobs, statements
from statement_parser.core.config import settings

logger = logging.getLogger("statement_parser.backend")
logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s %(name)s %(message)s")

app = FastAPI(title=settings.app_name)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/api")
app.include_router(statements.router, prefix="/api")
app.include_router(jobs.router, prefix="/api")

logger.info("%s started in %s environment", settings.app_name, settings.environment)


__all__ = ["app"]
