"""FastAPI application entry point for fraudscope."""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware.error_handler import global_exception_handler
from src.api.middleware.logging import StructuredLoggingMiddleware
from src.api.routes.batches import router as batches_router
from src.api.routes.dashboards import router as dashboards_router
from src.api.routes.health import router as health_router
from src.api.routes.transactions import router as transactions_router
from src.config import settings
from src.domains.transactions.errors import FraudscopeError
from src.scoring.client import ScoringClient
from src.shared.logging import setup_logging

logger = structlog.get_logger()

# Track app start time for uptime calculation
APP_START_TIME: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: open and close the scoring client."""
    global APP_START_TIME
    APP_START_TIME = time.time()
    setup_logging(settings.log_level)

    logger.info(
        "fraudscope_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        scoring_api_url=settings.scoring_api_url,
        debug=settings.debug,
    )

    client = ScoringClient()
    app.state.scoring_client = client

    yield

    await client.aclose()
    app.state.scoring_client = None
    logger.info("fraudscope_shutting_down")


app = FastAPI(
    title="fraudscope",
    description="Transaction ingestion, fraud scoring and reconciliation console",
    version=settings.app_version,
    lifespan=lifespan,
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Structured logging middleware
app.add_middleware(StructuredLoggingMiddleware)

# Known failures map to 4xx/5xx bodies; Exception is the last resort
app.add_exception_handler(FraudscopeError, global_exception_handler)
app.add_exception_handler(ValueError, global_exception_handler)
app.add_exception_handler(KeyError, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# Register routers
app.include_router(health_router)
app.include_router(transactions_router)
app.include_router(batches_router)
app.include_router(dashboards_router)


def get_uptime() -> int:
    """Get application uptime in seconds."""
    if APP_START_TIME == 0.0:
        return 0
    return int(time.time() - APP_START_TIME)
