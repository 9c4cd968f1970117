"""FastAPI application entry point.

Configures CORS, structured logging, lifespan events (session registry and
the idle-session APScheduler sweep) and router registration.
"""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.logging import setup_logging
from app.routers import health, profile
from app.scheduler.jobs import shutdown_scheduler, start_scheduler
from app.services.session import SessionRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: startup and shutdown hooks."""
    setup_logging()
    logger.info("Application starting up")
    application.state.sessions = SessionRegistry()
    start_scheduler(application.state.sessions)
    yield
    shutdown_scheduler()
    logger.info("Application shutting down")


app = FastAPI(
    title="MOVES SSP Student Profile API",
    description="Cadastro, documentos e carteirinha digital do transporte universitario",
    version="0.1.0",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# CORS Configuration
# ---------------------------------------------------------------------------
_raw_origins = settings.ALLOWED_ORIGINS.strip()
if _raw_origins == "*":
    _allowed_origins: list[str] = ["*"]
else:
    _allowed_origins = [o.strip() for o in _raw_origins.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Router Registration
# ---------------------------------------------------------------------------
app.include_router(health.router, tags=["Health"])
app.include_router(profile.router, prefix="/api/v1", tags=["Profile"])
