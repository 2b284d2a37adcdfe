"""FastAPI application — Consensus API.

Serves the clarify / produce generation endpoints and the local project
store to the UI. The Gemini credential is held server-side only.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core import __version__
from core.config import configure_logging, get_settings
from core.errors import ConsensusError

from .errors import consensus_error_handler, unexpected_error_handler
from .routers import consensus, projects

logger = logging.getLogger(__name__)

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(
    title="Consensus API",
    version=__version__,
    description="Decision package generation API: clarify, produce and a local project store",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,
)

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
app.add_exception_handler(ConsensusError, consensus_error_handler)
app.add_exception_handler(Exception, unexpected_error_handler)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(consensus.router, tags=["consensus"])
app.include_router(projects.router, tags=["projects"])


# ---------------------------------------------------------------------------
# Health Check
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return {"status": "ok", "version": __version__}


@app.get("/")
async def root():
    return {"message": "Consensus API", "docs": "/docs"}
