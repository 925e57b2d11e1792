"""FastAPI application for the SpamGuard moderation service.

Provides REST API endpoints wrapping the SpamGuard package for:
- Inbound forum events (post created, confirmed spam/ham, anonymization, bio edits)
- The moderator review queue and case actions
- Outbound webhook management
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

# Ensure the spamguard package is importable by adding the project root to sys.path.
_project_root = str(Path(__file__).resolve().parents[3])
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spamguard import __version__
from web.backend.app.deps import shutdown_guard
from web.backend.app.routers import events, reviews, webhooks

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    shutdown_guard()


app = FastAPI(
    title="SpamGuard API",
    description=(
        "REST API for SpamGuard. Receives forum events, screens content "
        "with Akismet and exposes the moderator review queue."
    ),
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# CORS middleware (allow all origins for development)
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(events.router)
app.include_router(reviews.router)
app.include_router(webhooks.router)


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "SpamGuard API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
