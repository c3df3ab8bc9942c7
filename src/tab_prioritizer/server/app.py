"""
FastAPI application for the tab prioritizer backend.

This server provides endpoints for:
- Tab analysis and clustering (one batch per request)
- Health checks

Authentication, quota checks and usage accounting are handled in front of
this service; it is called only once a request is allowed to run.
"""

from contextlib import asynccontextmanager
from datetime import datetime, UTC

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from tab_prioritizer import __version__
from tab_prioritizer.agents.pipeline import TabPrioritizer
from tab_prioritizer.config import get_logger, get_settings, setup_logging
from tab_prioritizer.errors import AnalysisFailed
from tab_prioritizer.server.models import (
    AnalyzeRequest,
    AnalyzeResponse,
    ErrorResponse,
    HealthResponse,
)

logger = get_logger(__name__)

# ============================================================================
# Service Instance
# ============================================================================

# The prioritizer only carries configuration (settings + provider client),
# so one instance is shared by all requests
_prioritizer: TabPrioritizer | None = None


def get_prioritizer() -> TabPrioritizer:
    """Get or create the TabPrioritizer used by the API."""
    global _prioritizer
    if _prioritizer is None:
        _prioritizer = TabPrioritizer.from_settings(get_settings())
    return _prioritizer


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(get_settings().log_level)
    yield
    global _prioritizer
    if _prioritizer is not None:
        await _prioritizer.aclose()
        _prioritizer = None


# ============================================================================
# FastAPI App Initialization
# ============================================================================

app = FastAPI(
    title="Tab Prioritizer API",
    description="AI-powered tab prioritization and clustering",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware for browser extension
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"(chrome-extension|moz-extension)://[^/]+|https?://localhost(:\d+)?",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse)
async def health_check(prioritizer: TabPrioritizer = Depends(get_prioritizer)):
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
        provider=prioritizer.provider.name if prioritizer.provider else None,
    )


@app.post(
    "/api/analyze",
    response_model=AnalyzeResponse,
    responses={500: {"model": ErrorResponse}},
)
async def analyze(
    request: AnalyzeRequest,
    prioritizer: TabPrioritizer = Depends(get_prioritizer),
):
    """
    Analyze and cluster a batch of tabs.

    Each tab is scored and summarized, then all tabs are grouped into
    clusters ordered by priority. Tabs the provider could not analyze are
    returned with default values and an ``error`` field. An empty ``tabs``
    list yields an empty result; a missing or non-list ``tabs`` is rejected
    with 422 by request validation.
    """
    logger.info(f"Received analysis request for {len(request.tabs)} tabs")

    try:
        results = await prioritizer.analyze_tabs(request.tabs)
    except AnalysisFailed as e:
        logger.error(f"Analysis error: {e}")
        raise HTTPException(status_code=500, detail="Analysis failed")

    logger.info(
        f"Analysis complete: {results.processed} tabs, {len(results.clusters)} clusters, "
        f"{results.errors} degraded"
    )
    return AnalyzeResponse(results=results)
