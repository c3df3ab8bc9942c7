"""
Pydantic models for API request/response validation.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from tab_prioritizer.agents.models import AnalysisResult


# ============================================================================
# Request Models
# ============================================================================


class AnalyzeRequest(BaseModel):
    """Request model for /api/analyze endpoint.

    Tabs are accepted as raw records so that a single malformed tab is
    reported in ``rejected`` instead of failing the whole request.
    """

    tabs: list[dict[str, Any]]


# ============================================================================
# Response Models
# ============================================================================


class AnalyzeResponse(BaseModel):
    """Response model for /api/analyze endpoint."""

    results: AnalysisResult


class HealthResponse(BaseModel):
    """Response model for /health endpoint."""

    status: str
    version: str = "0.1.0"
    timestamp: str
    provider: Optional[str] = None


class ErrorResponse(BaseModel):
    """Error payload returned with 4xx/5xx responses."""

    detail: str = Field(..., description="Human-readable error message")
