"""
Data models for tab analysis and clustering.

This module defines the core data structures that flow through one analysis
batch: the normalized tab input, the per-tab analysis, the priority-ordered
clusters, and the final batch result.

Python attributes are snake_case; every model serializes with camelCase
aliases (``priorityScore``, ``tabIds`` ...) to match the browser extension's
wire format, and accepts either spelling on input.
"""

from datetime import datetime, UTC
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Tab ids are opaque: browsers hand out ints, other callers may use strings
TabId = Union[int, str]

DEFAULT_PRIORITY = 3
MIN_PRIORITY = 1
MAX_PRIORITY = 5


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TabInput(_CamelModel):
    """A browser tab with its extracted page content.

    Attributes:
        id: Identifier of the tab, unique within a batch
        title: The title of the tab
        url: The URL of the tab
        meta_description: Content of the page's meta description (may be empty)
        headings: First few h1-h3 headings of the page
        text_content: Visible page text, truncated
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    id: TabId
    title: str = ""
    url: str
    meta_description: str = ""
    headings: list[str] = Field(default_factory=list)
    text_content: str = ""

    @field_validator('headings', mode='before')
    @classmethod
    def convert_none_to_empty_list(cls, v):
        """Convert None to empty list for headings field."""
        return v if v is not None else []


class TabAnalysis(_CamelModel):
    """AI (or fallback) analysis of a single tab.

    Attributes:
        id: Id of the analyzed TabInput
        title: Tab title, copied from the input
        url: Tab URL, copied from the input
        summary: 2-3 sentence summary of the page
        priority_score: 1 (highest learning/utility value) to 5 (lowest)
        priority_rationale: Short explanation of the score
        topics: Up to five topic tags
        error: Diagnostic message when the analysis degraded to a default
    """

    id: TabId
    title: str
    url: str
    summary: str
    priority_score: int = Field(default=DEFAULT_PRIORITY, ge=MIN_PRIORITY, le=MAX_PRIORITY)
    priority_rationale: str = ""
    topics: list[str] = Field(default_factory=list)
    error: Optional[str] = None


class Cluster(_CamelModel):
    """A named group of tabs, ordered by priority.

    Attributes:
        name: Human-readable cluster name
        description: One-line description of what the cluster holds
        tab_ids: Member tab ids, best priority first
        cluster_priority: Mean member priority score, rounded to one decimal
    """

    name: str
    description: str = ""
    tab_ids: list[TabId] = Field(default_factory=list)
    cluster_priority: float = float(DEFAULT_PRIORITY)


class RejectedTab(_CamelModel):
    """A raw tab record that could not be normalized."""

    id: Optional[TabId] = None
    reason: str


class AnalysisResult(_CamelModel):
    """Result of one analysis batch.

    Attributes:
        summaries: One analysis per accepted tab, degraded ones included
        clusters: Clusters sorted ascending by cluster priority
        processed: Number of tabs analyzed
        errors: Number of analyses that degraded to a default
        rejected: Raw records skipped as invalid input
        timestamp: When the batch completed
    """

    summaries: list[TabAnalysis] = Field(default_factory=list)
    clusters: list[Cluster] = Field(default_factory=list)
    processed: int = 0
    errors: int = 0
    rejected: list[RejectedTab] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
