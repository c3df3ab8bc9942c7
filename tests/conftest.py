"""
Shared pytest fixtures for the tab prioritizer tests.
"""

import json
from unittest.mock import AsyncMock, Mock

import pytest

from tab_prioritizer.agents.inference_provider import InferenceProvider
from tab_prioritizer.agents.models import TabAnalysis
from tab_prioritizer.config import Settings


@pytest.fixture
def settings():
    """Settings that never read a .env file or reach a real provider."""
    return Settings(
        _env_file=None,
        groq_api_key=None,
        request_timeout=5.0,
        max_concurrency=3,
        structured_output=False,
    )


@pytest.fixture
def mock_provider():
    """Inference provider double with an AsyncMock ``complete``."""
    provider = Mock(spec=InferenceProvider)
    provider.name = "mock"
    provider.complete = AsyncMock(return_value="")
    provider.aclose = AsyncMock()
    return provider


@pytest.fixture
def make_analysis():
    """Factory for TabAnalysis objects with sensible defaults."""

    def _make(id, url="https://example.com", priority_score=3, title=None, **kwargs):
        return TabAnalysis(
            id=id,
            title=title if title is not None else f"Tab {id}",
            url=url,
            summary=kwargs.pop("summary", f"Summary of tab {id}"),
            priority_score=priority_score,
            **kwargs,
        )

    return _make


@pytest.fixture
def analysis_response():
    """Build a provider response wrapping an analysis JSON object in prose."""

    def _make(score=2, summary="A thorough guide.", topics=("python",), rationale="Useful."):
        payload = {
            "summary": summary,
            "priorityScore": score,
            "priorityRationale": rationale,
            "topics": list(topics),
        }
        return f"Here is the analysis:\n{json.dumps(payload)}\nLet me know if you need more."

    return _make


@pytest.fixture
def sample_tabs_data():
    """Raw tab records as sent by the browser extension."""
    return [
        {
            "id": 1,
            "url": "https://news.ycombinator.com",
            "title": "Hacker News",
            "metaDescription": "Technology news and discussion",
            "headings": ["Top stories"],
            "textContent": "Show HN: a new programming language...",
        },
        {
            "id": 2,
            "url": "https://docs.python.org/3/library/asyncio.html",
            "title": "asyncio - Asynchronous I/O",
            "metaDescription": "Python documentation for asyncio",
            "headings": ["asyncio", "Guides and Tutorials", "Reference"],
            "textContent": "asyncio is a library to write concurrent code...",
        },
        {
            "id": 3,
            "url": "https://www.example.com/pricing",
            "title": "Example Pricing",
            "metaDescription": "",
            "headings": [],
            "textContent": "Plans start at $10 per month.",
        },
    ]
