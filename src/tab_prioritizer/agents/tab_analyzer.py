"""
Per-tab analysis: summary, priority score, rationale and topics.

Each tab is analyzed independently through the configured inference
provider. Any failure degrades to a deterministic default analysis so that
one bad tab never fails the batch.
"""

import asyncio
import math
import re
from typing import Any, Optional

from tab_prioritizer.agents.inference_provider import InferenceProvider
from tab_prioritizer.agents.models import (
    DEFAULT_PRIORITY,
    MAX_PRIORITY,
    MIN_PRIORITY,
    TabAnalysis,
    TabInput,
)
from tab_prioritizer.agents.response_parser import extract_json_object
from tab_prioritizer.config import Settings, get_logger
from tab_prioritizer.errors import ProviderUnavailable

logger = get_logger(__name__)

PROMPT_CONTENT_CHARS = 1500
MAX_TOPICS = 5
MAX_BASIC_TOPICS = 3

# Vocabulary for the keyword heuristic, in output order
TOPIC_VOCABULARY = (
    "technology",
    "programming",
    "business",
    "science",
    "news",
    "education",
    "documentation",
    "tutorial",
    "api",
    "framework",
)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def clamp_priority(value: Any) -> int:
    """
    Coerce a model-supplied priority score into the 1-5 range.

    Numbers are truncated and clamped to the nearest bound (0 -> 1, 7 -> 5),
    strings are read by their leading integer ("2 (high)" -> 2), and anything
    else, including booleans and None, maps to the default of 3.
    """
    score: Optional[int] = None
    if isinstance(value, bool):
        score = None
    elif isinstance(value, int):
        score = value
    elif isinstance(value, float):
        score = int(value) if math.isfinite(value) else None
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        score = int(match.group(1)) if match else None

    if score is None:
        return DEFAULT_PRIORITY
    return min(MAX_PRIORITY, max(MIN_PRIORITY, score))


def extract_basic_topics(tab: TabInput) -> list[str]:
    """
    Keyword-based topic fallback.

    Args:
        tab: The tab to tag

    Returns:
        Up to three vocabulary words found in the title, meta description
        or headings, in vocabulary order
    """
    text = f"{tab.title} {tab.meta_description} {' '.join(tab.headings)}".lower()
    return [word for word in TOPIC_VOCABULARY if word in text][:MAX_BASIC_TOPICS]


def build_analysis_prompt(tab: TabInput) -> str:
    """Build the priority analysis prompt for a tab."""
    headings = ", ".join(tab.headings) or "N/A"
    preview = tab.text_content[:PROMPT_CONTENT_CHARS] or "N/A"

    return f"""Analyze this web page and provide:
1. A concise summary (2-3 sentences)
2. A Priority Score (1-5, where 1 = highest priority) based on:

   Learning Value Factors:
   - Depth of content (comprehensive vs superficial)
   - Uniqueness of knowledge (rare insights vs common info)
   - Longevity (evergreen vs ephemeral content)
   - Technical rigor (well-researched vs casual)

   Utility Value Factors:
   - Practical applicability (can be applied immediately)
   - Reusability (code, frameworks, APIs, papers, templates)
   - Actionability (clear next steps vs passive reading)
   - Educational value (teaches skills vs entertains)

3. A brief rationale for the priority score (1-2 sentences)
4. Up to 3 topic tags

Web Page Details:
Title: {tab.title or 'N/A'}
URL: {tab.url}
Meta Description: {tab.meta_description or 'N/A'}
Main Headings: {headings}
Content Preview: {preview}

Return ONLY valid JSON in this exact format:
{{
  "summary": "...",
  "priorityScore": 1-5,
  "priorityRationale": "...",
  "topics": ["topic1", "topic2", "topic3"]
}}"""


def _text_field(data: dict, key: str) -> Optional[str]:
    value = data.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


class TabAnalyzer:
    """Service for scoring and summarizing tabs using the inference provider."""

    def __init__(self, provider: Optional[InferenceProvider], settings: Settings):
        """
        Initialize the tab analyzer.

        Args:
            provider: Inference provider, or None to always use the fallback
            settings: Application settings (token limits, temperature, timeout)
        """
        self.provider = provider
        self.settings = settings

    async def analyze(self, tab: TabInput) -> TabAnalysis:
        """
        Analyze a tab, degrading to a default analysis on any failure.

        Args:
            tab: Normalized tab

        Returns:
            TabAnalysis; ``error`` is set when the default was used
        """
        if self.provider is None:
            return self.default_analysis(tab, "Inference provider not configured")

        prompt = build_analysis_prompt(tab)
        timeout = self.settings.provider_call_timeout

        try:
            content = await asyncio.wait_for(
                self.provider.complete(
                    prompt,
                    max_tokens=self.settings.analysis_max_tokens,
                    temperature=self.settings.analysis_temperature,
                    json_mode=self.settings.structured_output,
                ),
                timeout=timeout,
            )
            parsed = extract_json_object(content)
        except asyncio.TimeoutError:
            logger.warning(f"Analysis timed out for tab {tab.id!r} after {timeout}s")
            return self.default_analysis(tab, f"Inference provider timed out after {timeout}s")
        except ProviderUnavailable as e:
            logger.warning(f"Analysis failed for tab {tab.id!r} '{tab.title[:50]}': {e}")
            return self.default_analysis(tab, str(e))
        except Exception as e:
            logger.error(
                f"Unexpected error analyzing tab {tab.id!r}: {e}",
                exc_info=True,
                extra={"tab_id": tab.id, "url": tab.url},
            )
            return self.default_analysis(tab, f"Unexpected analysis error: {e}")

        analysis = self._analysis_from_response(tab, parsed)
        logger.debug(f"Analyzed tab {tab.id!r}: priority {analysis.priority_score}")
        return analysis

    def _analysis_from_response(self, tab: TabInput, data: dict) -> TabAnalysis:
        """Build a TabAnalysis from parsed provider JSON, filling gaps."""
        topics = data.get("topics")
        if isinstance(topics, list):
            topics = [str(t).strip() for t in topics if t is not None and str(t).strip()]
        else:
            topics = extract_basic_topics(tab)

        return TabAnalysis(
            id=tab.id,
            title=tab.title,
            url=tab.url,
            summary=_text_field(data, "summary") or tab.title or tab.url,
            priority_score=clamp_priority(data.get("priorityScore", data.get("priority_score"))),
            priority_rationale=_text_field(data, "priorityRationale") or "Standard content",
            topics=topics[:MAX_TOPICS],
        )

    def default_analysis(self, tab: TabInput, error: str) -> TabAnalysis:
        """Fallback analysis used when the provider cannot produce one."""
        return TabAnalysis(
            id=tab.id,
            title=tab.title,
            url=tab.url,
            summary=f"{tab.title} - {tab.meta_description or 'Web page content'}",
            priority_score=DEFAULT_PRIORITY,
            priority_rationale="Analysis unavailable",
            topics=extract_basic_topics(tab),
            error=error,
        )
