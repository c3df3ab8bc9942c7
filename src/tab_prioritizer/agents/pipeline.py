"""
Batch pipeline: normalize, analyze concurrently, cluster, order.

``TabPrioritizer.analyze_tabs`` is the single operation the engine exposes.
The FastAPI app and in-process callers (``analyze_tabs``) both go through it.
"""

import asyncio
from collections.abc import Iterable
from datetime import datetime, UTC
from typing import Any, Optional

from tab_prioritizer.agents.groq_provider import GroqInferenceProvider
from tab_prioritizer.agents.inference_provider import InferenceProvider
from tab_prioritizer.agents.models import AnalysisResult, TabAnalysis, TabInput
from tab_prioritizer.agents.normalizer import normalize_tabs
from tab_prioritizer.agents.tab_analyzer import TabAnalyzer
from tab_prioritizer.agents.tab_clusterer import TabClusterer
from tab_prioritizer.config import Settings, get_logger, get_settings
from tab_prioritizer.errors import AnalysisFailed

logger = get_logger(__name__)


def build_provider(settings: Settings) -> Optional[InferenceProvider]:
    """
    Get the configured inference provider.

    Args:
        settings: Application settings

    Returns:
        Groq provider, or None when no API key is configured (every batch
        then uses the deterministic fallbacks)
    """
    if not settings.groq_api_key:
        logger.warning("GROQ_API_KEY not set, tabs will be analyzed with fallbacks only")
        return None
    return GroqInferenceProvider.from_settings(settings)


class TabPrioritizer:
    """Runs full analysis batches over a set of tabs."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        provider: Optional[InferenceProvider] = None,
    ):
        """
        Initialize the prioritizer.

        Args:
            settings: Application settings. If not provided, loaded from config.
            provider: Inference provider. Pass None for fallback-only mode.
        """
        self.settings = settings or get_settings()
        self.provider = provider
        self.analyzer = TabAnalyzer(provider, self.settings)
        self.clusterer = TabClusterer(provider, self.settings)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "TabPrioritizer":
        """Build a prioritizer with the provider described by the settings."""
        settings = settings or get_settings()
        return cls(settings=settings, provider=build_provider(settings))

    async def _analyze_all(self, tabs: list[TabInput]) -> list[TabAnalysis]:
        """Analyze tabs concurrently, bounded by ``max_concurrency``."""
        semaphore = asyncio.Semaphore(max(self.settings.max_concurrency, 1))

        async def run_one(tab: TabInput) -> TabAnalysis:
            async with semaphore:
                return await self.analyzer.analyze(tab)

        return list(await asyncio.gather(*(run_one(tab) for tab in tabs)))

    async def analyze_tabs(self, tabs: Iterable[Any]) -> AnalysisResult:
        """
        Analyze, cluster and order one batch of tabs.

        Invalid records are skipped and listed in ``rejected``; per-tab
        provider failures produce degraded analyses with ``error`` set.

        Args:
            tabs: Raw tab records (mappings) or TabInput objects

        Returns:
            AnalysisResult with every analysis and the ordered clusters

        Raises:
            AnalysisFailed: If clustering cannot complete even with its fallback
        """
        accepted, rejected = normalize_tabs(tabs)
        logger.info(f"Analyzing {len(accepted)} tabs ({len(rejected)} rejected)")

        summaries = await self._analyze_all(accepted)

        try:
            clusters = await self.clusterer.cluster(summaries)
        except Exception as e:
            logger.error(f"Tab analysis batch failed: {e}", exc_info=True)
            raise AnalysisFailed("AI analysis failed") from e

        errors = sum(1 for s in summaries if s.error)
        if errors:
            logger.warning(f"{errors} of {len(summaries)} tabs fell back to default analysis")

        return AnalysisResult(
            summaries=summaries,
            clusters=clusters,
            processed=len(summaries),
            errors=errors,
            rejected=rejected,
            timestamp=datetime.now(UTC),
        )

    async def aclose(self) -> None:
        """Close the provider's network resources."""
        if self.provider is not None:
            await self.provider.aclose()


def analyze_tabs(
    tabs: Iterable[Any],
    settings: Optional[Settings] = None,
    provider: Optional[InferenceProvider] = None,
) -> AnalysisResult:
    """
    Run one analysis batch synchronously, for in-process callers.

    Args:
        tabs: Raw tab records or TabInput objects
        settings: Application settings. If not provided, loaded from config.
        provider: Inference provider. If not provided, built from settings.

    Returns:
        AnalysisResult for the batch
    """
    settings = settings or get_settings()
    owns_provider = provider is None
    if owns_provider:
        provider = build_provider(settings)

    async def run() -> AnalysisResult:
        prioritizer = TabPrioritizer(settings=settings, provider=provider)
        try:
            return await prioritizer.analyze_tabs(tabs)
        finally:
            if owns_provider:
                await prioritizer.aclose()

    return asyncio.run(run())
