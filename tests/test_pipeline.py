"""
Tests for the batch pipeline and its entry points.
"""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import pytest

from tab_prioritizer.agents.groq_provider import GroqInferenceProvider
from tab_prioritizer.agents.models import AnalysisResult
from tab_prioritizer.agents.pipeline import TabPrioritizer, analyze_tabs, build_provider
from tab_prioritizer.errors import AnalysisFailed, ProviderUnavailable


def routed_complete(scores, clusters=None, fail_ids=()):
    """
    Build a ``complete`` side effect that answers analysis and clustering prompts.

    Args:
        scores: Mapping of page URL to the priority score to return
        clusters: Clustering array to return, or None to fail clustering
        fail_ids: URLs whose analysis call raises ProviderUnavailable
    """

    async def _complete(prompt, **kwargs):
        if prompt.startswith("Analyze this web page"):
            for url, score in scores.items():
                if f"URL: {url}\n" in prompt:
                    if url in fail_ids:
                        raise ProviderUnavailable("Groq API error (503)")
                    return json.dumps({
                        "summary": f"About {url}",
                        "priorityScore": score,
                        "priorityRationale": "r",
                        "topics": ["t"],
                    })
            raise AssertionError("unexpected analysis prompt")
        if clusters is None:
            raise ProviderUnavailable("Groq API error (500)")
        return json.dumps(clusters)

    return _complete


class TestTabPrioritizer:
    """Tests for TabPrioritizer.analyze_tabs."""

    def test_full_batch(self, settings, mock_provider, sample_tabs_data):
        """Test analysis, clustering and ordering over a batch."""
        mock_provider.complete.side_effect = routed_complete(
            {
                "https://news.ycombinator.com": 4,
                "https://docs.python.org/3/library/asyncio.html": 1,
                "https://www.example.com/pricing": 5,
            },
            clusters=[
                {"name": "Reading", "description": "News", "tabIds": [1, 3]},
                {"name": "Docs", "description": "Reference", "tabIds": [2]},
            ],
        )
        prioritizer = TabPrioritizer(settings=settings, provider=mock_provider)

        result = asyncio.run(prioritizer.analyze_tabs(sample_tabs_data))

        assert isinstance(result, AnalysisResult)
        assert [s.id for s in result.summaries] == [1, 2, 3]
        assert [s.priority_score for s in result.summaries] == [4, 1, 5]
        assert [(c.name, c.tab_ids, c.cluster_priority) for c in result.clusters] == [
            ("Docs", [2], 1.0),
            ("Reading", [1, 3], 4.5),
        ]
        assert result.processed == 3
        assert result.errors == 0
        assert result.rejected == []
        assert mock_provider.complete.await_count == 4

    def test_invalid_records_are_reported(self, settings, sample_tabs_data):
        """Test that invalid records are skipped, not fatal."""
        raws = sample_tabs_data + [{"id": 10}, {"url": "https://no-id.example"}]
        prioritizer = TabPrioritizer(settings=settings, provider=None)

        result = asyncio.run(prioritizer.analyze_tabs(raws))

        assert result.processed == 3
        assert [r.id for r in result.rejected] == [10, None]
        assert sorted(i for c in result.clusters for i in c.tab_ids) == [1, 2, 3]

    def test_degraded_analyses_are_counted(self, settings, mock_provider, sample_tabs_data):
        """Test that per-tab failures degrade instead of failing the batch."""
        mock_provider.complete.side_effect = routed_complete(
            {
                "https://news.ycombinator.com": 2,
                "https://docs.python.org/3/library/asyncio.html": 1,
                "https://www.example.com/pricing": 4,
            },
            clusters=None,
            fail_ids=("https://news.ycombinator.com",),
        )
        prioritizer = TabPrioritizer(settings=settings, provider=mock_provider)

        result = asyncio.run(prioritizer.analyze_tabs(sample_tabs_data))

        degraded = result.summaries[0]
        assert degraded.priority_score == 3
        assert degraded.error == "Groq API error (503)"
        assert result.errors == 1
        # Clustering failed too, so tabs are grouped by site
        assert [c.name for c in result.clusters] == ["Python", "Ycombinator", "Example"]

    def test_fallback_only_mode(self, settings, sample_tabs_data):
        """Test that a batch completes with no provider at all."""
        prioritizer = TabPrioritizer(settings=settings, provider=None)

        result = asyncio.run(prioritizer.analyze_tabs(sample_tabs_data))

        assert result.errors == 3
        assert all(s.priority_score == 3 for s in result.summaries)
        assert [c.name for c in result.clusters] == ["Ycombinator", "Python", "Example"]

    def test_empty_batch(self, settings, mock_provider):
        """Test that no tabs produce an empty result."""
        prioritizer = TabPrioritizer(settings=settings, provider=mock_provider)

        result = asyncio.run(prioritizer.analyze_tabs([]))

        assert result.summaries == []
        assert result.clusters == []
        assert result.processed == 0
        mock_provider.complete.assert_not_called()

    def test_concurrency_is_bounded(self, settings, mock_provider):
        """Test that no more than max_concurrency analyses run at once."""
        settings.max_concurrency = 2
        in_flight = 0
        peak = 0

        async def tracking_complete(prompt, **kwargs):
            nonlocal in_flight, peak
            if not prompt.startswith("Analyze this web page"):
                return "[]"
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return '{"summary": "s", "priorityScore": 2}'

        mock_provider.complete.side_effect = tracking_complete
        tabs = [{"id": i, "url": f"https://site{i}.com"} for i in range(7)]
        prioritizer = TabPrioritizer(settings=settings, provider=mock_provider)

        result = asyncio.run(prioritizer.analyze_tabs(tabs))

        assert peak == 2
        assert result.processed == 7
        assert [s.id for s in result.summaries] == list(range(7))

    def test_clustering_crash_raises_analysis_failed(self, settings, sample_tabs_data):
        """Test that an unrecoverable clustering failure fails the batch."""
        prioritizer = TabPrioritizer(settings=settings, provider=None)

        with patch.object(
            prioritizer.clusterer, "cluster", AsyncMock(side_effect=RuntimeError("boom"))
        ):
            with pytest.raises(AnalysisFailed):
                asyncio.run(prioritizer.analyze_tabs(sample_tabs_data))

    def test_cancelling_batch_cancels_in_flight_calls(self, settings, mock_provider, sample_tabs_data):
        """Test that cancellation propagates and no partial result is returned."""
        started = []
        cancelled = []

        async def blocking_complete(prompt, **kwargs):
            started.append(prompt)
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.append(prompt)
                raise
            return "{}"

        mock_provider.complete.side_effect = blocking_complete
        prioritizer = TabPrioritizer(settings=settings, provider=mock_provider)

        async def run():
            task = asyncio.create_task(prioritizer.analyze_tabs(sample_tabs_data))
            for _ in range(100):
                if len(started) == len(sample_tabs_data):
                    break
                await asyncio.sleep(0)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(run())

        assert len(started) == 3
        assert sorted(cancelled) == sorted(started)

    def test_aclose_closes_provider(self, settings, mock_provider):
        prioritizer = TabPrioritizer(settings=settings, provider=mock_provider)

        asyncio.run(prioritizer.aclose())

        mock_provider.aclose.assert_awaited_once()


class TestBuildProvider:
    """Tests for provider construction from settings."""

    def test_no_key_means_no_provider(self, settings):
        assert build_provider(settings) is None

    def test_key_builds_groq_provider(self, settings):
        settings.groq_api_key = "test-key"
        settings.llm_model = "llama-3.1-8b-instant"

        provider = build_provider(settings)

        assert isinstance(provider, GroqInferenceProvider)
        assert provider.model == "llama-3.1-8b-instant"

    def test_from_settings_without_key(self, settings):
        prioritizer = TabPrioritizer.from_settings(settings)

        assert prioritizer.provider is None


class TestAnalyzeTabsFunction:
    """Tests for the synchronous entry point."""

    def test_runs_batch_without_provider(self, settings, sample_tabs_data):
        result = analyze_tabs(sample_tabs_data, settings=settings)

        assert result.processed == 3
        assert len(result.clusters) == 3

    def test_uses_given_provider_and_leaves_it_open(self, settings, mock_provider):
        mock_provider.complete.return_value = '{"summary": "s", "priorityScore": 1}'

        result = analyze_tabs([{"id": 1, "url": "https://example.com"}], settings=settings,
                              provider=mock_provider)

        assert result.summaries[0].priority_score == 1
        assert result.clusters[0].name == "All Tabs"
        mock_provider.aclose.assert_not_called()
