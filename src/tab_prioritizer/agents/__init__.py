"""
Agents for tab analysis and clustering.

This package provides:
- Tab normalization (normalize_tab, normalize_tabs)
- Per-tab priority analysis (TabAnalyzer)
- Cluster building with domain fallback (TabClusterer)
- Cluster validation and ordering (resolve_clusters)
- The batch pipeline (TabPrioritizer)
"""

from tab_prioritizer.agents.models import (
    TabInput,
    TabAnalysis,
    Cluster,
    RejectedTab,
    AnalysisResult,
)
from tab_prioritizer.agents.inference_provider import InferenceProvider
from tab_prioritizer.agents.groq_provider import GroqInferenceProvider
from tab_prioritizer.agents.normalizer import normalize_tab, normalize_tabs
from tab_prioritizer.agents.ordering import resolve_clusters
from tab_prioritizer.agents.tab_analyzer import TabAnalyzer
from tab_prioritizer.agents.tab_clusterer import TabClusterer
from tab_prioritizer.agents.pipeline import TabPrioritizer, analyze_tabs, build_provider

__all__ = [
    "TabInput",
    "TabAnalysis",
    "Cluster",
    "RejectedTab",
    "AnalysisResult",
    "InferenceProvider",
    "GroqInferenceProvider",
    "normalize_tab",
    "normalize_tabs",
    "resolve_clusters",
    "TabAnalyzer",
    "TabClusterer",
    "TabPrioritizer",
    "analyze_tabs",
    "build_provider",
]
