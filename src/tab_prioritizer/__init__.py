"""
Tab prioritization and clustering engine.

Scores open browser tabs by learning and utility value, summarizes them, and
groups them into priority-ordered clusters.
"""

from tab_prioritizer.agents.pipeline import TabPrioritizer, analyze_tabs

__version__ = "0.1.0"

__all__ = [
    "TabPrioritizer",
    "analyze_tabs",
    "__version__",
]
