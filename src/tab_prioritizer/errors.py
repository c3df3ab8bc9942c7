"""
Exception types raised by the tab prioritization engine.

Only AnalysisFailed escapes a batch; everything else is absorbed into a
degraded-but-valid result by the component that catches it.
"""

from typing import Any, Optional


class TabPrioritizerError(Exception):
    """Base class for all engine errors."""


class InvalidInput(TabPrioritizerError):
    """A raw tab record is structurally invalid (missing id or url)."""

    def __init__(self, message: str, tab_id: Optional[Any] = None):
        super().__init__(message)
        self.tab_id = tab_id


class ProviderUnavailable(TabPrioritizerError):
    """The inference provider was unreachable, returned non-2xx, or timed out."""


class MalformedResponse(ProviderUnavailable):
    """The provider answered but no usable JSON could be recovered."""


class AnalysisFailed(TabPrioritizerError):
    """The whole batch could not be completed."""
