"""
Validation, conflict resolution and ordering of candidate clusters.

Candidate clusters come either from the inference provider (untrusted JSON)
or from the domain fallback. Both go through ``resolve_clusters`` so the
final result always satisfies the same guarantees:

- every analyzed tab appears in exactly one cluster
- no cluster references an unknown tab or is empty
- tabs are ordered by priority score, then title
- clusters are ordered by mean priority, best first
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Optional

from tab_prioritizer.agents.models import Cluster, TabAnalysis, TabId
from tab_prioritizer.config import get_logger

logger = get_logger(__name__)

OTHER_CLUSTER_NAME = "Other"
OTHER_CLUSTER_DESCRIPTION = "Uncategorized tabs"


def round_priority(total: int, count: int) -> float:
    """Mean of integer scores rounded half-up to one decimal (1.25 -> 1.3)."""
    return ((20 * total + count) // (2 * count)) / 10


def cluster_priority(analyses: Sequence[TabAnalysis]) -> float:
    """Mean priority score of a non-empty set of analyses."""
    return round_priority(sum(a.priority_score for a in analyses), len(analyses))


def sort_key(analysis: TabAnalysis) -> tuple[int, str]:
    """Within-cluster order: priority score, then title."""
    return (analysis.priority_score, analysis.title)


class _AnalysisIndex:
    """Resolves tab id references, tolerating ids echoed back as strings."""

    def __init__(self, analyses: Iterable[TabAnalysis]):
        self.by_id: dict[TabId, TabAnalysis] = {}
        self.by_text: dict[str, TabAnalysis] = {}
        for analysis in analyses:
            self.by_id.setdefault(analysis.id, analysis)
            self.by_text.setdefault(str(analysis.id), analysis)

    def get(self, ref: Any) -> Optional[TabAnalysis]:
        if isinstance(ref, bool) or not isinstance(ref, (int, float, str)):
            return None
        analysis = self.by_id.get(ref)
        if analysis is None:
            analysis = self.by_text.get(str(ref).strip())
        return analysis


def candidate_fields(candidate: Any) -> Optional[tuple[str, str, list]]:
    """Extract (name, description, tab ids) or None if the candidate is unusable."""
    if isinstance(candidate, Cluster):
        name, description, tab_ids = candidate.name, candidate.description, list(candidate.tab_ids)
    elif isinstance(candidate, Mapping):
        name = candidate.get("name")
        description = candidate.get("description")
        tab_ids = candidate.get("tabIds", candidate.get("tab_ids"))
    else:
        return None

    if not isinstance(name, str) or not name.strip() or not isinstance(tab_ids, list):
        return None
    if not isinstance(description, str):
        description = ""
    return name.strip(), description.strip(), tab_ids


def _build_cluster(name: str, description: str, members: list[TabAnalysis]) -> Cluster:
    members = sorted(members, key=sort_key)
    return Cluster(
        name=name,
        description=description,
        tab_ids=[a.id for a in members],
        cluster_priority=cluster_priority(members),
    )


def resolve_clusters(
    candidates: Iterable[Any],
    analyses: Sequence[TabAnalysis],
) -> list[Cluster]:
    """
    Turn candidate clusters into a valid, fully ordered cluster list.

    Args:
        candidates: Raw cluster mappings (``name``, ``description``,
            ``tabIds``) or Cluster objects, in preference order
        analyses: Every analysis in the batch

    Returns:
        Clusters sorted ascending by cluster priority, covering every
        analysis exactly once
    """
    index = _AnalysisIndex(analyses)
    claimed: set[TabId] = set()
    groups: list[tuple[str, str, list[TabAnalysis]]] = []
    discarded = 0

    for candidate in candidates:
        fields = candidate_fields(candidate)
        if fields is None:
            discarded += 1
            continue
        name, description, tab_ids = fields

        # First claim wins; unknown and repeated ids are dropped
        members: list[TabAnalysis] = []
        for ref in tab_ids:
            analysis = index.get(ref)
            if analysis is None or analysis.id in claimed:
                continue
            claimed.add(analysis.id)
            members.append(analysis)

        if members:
            groups.append((name, description, members))

    if discarded:
        logger.debug(f"Discarded {discarded} malformed cluster candidate(s)")

    unassigned = [a for a in index.by_id.values() if a.id not in claimed]
    if unassigned:
        logger.debug(f"Collecting {len(unassigned)} unassigned tab(s) into '{OTHER_CLUSTER_NAME}'")
        # A candidate already named "Other" absorbs them, so the name stays unique
        other = next((g for g in groups if g[0] == OTHER_CLUSTER_NAME), None)
        if other is not None:
            other[2].extend(unassigned)
        else:
            groups.append((OTHER_CLUSTER_NAME, OTHER_CLUSTER_DESCRIPTION, unassigned))

    clusters = [_build_cluster(name, description, members) for name, description, members in groups]
    return sorted(clusters, key=lambda c: c.cluster_priority)
