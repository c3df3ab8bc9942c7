"""
Tab clustering service with AI grouping and a deterministic domain fallback.

This module asks the inference provider to partition a batch of analyzed
tabs into a handful of named topic clusters. When the provider is absent,
fails, or returns something unusable, tabs are grouped by the site they
come from instead. Either way the candidates are validated and ordered by
``resolve_clusters`` before being returned.
"""

import asyncio
import ipaddress
from collections.abc import Sequence
from typing import Any, Optional
from urllib.parse import urlparse

from tab_prioritizer.agents.inference_provider import InferenceProvider
from tab_prioritizer.agents.models import Cluster, TabAnalysis
from tab_prioritizer.agents.ordering import candidate_fields, resolve_clusters
from tab_prioritizer.agents.response_parser import extract_json_array
from tab_prioritizer.config import Settings, get_logger
from tab_prioritizer.errors import ProviderUnavailable

logger = get_logger(__name__)

SINGLE_CLUSTER_NAME = "All Tabs"
SINGLE_CLUSTER_DESCRIPTION = "All your open tabs"
UNKNOWN_SITE_NAME = "Other"
UNKNOWN_SITE_DESCRIPTION = "Miscellaneous pages"

# Second-level labels under two-letter country TLDs (bbc.co.uk, unimelb.edu.au)
_COUNTRY_SECOND_LEVEL = {"ac", "co", "com", "edu", "gov", "net", "org"}


def site_of(url: str) -> Optional[tuple[str, str]]:
    """
    Derive the grouping key and registrable domain of a URL.

    Examples:
        https://news.ycombinator.com/item → ("ycombinator", "ycombinator.com")
        https://www.bbc.co.uk/news → ("bbc", "bbc.co.uk")
        http://localhost:8000 → ("localhost", "localhost")

    Returns:
        (key, domain) or None if the URL has no parseable host
    """
    try:
        host = urlparse(url.strip()).hostname
    except (ValueError, AttributeError):
        return None
    if not host:
        return None

    host = host.rstrip(".")
    if host.startswith("www."):
        host = host[len("www."):]
    if not host:
        return None

    try:
        ipaddress.ip_address(host)
        return host, host
    except ValueError:
        pass

    labels = [label for label in host.split(".") if label]
    if len(labels) == 1:
        return labels[0], labels[0]

    if len(labels) >= 3 and len(labels[-1]) == 2 and labels[-2] in _COUNTRY_SECOND_LEVEL:
        registrable = labels[-3:]
    else:
        registrable = labels[-2:]
    return registrable[0], ".".join(registrable)


def domain_clusters(analyses: Sequence[TabAnalysis]) -> list[dict[str, Any]]:
    """
    Group tabs by the site they belong to.

    Groups keep the order in which their first tab appears, so the same
    analyses always produce the same candidates. Tabs without a parseable
    host are collected into an "Other" group.

    Args:
        analyses: Analyzed tabs

    Returns:
        Candidate clusters (``name``, ``description``, ``tabIds``)
    """
    groups: dict[Optional[str], dict[str, Any]] = {}

    for analysis in analyses:
        site = site_of(analysis.url)
        if site is None:
            key = None
            if key not in groups:
                groups[key] = {
                    "name": UNKNOWN_SITE_NAME,
                    "description": UNKNOWN_SITE_DESCRIPTION,
                    "tabIds": [],
                }
        else:
            key, domain = site
            if key not in groups:
                groups[key] = {
                    "name": key[:1].upper() + key[1:],
                    "description": f"Pages from {domain}",
                    "tabIds": [],
                }
        groups[key]["tabIds"].append(analysis.id)

    return list(groups.values())


def build_clustering_prompt(analyses: Sequence[TabAnalysis], structured: bool = False) -> str:
    """Build the clustering prompt listing every analyzed tab."""
    tab_list = "\n".join(
        f'Tab {a.id} [Priority: {a.priority_score}]: "{a.title}" - {a.summary}'
        for a in analyses
    )

    if structured:
        output_format = """Return ONLY a valid JSON object of the form:
{"clusters": [{"name": "...", "description": "...", "tabIds": [1, 2]}]}"""
    else:
        output_format = "Return only the JSON array:"

    return f"""Analyze these web page summaries and group them into 2-6 logical clusters based on their topics and content similarity.
Each tab has been analyzed with a priority score (1=highest, 5=lowest).

Each cluster must have:
- "name": A short, descriptive cluster name
- "description": A brief explanation of what the cluster contains
- "tabIds": An array of tab IDs that belong to this cluster

Every tab should belong to exactly one cluster.

Tabs to cluster:
{tab_list}

{output_format}"""


class TabClusterer:
    """
    Groups analyzed tabs into priority-ordered clusters.

    Key Design Decisions:
    - One provider call per batch (the prompt lists every tab)
    - Provider output is never trusted: it is validated and repaired
    - Any failure falls back to deterministic domain grouping

    Attributes:
        provider: Inference provider, or None for domain grouping only
        settings: Token limit, temperature and timeout for the call
    """

    def __init__(self, provider: Optional[InferenceProvider], settings: Settings):
        self.provider = provider
        self.settings = settings

    async def cluster(self, analyses: Sequence[TabAnalysis]) -> list[Cluster]:
        """
        Cluster a batch of analyzed tabs.

        Args:
            analyses: Every analysis in the batch

        Returns:
            Clusters sorted ascending by cluster priority, covering every tab
        """
        analyses = list(analyses)
        if not analyses:
            return []

        if len(analyses) < 2:
            single = {
                "name": SINGLE_CLUSTER_NAME,
                "description": SINGLE_CLUSTER_DESCRIPTION,
                "tabIds": [a.id for a in analyses],
            }
            return resolve_clusters([single], analyses)

        if self.provider is None:
            logger.info("No inference provider configured, using domain clustering")
            return self.fallback_clustering(analyses)

        try:
            candidates = await self._request_clusters(analyses)
        except asyncio.TimeoutError:
            logger.warning(
                f"Clustering timed out after {self.settings.provider_call_timeout}s, using domain clustering"
            )
            return self.fallback_clustering(analyses)
        except ProviderUnavailable as e:
            logger.warning(f"Clustering failed, using domain clustering: {e}")
            return self.fallback_clustering(analyses)
        except Exception as e:
            logger.error(f"Unexpected clustering error, using domain clustering: {e}", exc_info=True)
            return self.fallback_clustering(analyses)

        if not any(candidate_fields(c) for c in candidates):
            logger.warning("Provider returned no usable clusters, using domain clustering")
            return self.fallback_clustering(analyses)

        clusters = resolve_clusters(candidates, analyses)
        logger.info(f"Grouped {len(analyses)} tabs into {len(clusters)} clusters")
        return clusters

    async def _request_clusters(self, analyses: Sequence[TabAnalysis]) -> list:
        """Ask the provider for candidate clusters and parse the JSON array."""
        structured = self.settings.structured_output
        prompt = build_clustering_prompt(analyses, structured=structured)

        content = await asyncio.wait_for(
            self.provider.complete(
                prompt,
                max_tokens=self.settings.cluster_max_tokens,
                temperature=self.settings.cluster_temperature,
                json_mode=structured,
            ),
            timeout=self.settings.provider_call_timeout,
        )
        return extract_json_array(content)

    def fallback_clustering(self, analyses: Sequence[TabAnalysis]) -> list[Cluster]:
        """Deterministic clustering by site, validated and ordered."""
        return resolve_clusters(domain_clusters(analyses), analyses)
