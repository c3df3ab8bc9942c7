"""
Example demonstrating one analysis batch run in-process.

This example shows:
1. Passing raw tab records as the browser extension sends them
2. Per-tab priority scores and summaries
3. Priority-ordered clusters
4. Rejected records and degraded analyses

Without GROQ_API_KEY the batch still completes, using default scores and
clustering by site.
"""

from tab_prioritizer import analyze_tabs
from tab_prioritizer.config import get_settings, setup_logging


TABS = [
    {
        "id": 1,
        "url": "https://docs.python.org/3/library/asyncio.html",
        "title": "asyncio - Asynchronous I/O",
        "metaDescription": "Python documentation for asyncio",
        "headings": ["asyncio", "Guides and Tutorials", "Reference"],
        "textContent": "asyncio is a library to write concurrent code using the async/await syntax.",
    },
    {
        "id": 2,
        "url": "https://news.ycombinator.com/item?id=1",
        "title": "Show HN: A new programming language",
        "textContent": "Discussion thread about a new language and its compiler.",
    },
    {
        "id": 3,
        "url": "https://arxiv.org/abs/1706.03762",
        "title": "Attention Is All You Need",
        "metaDescription": "The Transformer architecture paper",
    },
    {
        "id": 4,
        "url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "title": "Music video",
    },
    # Invalid: no url
    {"id": 5, "title": "Blank tab"},
]


def main():
    """Run one analysis batch and print the result."""
    settings = get_settings()
    setup_logging(settings.log_level)

    print("=" * 80)
    print("Tab Prioritizer Example")
    print("=" * 80)
    print()

    if not settings.groq_api_key:
        print("NOTE: GROQ_API_KEY not set, using fallback analysis only")
        print()

    result = analyze_tabs(TABS, settings=settings)

    print("-" * 80)
    print(f"Analyzed {result.processed} tabs ({result.errors} degraded)")
    print("-" * 80)
    for summary in result.summaries:
        print(f"[{summary.priority_score}] {summary.title}")
        print(f"    {summary.summary}")
        print(f"    Topics: {', '.join(summary.topics) or '-'}")
        if summary.error:
            print(f"    Error: {summary.error}")
    print()

    print("-" * 80)
    print("Clusters (highest priority first)")
    print("-" * 80)
    titles = {s.id: s.title for s in result.summaries}
    for cluster in result.clusters:
        print(f"{cluster.name} (priority {cluster.cluster_priority}): {cluster.description}")
        for tab_id in cluster.tab_ids:
            print(f"    - {titles[tab_id]}")
    print()

    if result.rejected:
        print("Rejected records:")
        for rejected in result.rejected:
            print(f"    - id={rejected.id}: {rejected.reason}")
        print()

    print("JSON response body:")
    print(result.model_dump_json(by_alias=True, indent=2))


if __name__ == "__main__":
    main()
