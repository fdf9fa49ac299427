"""
Crawler for bia.ge company listings.

Module Structure:
- url_utils: detail URL normalization and pager href parsing
- navigation: goto with retry, settle waits (requires playwright)
- pagination: next-page cascade and drift recovery (requires playwright)
- listing: listing traversal state machine (requires playwright)
- detail: detail page fetch + parse (requires playwright)
- auth / session: login and browser lifecycle (requires playwright)
- orchestrator: wiring traversal, fetcher and sinks (requires playwright)
- run: CLI entry point
"""

# Export URL utilities directly (no playwright dependency)
from src.crawler.url_utils import (
    strip_query_fragment,
    is_detail_url,
    filter_detail_links,
    page_number_from_href,
)


# Lazy loading for playwright-dependent classes and functions
def __getattr__(name):
    """Lazy loading for playwright-dependent names."""
    if name in ("PaginationNavigator", "NextPageTarget"):
        from src.crawler.pagination import PaginationNavigator, NextPageTarget
        return {
            "PaginationNavigator": PaginationNavigator,
            "NextPageTarget": NextPageTarget,
        }[name]

    if name in ("ListingTraversal", "TraversalResult", "TraversalState"):
        from src.crawler.listing import ListingTraversal, TraversalResult, TraversalState
        return {
            "ListingTraversal": ListingTraversal,
            "TraversalResult": TraversalResult,
            "TraversalState": TraversalState,
        }[name]

    if name in ("CrawlOrchestrator", "CrawlSummary"):
        from src.crawler.orchestrator import CrawlOrchestrator, CrawlSummary
        return {
            "CrawlOrchestrator": CrawlOrchestrator,
            "CrawlSummary": CrawlSummary,
        }[name]

    if name == "fetch_business_detail":
        from src.crawler.detail import fetch_business_detail
        return fetch_business_detail

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # URL utilities (no playwright dependency)
    "strip_query_fragment",
    "is_detail_url",
    "filter_detail_links",
    "page_number_from_href",
    # Require playwright - lazy loaded
    "PaginationNavigator",
    "NextPageTarget",
    "ListingTraversal",
    "TraversalResult",
    "TraversalState",
    "CrawlOrchestrator",
    "CrawlSummary",
    "fetch_business_detail",
]
