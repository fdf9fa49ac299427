"""
URL helpers for listing and detail pages.

Company detail pages live at /Company/<digits>; listing result links are
normalized to that shape before deduplication.
"""

import re
from typing import Iterable, List, Optional
from urllib.parse import urljoin

DETAIL_PATH_RE = re.compile(r"/Company/\d+$")
QUERY_FRAGMENT_RE = re.compile(r"[#?].*$")
HREF_PAGE_RE = re.compile(r"[Pp]age[=_](\d+)")


def strip_query_fragment(url: str) -> str:
    """
    Drop everything from the first "?" or "#".

    Idempotent.

    Example:
        >>> strip_query_fragment("https://www.bia.ge/Company/42?tab=1#top")
        'https://www.bia.ge/Company/42'
    """
    return QUERY_FRAGMENT_RE.sub("", url or "")


def is_detail_url(url: Optional[str]) -> bool:
    """
    True for a company detail page URL.

    Example:
        >>> is_detail_url("https://www.bia.ge/Company/42?x=1")
        True
        >>> is_detail_url("https://www.bia.ge/Company/AdvancedSearch")
        False
    """
    if not url:
        return False
    return bool(DETAIL_PATH_RE.search(strip_query_fragment(url)))


def absolutize(base: str, href: Optional[str]) -> Optional[str]:
    """Resolve href against base; None for empty hrefs."""
    if not href:
        return None
    return urljoin(base, href.strip())


def filter_detail_links(hrefs: Iterable[Optional[str]], base: Optional[str] = None) -> List[str]:
    """
    Normalize raw result hrefs to unique detail URLs in document order.

    Each href is resolved against base (when given), stripped of query and
    fragment, then kept only if it is a detail URL. Applying the filter to
    its own output returns the same list.

    Example:
        >>> filter_detail_links(["/Company/1#a", "/Company/1", "/About"], "https://www.bia.ge/")
        ['https://www.bia.ge/Company/1']
    """
    seen = set()
    out: List[str] = []
    for href in hrefs:
        url = absolutize(base, href) if base else href
        if not url:
            continue
        url = strip_query_fragment(url)
        if url in seen or not DETAIL_PATH_RE.search(url):
            continue
        seen.add(url)
        out.append(url)
    return out


def page_number_from_href(href: Optional[str]) -> Optional[int]:
    """
    Page number encoded in a link target ("page=3", "Page_3").

    Example:
        >>> page_number_from_href("/Company/AdvancedSearch?page=3")
        3
    """
    if not href:
        return None
    m = HREF_PAGE_RE.search(href)
    return int(m.group(1)) if m else None


def same_page(a: Optional[str], b: Optional[str]) -> bool:
    """Compare two URLs ignoring a trailing slash and a fragment."""
    def _norm(u: Optional[str]) -> str:
        return (u or "").split("#", 1)[0].rstrip("/")
    return _norm(a) == _norm(b)
