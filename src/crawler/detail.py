"""
Detail page fetcher.

Loads one company page on the shared browser page, snapshots its HTML and
hands it to the parser. Navigation errors propagate to the caller.
"""

from playwright.async_api import Page

from src.core.logging import get_logger
from src.crawler.navigation import goto_with_retry
from src.parsing.detail_parser import parse_business_detail
from src.storage.models import BusinessRecord

logger = get_logger(__name__)


async def fetch_business_detail(
    page: Page,
    url: str,
    nav_timeout_ms: int = 30_000,
    max_retries: int = 2,
) -> BusinessRecord:
    """
    Navigate to a company page and parse it.

    Args:
        page: Shared Playwright page
        url: Detail URL (/Company/<digits>)
        nav_timeout_ms: Per-attempt navigation timeout
        max_retries: Navigation retries before giving up

    Returns:
        Parsed BusinessRecord; profile_url is the URL after redirects

    Raises:
        Exception: If navigation fails after all retries
    """
    logger.info(f"Scraping company detail: {url}")
    resolved = await goto_with_retry(
        page, url, wait_until="networkidle", timeout_ms=nav_timeout_ms, max_retries=max_retries
    )
    html = await page.content()
    return parse_business_detail(html, resolved or url)
