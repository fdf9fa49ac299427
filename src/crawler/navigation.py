"""
Page navigation helpers shared by the listing and detail steps.

Every navigation on the shared page goes through goto_with_retry so that
transient load failures are retried with backoff before they surface.
"""

from typing import Optional
from playwright.async_api import Page

from src.core.logging import get_logger
from src.utils.retry import RetryConfig, retry_async

logger = get_logger(__name__)

DEFAULT_NAV_TIMEOUT_MS = 30_000


async def goto_with_retry(
    page: Page,
    url: str,
    wait_until: str = "domcontentloaded",
    timeout_ms: int = DEFAULT_NAV_TIMEOUT_MS,
    max_retries: int = 2,
    retry_config: Optional[RetryConfig] = None,
) -> str:
    """
    Navigate to url, retrying on failure.

    Args:
        page: Playwright page instance
        url: Target URL
        wait_until: Playwright readiness condition
        timeout_ms: Per-attempt navigation timeout
        max_retries: Retries after the first attempt
        retry_config: Overrides max_retries when given

    Returns:
        The page URL after navigation (may differ after redirects)

    Raises:
        The last navigation error once retries are exhausted

    Example:
        >>> await goto_with_retry(page, "https://www.bia.ge/Company/42", wait_until="networkidle")
        'https://www.bia.ge/Company/42'
    """
    config = retry_config or RetryConfig(max_retries=max_retries)

    async def _go():
        logger.debug(f"[nav] {url} (wait_until={wait_until})")
        await page.goto(url, wait_until=wait_until, timeout=timeout_ms)

    await retry_async(_go, config)
    return page.url


async def wait_settled(page: Page, timeouts=(10_000, 4_000)) -> None:
    """
    Wait for the network to go idle, tolerating pages that never do.

    Each timeout is tried in turn; a timeout is not an error here.
    """
    for t in timeouts:
        try:
            await page.wait_for_load_state("networkidle", timeout=t)
            return
        except Exception as e:
            logger.debug(f"networkidle not reached within {t}ms: {e}")
