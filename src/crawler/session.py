"""
Browser session lifecycle.

One Chromium browser, one context, one page for the whole crawl. The
context manager closes everything on every exit path.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from playwright.async_api import Page, async_playwright

from src.core.logging import get_logger

logger = get_logger(__name__)

BLOCK_RESOURCE_TYPES = {"media", "font", "image"}  # keep CSS/JS/XHR

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126 Safari/537.36"
)


@asynccontextmanager
async def browser_session(
    headless: bool = True,
    nav_timeout_ms: int = 30_000,
    block_resources: bool = True,
    storage_state: Optional[str] = None,
) -> AsyncIterator[Page]:
    """
    Launch Chromium and yield a single page.

    Args:
        headless: Run without a window
        nav_timeout_ms: Default navigation timeout for the page
        block_resources: Abort image/font/media requests
        storage_state: Optional Playwright storage state file to reuse cookies

    Example:
        >>> async with browser_session(headless=True) as page:
        ...     await login(page, cfg)
    """
    async with async_playwright() as pw:
        logger.info(f"Launching browser (headless={headless})")
        browser = await pw.chromium.launch(
            headless=headless,
            args=["--disable-blink-features=AutomationControlled"],
        )
        ctx_kwargs: Dict[str, object] = {
            "user_agent": USER_AGENT,
            "viewport": {"width": 1366, "height": 860},
            "locale": "ka-GE",
        }
        if storage_state:
            ctx_kwargs["storage_state"] = storage_state
        context = await browser.new_context(**ctx_kwargs)
        await context.add_init_script("Object.defineProperty(navigator, 'webdriver', {get: () => undefined});")

        if block_resources:
            async def _route(route):
                if route.request.resource_type in BLOCK_RESOURCE_TYPES:
                    return await route.abort()
                return await route.continue_()

            await context.route("**/*", _route)

        try:
            page = await context.new_page()
            page.set_default_navigation_timeout(nav_timeout_ms)
            yield page
        finally:
            logger.info("Closing browser...")
            await context.close()
            await browser.close()
