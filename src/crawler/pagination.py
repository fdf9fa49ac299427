"""
Next-page discovery for listing pages.

The registry's pager markup is not stable, so the next control is looked up
through an ordered cascade of probes. Each probe either returns a target or
None; a probe that errors or times out counts as None. The first probe with
a match wins, and within a probe the first match in document order wins.

Tiers:
1. the known next button (.form-button-paging.button-next), visible and enabled
2. alternate selectors for the same control
3. anchors/buttons whose whole text is a "next" label
4. links inside pagination containers (next text, page=N+1 href, "N+1" text)
5. every visible, enabled clickable (text, href, onclick, class/id), with digit text
   accepted only inside a pagination container

When all tiers come back empty there is no next page.
"""

import re
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from playwright.async_api import ElementHandle, Page

from src.core.error_models import ErrorComponent, ErrorSeverity, ErrorStage, ErrorType
from src.core.error_logger import get_error_logger
from src.core.logging import get_logger
from src.crawler.navigation import goto_with_retry, wait_settled
from src.crawler.url_utils import is_detail_url, page_number_from_href, same_page

logger = get_logger(__name__)

EXACT_NEXT_SELECTOR = ".form-button-paging.button-next"

ALTERNATE_NEXT_SELECTORS = [
    "div.form-button-paging.button-next",
    "div.button-next",
    "a[rel='next']",
    ".pagination a.next",
    ".pager a.next",
    "a.next",
]

TEXT_CANDIDATES_SELECTOR = "a, button, div.form-button-paging"

PAGINATION_CONTAINER_SELECTORS = [
    ".pagination",
    ".pager",
    "[class*='pagination']",
    "[class*='pager']",
    "[class*='Pagination']",
    "[class*='Pager']",
    "nav",
    "[role='navigation']",
]

CONTAINER_LINK_SELECTOR = "a, button"

CLICKABLE_SELECTOR = "a, button, [onclick], [role='button'], span[onclick], div[onclick]"

NEXT_LABEL_KA = "შემდეგი"
NEXT_GLYPHS = ("»", "→")

INACTIVE_MARKERS = ("active", "current", "disabled")

IN_PAGINATION_JS = (
    "el => !!el.closest(\".pagination, .pager, [class*='pagination'], "
    "[class*='pager'], [class*='Pagination'], [class*='Pager'], nav, [role='navigation']\")"
)

EXACT_WAIT_MS = 2_000


@dataclass
class NextPageTarget:
    """A discovered next-page control."""
    tier: int
    reason: str
    element: Optional[ElementHandle] = None
    onclick: Optional[str] = None


# ---------------- Element checks ----------------

def is_next_text(text: Optional[str]) -> bool:
    """Whole-text match against the "next" labels and arrow glyphs."""
    t = (text or "").strip()
    if not t:
        return False
    return t == NEXT_LABEL_KA or t.lower() == "next" or t in NEXT_GLYPHS


def contains_next_text(text: Optional[str]) -> bool:
    t = (text or "").strip()
    if not t:
        return False
    return NEXT_LABEL_KA in t or "next" in t.lower() or any(g in t for g in NEXT_GLYPHS)


def onclick_targets_page(onclick: Optional[str], page_number: int) -> bool:
    """True if an inline handler mentions page=N, Page=N or page:N."""
    if not onclick:
        return False
    pattern = rf"(?:page=|Page=|page:\s*){page_number}(?!\d)"
    return re.search(pattern, onclick) is not None


def _compact_style(style: Optional[str]) -> str:
    return re.sub(r"\s+", "", (style or "").lower())


async def _attr(el: ElementHandle, name: str) -> Optional[str]:
    try:
        return await el.get_attribute(name)
    except Exception:
        return None


async def _text(el: ElementHandle) -> str:
    try:
        return ((await el.text_content()) or "").strip()
    except Exception:
        return ""


async def _visible(el: ElementHandle) -> bool:
    try:
        return await el.is_visible()
    except Exception:
        return False


async def is_disabled(el: ElementHandle) -> bool:
    """Disabled per class, aria-disabled, disabled attribute or inline style."""
    classes = (await _attr(el, "class") or "").split()
    if "disabled" in classes:
        return True
    if (await _attr(el, "aria-disabled") or "").lower() == "true":
        return True
    if await _attr(el, "disabled") is not None:
        return True
    style = _compact_style(await _attr(el, "style"))
    return "pointer-events:none" in style or "display:none" in style


async def is_inactive_link(el: ElementHandle) -> bool:
    """Pager links for the current page or a disabled step."""
    classes = (await _attr(el, "class") or "").lower().split()
    if any(marker in classes for marker in INACTIVE_MARKERS):
        return True
    if (await _attr(el, "aria-current") or "").lower() == "page":
        return True
    return (await _attr(el, "aria-disabled") or "").lower() == "true"


async def in_pagination_container(el: ElementHandle) -> bool:
    try:
        return bool(await el.evaluate(IN_PAGINATION_JS))
    except Exception:
        return False


async def _usable(el: ElementHandle) -> bool:
    return await _visible(el) and not await is_disabled(el)


# ---------------- Tiers ----------------

Probe = Callable[[Page, int], Awaitable[Optional[NextPageTarget]]]


async def probe_exact_selector(page: Page, current_page: int) -> Optional[NextPageTarget]:
    try:
        await page.wait_for_selector(EXACT_NEXT_SELECTOR, timeout=EXACT_WAIT_MS, state="attached")
    except Exception:
        return None
    for el in await page.query_selector_all(EXACT_NEXT_SELECTOR):
        if await _usable(el):
            return NextPageTarget(1, f"selector {EXACT_NEXT_SELECTOR}", el, await _attr(el, "onclick"))
    return None


async def probe_alternate_selectors(page: Page, current_page: int) -> Optional[NextPageTarget]:
    for selector in ALTERNATE_NEXT_SELECTORS:
        for el in await page.query_selector_all(selector):
            if await _usable(el):
                return NextPageTarget(2, f"selector {selector}", el, await _attr(el, "onclick"))
    return None


async def probe_next_text(page: Page, current_page: int) -> Optional[NextPageTarget]:
    for el in await page.query_selector_all(TEXT_CANDIDATES_SELECTOR):
        text = await _text(el)
        if is_next_text(text) and await _usable(el):
            return NextPageTarget(3, f"text {text!r}", el, await _attr(el, "onclick"))
    return None


async def probe_pagination_containers(page: Page, current_page: int) -> Optional[NextPageTarget]:
    wanted = current_page + 1
    for container_selector in PAGINATION_CONTAINER_SELECTORS:
        for container in await page.query_selector_all(container_selector):
            for el in await container.query_selector_all(CONTAINER_LINK_SELECTOR):
                if await is_inactive_link(el):
                    continue
                text = await _text(el)
                onclick = await _attr(el, "onclick")
                if contains_next_text(text):
                    return NextPageTarget(4, f"{container_selector} next text", el, onclick)
                if page_number_from_href(await _attr(el, "href")) == wanted:
                    return NextPageTarget(4, f"{container_selector} href page {wanted}", el, onclick)
                if text == str(wanted):
                    return NextPageTarget(4, f"{container_selector} link text {wanted}", el, onclick)
    return None


async def probe_all_clickables(page: Page, current_page: int) -> Optional[NextPageTarget]:
    wanted = current_page + 1
    for el in await page.query_selector_all(CLICKABLE_SELECTOR):
        if not await _usable(el):
            continue
        text = await _text(el)
        onclick = await _attr(el, "onclick")

        if is_next_text(text):
            return NextPageTarget(5, f"clickable text {text!r}", el, onclick)
        if page_number_from_href(await _attr(el, "href")) == wanted:
            return NextPageTarget(5, f"clickable href page {wanted}", el, onclick)
        if onclick_targets_page(onclick, wanted):
            return NextPageTarget(5, f"onclick page {wanted}", el, onclick)

        ident = f"{await _attr(el, 'class') or ''} {await _attr(el, 'id') or ''}".lower()
        if "next" in ident and "disabled" not in ident:
            return NextPageTarget(5, "class/id next", el, onclick)

        if text == str(wanted) and await in_pagination_container(el):
            return NextPageTarget(5, f"pager digit {wanted}", el, onclick)
    return None


DEFAULT_TIERS: List[Probe] = [
    probe_exact_selector,
    probe_alternate_selectors,
    probe_next_text,
    probe_pagination_containers,
    probe_all_clickables,
]


class PaginationNavigator:
    """
    Finds and follows the next-page control on a listing page.

    Usage:
        >>> nav = PaginationNavigator()
        >>> target = await nav.find_next(page, current_page=1)
        >>> if target:
        ...     new_url = await nav.advance(page, target)
    """

    def __init__(
        self,
        tiers: Optional[List[Probe]] = None,
        nav_timeout_ms: int = 30_000,
        max_retries: int = 2,
    ):
        self.tiers = tiers if tiers is not None else list(DEFAULT_TIERS)
        self.nav_timeout_ms = nav_timeout_ms
        self.max_retries = max_retries

    async def find_next(self, page: Page, current_page: int) -> Optional[NextPageTarget]:
        """
        Run the cascade on the current page.

        Args:
            page: Playwright page showing a listing page
            current_page: 1-based index of that page

        Returns:
            First target found, or None when every tier is empty
        """
        for idx, probe in enumerate(self.tiers, 1):
            try:
                target = await probe(page, current_page)
            except Exception as e:
                logger.debug(f"Pagination tier {idx} failed on page {current_page}: {e}")
                continue
            if target is not None:
                logger.info(f"Next page control found on page {current_page}: tier {target.tier} ({target.reason})")
                return target
            logger.debug(f"Pagination tier {idx}: no match on page {current_page}")

        logger.info(f"No next page control on page {current_page} after {len(self.tiers)} tiers")
        return None

    async def advance(self, page: Page, target: NextPageTarget) -> str:
        """
        Follow a target and wait for the page to settle.

        Clicks the element; if there is no element or the click fails and the
        target carries an onclick handler, that handler is evaluated instead.

        Returns:
            The page URL after advancing

        Raises:
            Exception: when neither the click nor the handler can be run
        """
        try:
            if target.element is None:
                raise RuntimeError("next-page target has no element")
            await target.element.click()
        except Exception as e:
            if not target.onclick:
                raise
            logger.warning(f"Click on next control failed ({e}), evaluating onclick handler")
            get_error_logger().log_exception(
                e,
                component=ErrorComponent.PAGINATION,
                stage=ErrorStage.ADVANCE_PAGE,
                url=page.url,
                severity=ErrorSeverity.WARNING,
                metadata={"tier": target.tier, "reason": target.reason},
            )
            await page.evaluate(f"() => {{ {target.onclick} }}")

        await wait_settled(page)
        return page.url

    async def ensure_listing(self, page: Page, listing_url: str) -> bool:
        """
        Re-navigate to listing_url if the page drifted somewhere else.

        A detail page is not treated as drift.

        Returns:
            True if a re-navigation happened
        """
        current = page.url
        if same_page(current, listing_url) or is_detail_url(current):
            return False

        logger.warning(f"Listing drift: expected {listing_url}, on {current}; re-navigating")
        get_error_logger().log_error(
            component=ErrorComponent.PAGINATION,
            stage=ErrorStage.ENSURE_LISTING,
            error_type=ErrorType.NAVIGATION_DRIFT,
            message=f"Expected listing {listing_url}, found {current}",
            url=current,
            severity=ErrorSeverity.WARNING,
        )
        await goto_with_retry(
            page,
            listing_url,
            wait_until="networkidle",
            timeout_ms=self.nav_timeout_ms,
            max_retries=self.max_retries,
        )
        return True
