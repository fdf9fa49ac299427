"""
Listing traversal: from the search form to the last listing page.

States:
    APPLYING_FILTER -> COLLECTING_PAGE(n) -> ADVANCING -> COLLECTING_PAGE(n+1) -> ... -> DONE

DONE is reached when the number of admitted detail URLs hits
max_companies, when the pagination cascade finds no next control, or when
an advance leaves the URL unchanged and shows no new companies.
Each newly seen detail URL is handed to the caller's callback; a failing
callback is counted and logged, and traversal moves on.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Iterable, List, Optional, Set

from playwright.async_api import Page

from src.core.config import Config
from src.core.error_logger import get_error_logger
from src.core.error_models import ErrorComponent, ErrorSeverity, ErrorStage, ErrorType
from src.core.exceptions import FatalCrawlError
from src.core.logging import get_logger
from src.crawler.navigation import goto_with_retry
from src.crawler.pagination import PaginationNavigator
from src.crawler.url_utils import filter_detail_links, same_page

logger = get_logger(__name__)

OnCompany = Callable[[str], Awaitable[None]]

# Search form
ADVANCED_SEARCH_OPENER = "#AdvancedSearchOpener"
INDUSTRY_MENU_ITEM = "#tpmiIndustry"
CATEGORY_INPUT = 'input[name*="ServiceCategoriesIds"][type="text"]'
AUTOCOMPLETE_OPTION = '.autocomplete-suggestions li, .ui-autocomplete li, [role="option"]'
ADD_CATEGORY_BUTTON = ".form-list-button-add.add"
SEARCH_SUBMIT = "#AdvancedSearchSubmit"
RESULTS_PATH = "/Company/AdvancedSearch"

# Results
RESULT_ROW = "li.row-box"
RESULT_LINK = "li.row-box a.title-box"

FORM_WAIT_MS = 10_000
AUTOCOMPLETE_WAIT_MS = 5_000


class TraversalState(str, Enum):
    APPLYING_FILTER = "applying_filter"
    COLLECTING_PAGE = "collecting_page"
    ADVANCING = "advancing"
    DONE = "done"


class StopReason:
    MAX_COMPANIES = "max_companies"
    NO_NEXT_PAGE = "no_next_page"
    START_PAGE_UNREACHABLE = "start_page_unreachable"


@dataclass
class TraversalResult:
    scraped: int = 0
    failed: int = 0
    pages_visited: int = 0
    stop_reason: str = "none"


class ListingTraversal:
    """
    Drives the listing pages and feeds detail URLs to a callback.

    Usage:
        >>> traversal = ListingTraversal.from_config(cfg)
        >>> result = await traversal.run(page, on_company)
        >>> result.stop_reason
        'max_companies'
    """

    def __init__(
        self,
        max_companies: int,
        base_url: str = "https://www.bia.ge",
        search_category: str = "რესტორნები, ბარები",
        start_page: int = 1,
        page_delay_ms: int = 0,
        nav_timeout_ms: int = 30_000,
        max_retries: int = 2,
        navigator: Optional[PaginationNavigator] = None,
        seen_urls: Optional[Iterable[str]] = None,
    ):
        self.max_companies = max_companies
        self.base_url = base_url
        self.search_category = search_category
        self.start_page = max(start_page, 1)
        self.page_delay_ms = page_delay_ms
        self.nav_timeout_ms = nav_timeout_ms
        self.max_retries = max_retries
        self.navigator = navigator or PaginationNavigator(
            nav_timeout_ms=nav_timeout_ms, max_retries=max_retries
        )
        # Preloaded URLs are skipped but do not count towards max_companies
        self.seen: Set[str] = set(seen_urls or ())
        self.admitted = 0
        self.state = TraversalState.APPLYING_FILTER

    @classmethod
    def from_config(
        cls,
        cfg: Config,
        navigator: Optional[PaginationNavigator] = None,
        seen_urls: Optional[Iterable[str]] = None,
    ) -> "ListingTraversal":
        return cls(
            max_companies=cfg.max_companies,
            base_url=cfg.base_url,
            search_category=cfg.search_category,
            start_page=cfg.start_page,
            page_delay_ms=cfg.page_delay_ms,
            nav_timeout_ms=cfg.nav_timeout_ms,
            max_retries=cfg.max_retries,
            navigator=navigator,
            seen_urls=seen_urls,
        )

    # ---------------- Steps ----------------

    async def apply_search_filter(self, page: Page) -> str:
        """
        Open the advanced search, add the category filter and submit.

        Returns:
            URL of the first results page
        """
        logger.info(f"Navigating to home page: {self.base_url}")
        await goto_with_retry(
            page, self.base_url, timeout_ms=self.nav_timeout_ms, max_retries=self.max_retries
        )
        await page.wait_for_timeout(1000)

        opener = await page.wait_for_selector(ADVANCED_SEARCH_OPENER, state="visible", timeout=FORM_WAIT_MS)
        await opener.scroll_into_view_if_needed()
        await opener.click()
        await page.wait_for_timeout(2000)

        industry = await page.wait_for_selector(INDUSTRY_MENU_ITEM, state="visible", timeout=FORM_WAIT_MS)
        await industry.click()
        await page.wait_for_timeout(1000)

        logger.info(f"Entering category {self.search_category!r}")
        category_input = await page.wait_for_selector(CATEGORY_INPUT, state="visible", timeout=FORM_WAIT_MS)
        await category_input.fill(self.search_category)
        await page.wait_for_timeout(1500)

        try:
            option = await page.wait_for_selector(
                AUTOCOMPLETE_OPTION, state="visible", timeout=AUTOCOMPLETE_WAIT_MS
            )
            await option.click()
        except Exception:
            logger.warning("Autocomplete dropdown not found, pressing Enter")
            await category_input.press("Enter")
        await page.wait_for_timeout(500)

        add_button = await page.wait_for_selector(ADD_CATEGORY_BUTTON, state="visible", timeout=FORM_WAIT_MS)
        await add_button.scroll_into_view_if_needed()
        await add_button.click()
        await page.wait_for_timeout(1000)

        logger.info("Submitting advanced search")
        submit = await page.wait_for_selector(SEARCH_SUBMIT, state="visible", timeout=FORM_WAIT_MS)
        await submit.scroll_into_view_if_needed()
        async with page.expect_navigation(wait_until="networkidle", timeout=self.nav_timeout_ms):
            await submit.click()

        current = page.url
        logger.info(f"Navigated to: {current}")
        if RESULTS_PATH not in current:
            logger.warning(f"Expected to be on {RESULTS_PATH}, but current URL is: {current}")

        try:
            await page.wait_for_selector(RESULT_ROW, timeout=FORM_WAIT_MS)
        except Exception:
            logger.warning(f"Timed out waiting for company results ({RESULT_ROW}); results may be empty")
            get_error_logger().log_error(
                component=ErrorComponent.LISTING,
                stage=ErrorStage.APPLY_FILTER,
                error_type=ErrorType.TIMEOUT,
                message=f"No {RESULT_ROW} rows after submitting the search",
                url=current,
                severity=ErrorSeverity.WARNING,
            )
        return current

    async def collect_page_urls(self, page: Page) -> List[str]:
        """Unique detail URLs on the current listing page, in document order."""
        try:
            hrefs = await page.eval_on_selector_all(RESULT_LINK, "els => els.map(a => a.href)")
        except Exception as e:
            logger.warning(f"Could not read result links on {page.url}: {e}")
            get_error_logger().log_exception(
                e,
                component=ErrorComponent.LISTING,
                stage=ErrorStage.COLLECT_LINKS,
                url=page.url,
                severity=ErrorSeverity.WARNING,
            )
            return []
        return filter_detail_links(hrefs, base=page.url)

    async def _page_delay(self, page: Page) -> None:
        if self.page_delay_ms > 0:
            await page.wait_for_timeout(self.page_delay_ms)

    def _cap_reached(self) -> bool:
        return self.admitted >= self.max_companies

    def _finish(self, result: TraversalResult, reason: str) -> TraversalResult:
        self.state = TraversalState.DONE
        result.stop_reason = reason
        logger.info(
            f"Traversal done ({reason}): scraped={result.scraped}, failed={result.failed}, "
            f"pages={result.pages_visited}"
        )
        return result

    async def _skip_to_start_page(self, page: Page, listing_url: str) -> Optional[str]:
        """Advance without collecting until start_page; None if the pager runs out first."""
        page_index = 1
        while page_index < self.start_page:
            target = await self.navigator.find_next(page, page_index)
            if target is None:
                logger.warning(f"No next page after page {page_index}; start page {self.start_page} unreachable")
                get_error_logger().log_error(
                    component=ErrorComponent.LISTING,
                    stage=ErrorStage.SKIP_TO_START_PAGE,
                    error_type=ErrorType.ELEMENT_NOT_FOUND,
                    message=f"Pager ended at page {page_index} before start page {self.start_page}",
                    url=page.url,
                    severity=ErrorSeverity.WARNING,
                )
                return None
            listing_url = await self.navigator.advance(page, target)
            page_index += 1
            logger.info(f"Skipped to listing page #{page_index}")
            await self._page_delay(page)
        return listing_url

    # ---------------- Main loop ----------------

    async def run(self, page: Page, on_company: OnCompany) -> TraversalResult:
        """
        Traverse the listing and call on_company for each new detail URL.

        Args:
            page: Shared, logged-in Playwright page
            on_company: Awaited once per admitted URL; exceptions count as failures

        Returns:
            TraversalResult with counts and the stop reason
        """
        result = TraversalResult()

        self.state = TraversalState.APPLYING_FILTER
        listing_url = await self.apply_search_filter(page)

        if self.start_page > 1:
            listing_url = await self._skip_to_start_page(page, listing_url)
            if listing_url is None:
                return self._finish(result, StopReason.START_PAGE_UNREACHABLE)
        page_index = self.start_page
        previous_url: Optional[str] = None

        while True:
            self.state = TraversalState.COLLECTING_PAGE
            await self.navigator.ensure_listing(page, listing_url)

            urls = await self.collect_page_urls(page)
            result.pages_visited += 1
            logger.info(f"Found {len(urls)} company URLs on listing page #{page_index}")

            left_listing = False
            for url in urls:
                if url in self.seen:
                    continue
                if self._cap_reached():
                    return self._finish(result, StopReason.MAX_COMPANIES)

                self.seen.add(url)
                self.admitted += 1
                left_listing = True
                logger.info(f"Scraping company {self.admitted}/{self.max_companies}: {url}")
                try:
                    await on_company(url)
                    result.scraped += 1
                except FatalCrawlError:
                    raise
                except Exception as e:
                    result.failed += 1
                    logger.error(f"Failed to scrape {url}: {e}")
                    get_error_logger().log_exception(
                        e,
                        component=ErrorComponent.DETAIL,
                        stage=ErrorStage.FETCH_DETAIL,
                        url=url,
                        metadata={"listing_page": page_index},
                    )

            if self._cap_reached():
                return self._finish(result, StopReason.MAX_COMPANIES)

            # An advance that kept the URL and brought no new companies was a no-op
            if not left_listing and previous_url is not None and same_page(listing_url, previous_url):
                logger.warning(f"Page #{page_index} repeats the previous listing page; stopping")
                get_error_logger().log_error(
                    component=ErrorComponent.PAGINATION,
                    stage=ErrorStage.FIND_NEXT_PAGE,
                    error_type=ErrorType.NAVIGATION_ERROR,
                    message=f"Advancing to page #{page_index} did not change the listing",
                    url=listing_url,
                    severity=ErrorSeverity.WARNING,
                )
                return self._finish(result, StopReason.NO_NEXT_PAGE)

            if left_listing:
                await goto_with_retry(
                    page,
                    listing_url,
                    wait_until="networkidle",
                    timeout_ms=self.nav_timeout_ms,
                    max_retries=self.max_retries,
                )

            self.state = TraversalState.ADVANCING
            target = await self.navigator.find_next(page, page_index)
            if target is None:
                return self._finish(result, StopReason.NO_NEXT_PAGE)

            previous_url = listing_url
            listing_url = await self.navigator.advance(page, target)
            page_index += 1
            logger.info(f"Advanced to listing page #{page_index}: {listing_url}")
            await self._page_delay(page)
