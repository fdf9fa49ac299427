"""
Crawl orchestration.

Wires the listing traversal to the detail fetcher and the two sinks:
- one spreadsheet row per record, written as soon as it is parsed
- a full checkpoint snapshot every checkpoint_every successes, and once
  more when the run ends for any reason
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Set

from playwright.async_api import Page

from src.core.config import Config
from src.core.error_logger import get_error_logger
from src.core.error_models import ErrorComponent, ErrorSeverity, ErrorStage
from src.core.exceptions import CheckpointWriteError
from src.core.logging import get_logger
from src.crawler.detail import fetch_business_detail
from src.crawler.listing import ListingTraversal
from src.crawler.url_utils import strip_query_fragment
from src.storage.checkpoint import build_snapshot, load_checkpoint, write_checkpoint
from src.storage.models import BusinessRecord
from src.storage.spreadsheet import SpreadsheetSink, export_businesses

logger = get_logger(__name__)

Fetcher = Callable[..., Awaitable[BusinessRecord]]

# extra_fields key holding the listing URL a record was fetched from
REQUESTED_URL_KEY = "requestedUrl"


def compact_path_for(path: Path) -> Path:
    """bia_companies.xlsx -> bia_companies_compact.xlsx"""
    path = Path(path)
    return path.with_name(f"{path.stem}_compact{path.suffix}")


@dataclass
class CrawlSummary:
    scraped: int
    failed: int
    total_businesses: int
    total_failed_urls: int
    pages_visited: int
    stop_reason: str
    spreadsheet_path: Optional[Path]
    compact_path: Optional[Path]
    checkpoint_path: Path


class CrawlOrchestrator:
    """
    Runs one crawl on a logged-in page.

    Usage:
        >>> orchestrator = CrawlOrchestrator(cfg, page)
        >>> summary = await orchestrator.run()
        >>> summary.scraped, summary.failed
        (20, 0)
    """

    def __init__(
        self,
        cfg: Config,
        page: Page,
        traversal: Optional[ListingTraversal] = None,
        sink: Optional[SpreadsheetSink] = None,
        fetch: Fetcher = fetch_business_detail,
    ):
        self.cfg = cfg
        self.page = page
        self.traversal = traversal
        self.sink = sink or SpreadsheetSink()
        self.fetch = fetch

        self.businesses: List[BusinessRecord] = []
        self.failed_urls: List[str] = []
        self.successes = 0
        self.collected: Set[str] = set()

    # ---------------- Resume ----------------

    def restore(self) -> Set[str]:
        """
        Reload accumulators from the last checkpoint when resuming.

        Returns:
            Listing and profile URLs already collected, normalized the way
            the traversal normalizes hrefs, to be skipped by the traversal.
            Previously failed URLs are not included so they get retried.
        """
        if not self.cfg.resume_from_checkpoint:
            return set()
        snapshot = load_checkpoint(self.cfg.checkpoint_path)
        if snapshot is None:
            logger.info("No usable checkpoint found, starting fresh")
            return set()
        self.businesses = list(snapshot.businesses)
        self.failed_urls = list(snapshot.failed_urls)
        self.collected = {strip_query_fragment(b.profile_url) for b in self.businesses}
        seen = set(self.collected)
        for b in self.businesses:
            requested = b.extra_fields.get(REQUESTED_URL_KEY)
            if requested:
                seen.add(strip_query_fragment(requested))
        logger.info(f"Resumed {len(self.businesses)} businesses, {len(self.failed_urls)} failed URLs")
        return seen

    # ---------------- Persistence ----------------

    def flush(self) -> Path:
        """
        Write a full checkpoint snapshot.

        Raises:
            CheckpointWriteError: If the snapshot cannot be written
        """
        snapshot = build_snapshot(self.businesses, self.failed_urls)
        try:
            return write_checkpoint(snapshot, self.cfg.checkpoint_path)
        except OSError as e:
            get_error_logger().log_exception(
                e,
                component=ErrorComponent.STORAGE,
                stage=ErrorStage.WRITE_CHECKPOINT,
                severity=ErrorSeverity.CRITICAL,
                metadata={"path": str(self.cfg.checkpoint_path)},
            )
            raise CheckpointWriteError(f"Checkpoint write failed: {e}") from e

    def _append_row(self, record: BusinessRecord) -> None:
        try:
            self.sink.append_record(record)
        except Exception as e:
            # The record stays in the checkpoint; only the row is lost.
            logger.error(f"Spreadsheet append failed for {record.profile_url}: {e}")
            get_error_logger().log_exception(
                e,
                component=ErrorComponent.STORAGE,
                stage=ErrorStage.WRITE_SPREADSHEET,
                url=record.profile_url,
            )

    # ---------------- Per-company callback ----------------

    async def on_company(self, url: str) -> None:
        """
        Fetch, store and pace one company.

        A fetch failure records the URL and re-raises so the traversal can
        count it. A record whose profile URL is already collected is not
        stored again.
        """
        try:
            record = await self.fetch(
                self.page,
                url,
                nav_timeout_ms=self.cfg.nav_timeout_ms,
                max_retries=self.cfg.max_retries,
            )
        except Exception:
            if url not in self.failed_urls:
                self.failed_urls.append(url)
            raise

        if url in self.failed_urls:
            self.failed_urls.remove(url)

        profile = strip_query_fragment(record.profile_url)
        duplicate = profile in self.collected
        if duplicate:
            logger.info(f"Skipping {url}: {record.profile_url} already collected")
        else:
            self.collected.add(profile)
            if record.profile_url != url:
                record.extra_fields[REQUESTED_URL_KEY] = url
            self.businesses.append(record)
            self._append_row(record)

        if self.cfg.detail_delay_ms > 0:
            await self.page.wait_for_timeout(self.cfg.detail_delay_ms)

        if duplicate:
            return
        self.successes += 1
        if self.successes % self.cfg.checkpoint_every == 0:
            self.flush()

    # ---------------- Run ----------------

    async def run(self) -> CrawlSummary:
        """
        Run the crawl to completion.

        The final checkpoint is written on every exit path. If the crawl
        itself failed, that error propagates after the checkpoint attempt.
        """
        seen = self.restore()
        spreadsheet_path = self.sink.initialize(
            self.cfg.output_excel_path, resume=self.cfg.resume_from_existing_excel
        )
        traversal = self.traversal or ListingTraversal.from_config(self.cfg, seen_urls=seen)
        if self.traversal is not None:
            traversal.seen.update(seen)

        crashed = False
        try:
            result = await traversal.run(self.page, self.on_company)
        except Exception as e:
            crashed = True
            logger.error(f"Crawl aborted: {e}")
            get_error_logger().log_exception(
                e,
                component=ErrorComponent.LISTING,
                stage=ErrorStage.CRAWL,
                url=getattr(self.page, "url", None),
                severity=ErrorSeverity.CRITICAL,
            )
            raise
        finally:
            try:
                self.flush()
            except CheckpointWriteError as e:
                logger.error(f"Final checkpoint failed: {e}")
                if not crashed:
                    raise

        compact = None
        try:
            compact = export_businesses(self.businesses, compact_path_for(self.cfg.output_excel_path))
        except Exception as e:
            logger.error(f"Compact spreadsheet export failed: {e}")
            get_error_logger().log_exception(
                e, component=ErrorComponent.STORAGE, stage=ErrorStage.WRITE_SPREADSHEET
            )

        summary = CrawlSummary(
            scraped=result.scraped,
            failed=result.failed,
            total_businesses=len(self.businesses),
            total_failed_urls=len(self.failed_urls),
            pages_visited=result.pages_visited,
            stop_reason=result.stop_reason,
            spreadsheet_path=spreadsheet_path,
            compact_path=compact,
            checkpoint_path=self.cfg.checkpoint_path,
        )
        logger.info(
            f"Scraping finished. Success: {summary.scraped}, Failed: {summary.failed} "
            f"(stop: {summary.stop_reason})"
        )
        return summary
