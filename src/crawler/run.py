"""
Command-line entry point.

    python -m src.crawler.run [--max-companies N] [--start-page N] [--headed] ...

Settings come from configs/.env; flags override them for one run.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from src.core.config import Config, get_config
from src.core.error_logger import configure_error_logger, get_error_logger
from src.core.error_models import ErrorComponent, ErrorSeverity, ErrorStage, ErrorType
from src.core.logging import get_logger, setup_logging
from src.crawler.auth import login
from src.crawler.orchestrator import CrawlOrchestrator, CrawlSummary
from src.crawler.session import browser_session

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Crawl bia.ge company pages into a spreadsheet and JSON checkpoint.")
    ap.add_argument("--env", type=Path, default=None, help="Path to .env file (default: configs/.env)")
    ap.add_argument("--max-companies", type=int, help="Cap on unique company pages this run")
    ap.add_argument("--start-page", type=int, help="Listing page to start collecting from")
    ap.add_argument("--category", help="Activity category to search for")
    ap.add_argument("--output", type=Path, help="Spreadsheet path")
    ap.add_argument("--checkpoint", type=Path, help="Checkpoint JSON path")
    ap.add_argument("--resume", action="store_true", help="Resume from the checkpoint and existing spreadsheet")
    ap.add_argument("--headed", action="store_true", help="Show the browser window")
    ap.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR")
    return ap


def apply_overrides(cfg: Config, args: argparse.Namespace) -> Config:
    """Copy explicitly given CLI flags onto the config."""
    if args.max_companies is not None:
        cfg.max_companies = args.max_companies
    if args.start_page is not None:
        cfg.start_page = args.start_page
    if args.category:
        cfg.search_category = args.category
    if args.output:
        cfg.output_excel_path = args.output
    if args.checkpoint:
        cfg.checkpoint_path = args.checkpoint
    if args.resume:
        cfg.resume_from_checkpoint = True
        cfg.resume_from_existing_excel = True
    if args.headed:
        cfg.headless = False
    if args.log_level:
        cfg.log_level = args.log_level
    return cfg


async def crawl(cfg: Config) -> CrawlSummary:
    """Open a browser, log in and run one crawl."""
    async with browser_session(headless=cfg.headless, nav_timeout_ms=cfg.nav_timeout_ms) as page:
        await login(page, cfg)
        return await CrawlOrchestrator(cfg, page).run()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = apply_overrides(get_config(env_path=args.env), args)

    setup_logging(level=cfg.log_level, log_dir=str(cfg.log_dir))
    configure_error_logger(cfg.error_log_dir)

    try:
        cfg.validate()
    except ValueError as e:
        logger.error(str(e))
        get_error_logger().log_error(
            component=ErrorComponent.CONFIG,
            stage=ErrorStage.VALIDATE_CONFIG,
            error_type=ErrorType.CONFIG_ERROR,
            message=str(e),
            severity=ErrorSeverity.CRITICAL,
        )
        return 1

    logger.info("Starting BIA.ge scraper...")
    logger.info(repr(cfg))

    try:
        summary = asyncio.run(crawl(cfg))
    except KeyboardInterrupt:
        logger.warning("KeyboardInterrupt - stopping crawl")
        return 1
    except Exception as e:
        logger.exception(f"Fatal error in scraper: {e}")
        return 1

    logger.info(
        f"Scraping finished. Success: {summary.scraped}, Failed: {summary.failed}, "
        f"pages visited: {summary.pages_visited}, stop reason: {summary.stop_reason}"
    )
    logger.info(f"Excel file saved incrementally to: {summary.spreadsheet_path}")
    if summary.compact_path:
        logger.info(f"Compact export: {summary.compact_path}")
    logger.info(f"Checkpoint: {summary.checkpoint_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
