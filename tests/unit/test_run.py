"""
Unit tests for the command-line entry point.
"""

from pathlib import Path

from src.core.error_logger import get_error_logger
from src.crawler import run as run_module
from src.crawler.run import apply_overrides, build_parser


class TestArguments:
    """Flag parsing and config overrides."""

    def test_no_flags_changes_nothing(self, crawl_config):
        args = build_parser().parse_args([])
        before = vars(crawl_config).copy()
        apply_overrides(crawl_config, args)
        assert vars(crawl_config) == before

    def test_overrides(self, crawl_config):
        args = build_parser().parse_args([
            "--max-companies", "5",
            "--start-page", "3",
            "--category", "კაფეები",
            "--output", "out/x.xlsx",
            "--resume",
            "--headed",
        ])
        cfg = apply_overrides(crawl_config, args)
        assert cfg.max_companies == 5
        assert cfg.start_page == 3
        assert cfg.search_category == "კაფეები"
        assert cfg.output_excel_path == Path("out/x.xlsx")
        assert cfg.resume_from_checkpoint is True
        assert cfg.resume_from_existing_excel is True
        assert cfg.headless is False


class TestMain:
    """Exit codes."""

    def test_invalid_config_exits_1(self, crawl_config, monkeypatch):
        crawl_config.email = ""
        monkeypatch.setattr(run_module, "get_config", lambda env_path=None: crawl_config)
        monkeypatch.setattr(run_module, "setup_logging", lambda **kwargs: None)

        def no_browser(cfg):
            raise AssertionError("crawl must not start")

        monkeypatch.setattr(run_module, "crawl", no_browser)
        assert run_module.main([]) == 1

        logged = get_error_logger().read_today()[-1]
        assert logged["stage"] == "validate_config"
        assert logged["error_type"] == "config_error"

    def test_crawl_error_exits_1(self, crawl_config, monkeypatch):
        monkeypatch.setattr(run_module, "get_config", lambda env_path=None: crawl_config)
        monkeypatch.setattr(run_module, "setup_logging", lambda **kwargs: None)

        async def broken(cfg):
            raise RuntimeError("browser failed to launch")

        monkeypatch.setattr(run_module, "crawl", broken)
        assert run_module.main([]) == 1
