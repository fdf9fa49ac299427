"""
Configuration management for the registry crawler.

Settings come from configs/.env (via python-dotenv) or the process
environment. See configs/.env.example for every supported variable.
"""

import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv


_TRUE_VALUES = {"1", "true", "True", "yes"}


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default) in _TRUE_VALUES


class Config:
    """
    Crawler configuration loaded from environment variables.

    Attribute names mirror the external configuration surface
    (base_url, login_url, email, password, max_companies, page_delay_ms,
    detail_delay_ms, checkpoint_every, output_excel_path) plus the
    operational knobs the crawler needs (resume flags, timeouts, paths).
    """

    def __init__(self, env_path: Optional[Path] = None):
        """
        Initialize configuration from environment.

        Args:
            env_path: Path to .env file (default: configs/.env)
        """
        if env_path is None:
            env_path = Path("configs/.env")

        load_dotenv(dotenv_path=env_path, override=True)

        # === Portal ===
        self.base_url: str = os.getenv("BASE_URL", "https://www.bia.ge")
        self.login_url: str = os.getenv(
            "LOGIN_URL", "https://www.bia.ge/Account/Login?ReturnUrl=%2FEN%2Fmybia"
        )
        self.search_category: str = os.getenv("SEARCH_CATEGORY", "რესტორნები, ბარები")

        # === Credentials ===
        self.email: str = os.getenv("BIA_EMAIL", "")
        self.password: str = os.getenv("BIA_PASSWORD", "")

        # === Crawl limits and pacing ===
        self.max_companies: int = int(os.getenv("MAX_COMPANIES", "20"))
        self.start_page: int = int(os.getenv("START_PAGE", "1"))
        self.page_delay_ms: int = int(os.getenv("PAGE_DELAY_MS", "1500"))
        self.detail_delay_ms: int = int(os.getenv("DETAIL_DELAY_MS", "1000"))
        self.checkpoint_every: int = int(os.getenv("CHECKPOINT_EVERY", "100"))
        self.nav_timeout_ms: int = int(os.getenv("NAV_TIMEOUT_MS", "30000"))
        self.max_retries: int = int(os.getenv("MAX_RETRIES", "2"))
        self.headless: bool = _env_bool("HEADLESS", "1")

        # === Output ===
        self.output_excel_path: Path = Path(os.getenv("OUTPUT_EXCEL_PATH", "output/bia_companies.xlsx"))
        self.checkpoint_path: Path = Path(os.getenv("CHECKPOINT_PATH", "output/checkpoint.json"))
        self.resume_from_existing_excel: bool = _env_bool("RESUME_FROM_EXISTING_EXCEL", "0")
        self.resume_from_checkpoint: bool = _env_bool("RESUME_FROM_CHECKPOINT", "0")

        # === Logging ===
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")
        self.log_dir: Path = Path(os.getenv("LOG_DIR", "logs"))
        self.error_log_dir: Path = Path(os.getenv("ERROR_LOG_DIR", "logs/errors"))

    def validate(self) -> None:
        """
        Validate required configuration is present.

        Raises:
            ValueError: If required configuration is missing or invalid
        """
        errors = []

        if not self.email:
            errors.append("BIA_EMAIL is required")
        if not self.password:
            errors.append("BIA_PASSWORD is required")

        for name in ("base_url", "login_url"):
            value = getattr(self, name)
            if not value.startswith(("http://", "https://")):
                errors.append(f"{name.upper()} must be an absolute http(s) URL, got {value!r}")

        if self.max_companies <= 0:
            errors.append(f"MAX_COMPANIES must be positive, got {self.max_companies}")

        if self.start_page < 1:
            errors.append(f"START_PAGE must be >= 1, got {self.start_page}")

        if self.checkpoint_every <= 0:
            errors.append(f"CHECKPOINT_EVERY must be positive, got {self.checkpoint_every}")

        if self.page_delay_ms < 0 or self.detail_delay_ms < 0:
            errors.append("PAGE_DELAY_MS and DETAIL_DELAY_MS must be non-negative")

        if self.nav_timeout_ms <= 0:
            errors.append(f"NAV_TIMEOUT_MS must be positive, got {self.nav_timeout_ms}")

        if self.max_retries < 0:
            errors.append(f"MAX_RETRIES must be non-negative, got {self.max_retries}")

        if errors:
            raise ValueError("Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

    def __repr__(self) -> str:
        """Return string representation of config (without secrets)."""
        return (
            f"Config(\n"
            f"  base_url={self.base_url},\n"
            f"  email={self.email or 'NOT SET'},\n"
            f"  password={'***' if self.password else 'NOT SET'},\n"
            f"  max_companies={self.max_companies},\n"
            f"  start_page={self.start_page},\n"
            f"  checkpoint_every={self.checkpoint_every},\n"
            f"  output_excel_path={self.output_excel_path},\n"
            f"  log_level={self.log_level}\n"
            f")"
        )


# Global configuration instance (lazy-loaded)
_config: Optional[Config] = None


def get_config(env_path: Optional[Path] = None) -> Config:
    """
    Get the global configuration instance.

    Args:
        env_path: Optional path to .env file (only used on first call)

    Returns:
        Global Config instance
    """
    global _config
    if _config is None:
        _config = Config(env_path=env_path)
    return _config


def validate_config(env_path: Optional[Path] = None) -> None:
    """
    Validate configuration and raise error if invalid.

    Call at startup to fail fast before a browser is launched.

    Raises:
        ValueError: If configuration is invalid
    """
    config = get_config(env_path=env_path)
    config.validate()
