"""
Core utilities for the registry crawler.

Shared by every component:
- Configuration management
- Logging setup
- Structured error records and the JSONL error log
- Exceptions that abort a crawl
"""

from src.core.logging import get_logger, setup_logging
from src.core.config import get_config, validate_config, Config
from src.core.error_logger import get_error_logger, configure_error_logger
from src.core.exceptions import FatalCrawlError, CheckpointWriteError
from src.core.error_models import (
    ErrorComponent,
    ErrorSeverity,
    ErrorType,
    ErrorStage,
    ErrorRecord,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "get_config",
    "validate_config",
    "Config",
    "get_error_logger",
    "configure_error_logger",
    "FatalCrawlError",
    "CheckpointWriteError",
    "ErrorComponent",
    "ErrorSeverity",
    "ErrorType",
    "ErrorStage",
    "ErrorRecord",
]
