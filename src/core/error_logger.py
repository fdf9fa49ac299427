"""
Structured error log for recoverable crawl anomalies.

Each anomaly is validated as an ErrorRecord and appended as one JSON line
to logs/errors/errors_YYYYMMDD.jsonl. Writing an error record never raises:
if the write itself fails, the standard logger gets the message instead.
"""

import json
from pathlib import Path
from typing import Optional, Dict, Any, List
from datetime import datetime, timezone

from src.core.logging import get_logger
from src.core.error_models import (
    ErrorRecord,
    ErrorComponent,
    ErrorSeverity,
    ErrorType,
)

logger = get_logger(__name__)

DEFAULT_ERROR_LOG_DIR = Path("logs/errors")

# Singleton instance
_error_logger: Optional["ErrorLogger"] = None


class ErrorLogger:
    """
    JSONL error logger.

    Usage:
        >>> error_logger = get_error_logger()
        >>> error_logger.log_error(
        ...     component=ErrorComponent.PAGINATION,
        ...     stage=ErrorStage.ENSURE_LISTING,
        ...     error_type=ErrorType.NAVIGATION_DRIFT,
        ...     message="Listing URL drifted, re-navigating",
        ...     url="https://www.bia.ge/Company/AdvancedSearch?page=3",
        ... )
    """

    def __init__(self, log_dir: Optional[Path] = None):
        self._log_dir = Path(log_dir) if log_dir else DEFAULT_ERROR_LOG_DIR
        self._log_dir.mkdir(exist_ok=True, parents=True)

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def log_error(
        self,
        component: ErrorComponent,
        stage: str,
        error_type: ErrorType,
        message: str,
        url: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Record an anomaly that was not raised as an exception.

        Returns:
            True if the record was written, False otherwise
        """
        try:
            record = ErrorRecord(
                component=component,
                stage=stage,
                error_type=error_type,
                severity=severity,
                url=url,
                message=message,
                metadata=metadata or {},
            )
            return self._write(record)
        except Exception as e:
            logger.error(f"Error logger failed: {e} - Original error: {message}")
            return False

    def log_exception(
        self,
        exc: Exception,
        component: ErrorComponent,
        stage: str,
        url: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        error_type: Optional[ErrorType] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Record a caught exception, classifying it automatically.

        Example:
            >>> try:
            ...     await fetch_business_detail(page, url)
            ... except Exception as e:
            ...     get_error_logger().log_exception(
            ...         e,
            ...         component=ErrorComponent.DETAIL,
            ...         stage=ErrorStage.FETCH_DETAIL,
            ...         url=url,
            ...     )
        """
        try:
            record = ErrorRecord.from_exception(
                exc=exc,
                component=component,
                stage=stage,
                url=url,
                severity=severity,
                error_type=error_type,
                metadata=metadata,
            )
            return self._write(record)
        except Exception as e:
            logger.error(f"Error logger failed: {e} - Original exception: {type(exc).__name__}")
            return False

    def _current_file(self) -> Path:
        date_str = datetime.now(timezone.utc).strftime("%Y%m%d")
        return self._log_dir / f"errors_{date_str}.jsonl"

    def _write(self, record: ErrorRecord) -> bool:
        try:
            with open(self._current_file(), "a", encoding="utf-8") as f:
                json.dump(record.model_dump(), f, ensure_ascii=False)
                f.write("\n")
            return True
        except OSError as e:
            logger.error(f"Error log write failed: {e}")
            return False

    def read_today(self) -> List[Dict[str, Any]]:
        """Return today's records, skipping lines that fail to parse."""
        path = self._current_file()
        if not path.exists():
            return []
        out: List[Dict[str, Any]] = []
        for line in path.read_text("utf-8").splitlines():
            if not line.strip():
                continue
            try:
                out.append(json.loads(line))
            except json.JSONDecodeError:
                continue
        return out


def configure_error_logger(log_dir: Path) -> ErrorLogger:
    """Replace the global ErrorLogger with one writing under log_dir."""
    global _error_logger
    _error_logger = ErrorLogger(log_dir=log_dir)
    return _error_logger


def get_error_logger() -> ErrorLogger:
    """
    Get the global ErrorLogger instance.

    Returns:
        Global ErrorLogger singleton
    """
    global _error_logger
    if _error_logger is None:
        _error_logger = ErrorLogger()
    return _error_logger
