"""
Pydantic models for structured error logging.

Recoverable anomalies (failed detail fetches, navigation drift, exhausted
cascades) are written as ErrorRecord lines so a long crawl can be diagnosed
afterwards without re-running it.
"""

import json
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator, ConfigDict


class ErrorComponent(str, Enum):
    """Crawler components that can report errors."""
    AUTH = "auth"
    LISTING = "listing"
    PAGINATION = "pagination"
    DETAIL = "detail"
    STORAGE = "storage"
    CONFIG = "config"
    UNKNOWN = "unknown"


class ErrorSeverity(str, Enum):
    """Error severity levels matching logging standards."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorType(str, Enum):
    """Categorized error types used for classification."""
    # Browser / navigation
    TIMEOUT = "timeout"
    NAVIGATION_ERROR = "navigation_error"
    NAVIGATION_DRIFT = "navigation_drift"
    BROWSER_ERROR = "browser_error"
    ELEMENT_NOT_FOUND = "element_not_found"

    # Parsing
    PARSE_ERROR = "parse_error"

    # Persistence
    FILE_ERROR = "file_error"
    JSON_ERROR = "json_error"

    # Configuration
    CONFIG_ERROR = "config_error"

    UNKNOWN = "unknown"


class ErrorStage:
    """
    Standardized stage names for error logging.

    Use these constants to keep stage names consistent across modules.
    """
    # Auth
    LOGIN = "login"

    # Listing traversal
    CRAWL = "crawl"
    APPLY_FILTER = "apply_filter"
    COLLECT_LINKS = "collect_links"
    ENSURE_LISTING = "ensure_listing"
    FIND_NEXT_PAGE = "find_next_page"
    ADVANCE_PAGE = "advance_page"
    SKIP_TO_START_PAGE = "skip_to_start_page"

    # Detail
    FETCH_DETAIL = "fetch_detail"
    PARSE_DETAIL = "parse_detail"

    # Storage
    WRITE_CHECKPOINT = "write_checkpoint"
    LOAD_CHECKPOINT = "load_checkpoint"
    WRITE_SPREADSHEET = "write_spreadsheet"

    # Config
    VALIDATE_CONFIG = "validate_config"


class ErrorRecord(BaseModel):
    """
    Structured error record, one JSON line per anomaly.
    """
    component: ErrorComponent = Field(..., description="Crawler component")
    stage: str = Field(..., min_length=1, max_length=100, description="Processing stage")
    error_type: ErrorType = Field(..., description="Error category")
    severity: ErrorSeverity = Field(default=ErrorSeverity.ERROR, description="Severity level")
    message: str = Field(..., min_length=1, description="Human-readable error message")

    url: Optional[str] = Field(None, max_length=2048, description="URL being processed")
    exception_type: Optional[str] = Field(None, max_length=255, description="Exception class name")
    stack_trace: Optional[str] = Field(None, description="Stack trace for unexpected errors")

    metadata: Dict[str, Any] = Field(default_factory=dict, description="Additional context")

    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="Error timestamp"
    )

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        use_enum_values=True,
    )

    @field_validator("stage")
    @classmethod
    def validate_stage(cls, v: str) -> str:
        """Normalize stage names to snake_case."""
        if not v or not v.strip():
            return "unknown"
        return v.strip().lower().replace(" ", "_")

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        if not v or not v.strip():
            return "No error message provided"
        return v.strip()[:5000]

    @field_validator("metadata")
    @classmethod
    def sanitize_metadata(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        """Stringify any metadata value that is not JSON-serializable."""
        sanitized = {}
        for key, value in v.items():
            try:
                json.dumps(value)
                sanitized[key] = value
            except (TypeError, ValueError):
                sanitized[key] = str(value)
        return sanitized

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        component: ErrorComponent,
        stage: str,
        url: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        error_type: Optional[ErrorType] = None,
        include_stack_trace: Optional[bool] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ErrorRecord":
        """
        Create an ErrorRecord from an exception with automatic classification.

        Args:
            exc: The exception that occurred
            component: Component where it occurred
            stage: Processing stage (see ErrorStage)
            url: URL being processed, if any
            severity: Error severity (default: ERROR)
            error_type: Explicit error type (auto-detected if None)
            include_stack_trace: Whether to include the stack (auto if None)
            metadata: Additional context

        Example:
            >>> try:
            ...     await page.goto(url)
            ... except Exception as e:
            ...     record = ErrorRecord.from_exception(
            ...         e, component=ErrorComponent.DETAIL,
            ...         stage=ErrorStage.FETCH_DETAIL, url=url,
            ...     )
        """
        if error_type is None:
            error_type = cls._classify_exception(exc)

        message = str(exc) or f"{type(exc).__name__} occurred"
        exception_type = f"{type(exc).__module__}.{type(exc).__name__}"

        if include_stack_trace is None:
            include_stack_trace = cls._should_include_stack(exc, severity)

        stack_trace = None
        if include_stack_trace:
            stack_trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            if len(stack_trace) > 10000:
                stack_trace = stack_trace[:10000] + "\n... (truncated)"

        return cls(
            component=component,
            stage=stage,
            error_type=error_type,
            severity=severity,
            url=url,
            message=message,
            exception_type=exception_type,
            stack_trace=stack_trace,
            metadata=metadata or {},
        )

    @staticmethod
    def _classify_exception(exc: Exception) -> ErrorType:
        """Map an exception onto an ErrorType by class name, module and message."""
        exc_name = type(exc).__name__.lower()
        exc_module = type(exc).__module__.lower()
        exc_msg = str(exc).lower()

        if "timeout" in exc_name or "timeout" in exc_msg:
            return ErrorType.TIMEOUT
        if "net::" in exc_msg or "navigat" in exc_msg:
            return ErrorType.NAVIGATION_ERROR
        if "selector" in exc_msg or "element" in exc_name:
            return ErrorType.ELEMENT_NOT_FOUND
        if "playwright" in exc_module or "browser" in exc_name or "target closed" in exc_msg:
            return ErrorType.BROWSER_ERROR
        if "json" in exc_name:
            return ErrorType.JSON_ERROR
        if "parse" in exc_name:
            return ErrorType.PARSE_ERROR
        if isinstance(exc, OSError):
            return ErrorType.FILE_ERROR

        return ErrorType.UNKNOWN

    @staticmethod
    def _should_include_stack(exc: Exception, severity: ErrorSeverity) -> bool:
        """Expected failures (timeouts, missing files) don't need a stack."""
        if severity == ErrorSeverity.CRITICAL:
            return True

        if severity in (ErrorSeverity.WARNING, ErrorSeverity.INFO, ErrorSeverity.DEBUG):
            return False

        expected = (
            "TimeoutError",
            "FileNotFoundError",
            "KeyError",
            "ValueError",
        )
        return type(exc).__name__ not in expected
