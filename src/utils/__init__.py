"""
Shared utility functions for the registry crawler.

- Retry logic with exponential backoff
"""

from src.utils.retry import retry_async, RetryConfig

__all__ = [
    "retry_async",
    "RetryConfig",
]
