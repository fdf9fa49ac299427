"""
Exceptions that end a crawl.

Per-record problems are logged and counted where they happen; only the
errors below are allowed to escape the traversal callback boundary.
"""


class FatalCrawlError(Exception):
    """The run cannot continue (lost session, checkpoint not writable)."""


class CheckpointWriteError(FatalCrawlError):
    """A checkpoint snapshot could not be written."""
