"""
Storage for scraped records.

- models: pydantic models for records and checkpoint snapshots
- checkpoint: JSON snapshot writer / loader
- spreadsheet: incremental and compact .xlsx output (loaded lazily; it
  depends on src.parsing, which itself imports the models)
"""

from src.storage.models import (
    BusinessRecord,
    ContactPerson,
    GenderDistribution,
    CheckpointSnapshot,
)
from src.storage.checkpoint import build_snapshot, write_checkpoint, load_checkpoint


def __getattr__(name):
    """Lazy loading for the spreadsheet writer."""
    if name in ("SpreadsheetSink", "export_businesses"):
        from src.storage.spreadsheet import SpreadsheetSink, export_businesses
        return {
            "SpreadsheetSink": SpreadsheetSink,
            "export_businesses": export_businesses,
        }[name]

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "BusinessRecord",
    "ContactPerson",
    "GenderDistribution",
    "CheckpointSnapshot",
    "build_snapshot",
    "write_checkpoint",
    "load_checkpoint",
    "SpreadsheetSink",
    "export_businesses",
]
