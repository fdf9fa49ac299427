"""
Checkpoint snapshots of crawl progress.

A snapshot holds every record collected so far plus the failed URLs. The
file is rewritten in full on each flush, so the latest file is always a
complete, self-contained view of the run.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from src.core.error_logger import get_error_logger
from src.core.error_models import ErrorComponent, ErrorSeverity, ErrorStage
from src.core.logging import get_logger
from src.storage.models import BusinessRecord, CheckpointSnapshot

logger = get_logger(__name__)


def build_snapshot(
    businesses: Iterable[BusinessRecord],
    failed_urls: Iterable[str],
    generated_at: Optional[str] = None
) -> CheckpointSnapshot:
    """
    Build a snapshot from the current accumulators.

    The inputs are copied; later changes to the caller's lists do not show
    up in the snapshot.

    Args:
        businesses: Records collected so far
        failed_urls: URLs whose detail fetch failed
        generated_at: ISO timestamp (defaults to now, UTC)
    """
    records = list(businesses)
    failed = list(failed_urls)
    return CheckpointSnapshot(
        generated_at=generated_at or datetime.now(timezone.utc).isoformat(),
        count=len(records),
        failed_count=len(failed),
        businesses=records,
        failed_urls=failed,
    )


def write_checkpoint(snapshot: CheckpointSnapshot, path: Path) -> Path:
    """
    Write a snapshot to path, replacing any previous file.

    Raises:
        OSError: If the file cannot be written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(snapshot.to_json_dict(), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    logger.info(
        f"Checkpoint written to {path} "
        f"(businesses={snapshot.count}, failed={snapshot.failed_count})"
    )
    return path


def load_checkpoint(path: Path) -> Optional[CheckpointSnapshot]:
    """
    Load a previously written snapshot.

    Returns:
        The snapshot, or None if the file is missing or unreadable
    """
    path = Path(path)
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        snapshot = CheckpointSnapshot.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Ignoring unreadable checkpoint {path}: {e}")
        get_error_logger().log_exception(
            e,
            component=ErrorComponent.STORAGE,
            stage=ErrorStage.LOAD_CHECKPOINT,
            severity=ErrorSeverity.WARNING,
            metadata={"path": str(path)},
        )
        return None
    logger.info(
        f"Loaded checkpoint from {snapshot.generated_at}: "
        f"{snapshot.count} businesses, {snapshot.failed_count} failed"
    )
    return snapshot
