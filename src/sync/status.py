"""Last-run status document.

A single JSON file, overwritten after every sync run, for operators and
the scheduler.  Sync logic never reads it back: the two stores are the
only source of truth.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from blogsync.sync.models import RecordError, SyncReport
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_STATUS_PATH = Path("logs") / "sync-status.json"


class SyncStatus(BaseModel):
    """Persisted outcome of the most recent run."""

    last_sync: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    operation: str = ""
    dry_run: bool = False
    summary: str = ""
    counts: dict[str, int] = Field(default_factory=dict)
    errors: list[RecordError] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: SyncReport) -> SyncStatus:
        return cls(
            last_sync=report.finished_at or datetime.now(tz=UTC),
            operation=report.operation,
            dry_run=report.dry_run,
            summary=report.summary(),
            counts=report.counts(),
            errors=report.errors,
            warnings=list(report.warnings),
        )


def load_sync_status(path: Path) -> SyncStatus | None:
    """Load the status file.

    Returns None if the file doesn't exist or is corrupt.
    """
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return SyncStatus.model_validate(data)
    except (json.JSONDecodeError, ValueError, KeyError):
        logger.warning("Corrupt sync status at %s, ignoring", path)
        return None


def save_sync_status(status: SyncStatus, path: Path) -> None:
    """Overwrite the status file with *status*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(status.model_dump_json(indent=2), encoding="utf-8")
