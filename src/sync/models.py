"""Pure data models for the sync engine.

No I/O and no business logic: the matcher, resolver, writer, and
orchestrator import their value types from here.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from blogsync.content.models import ContentRecord, StoreName
from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class ResolutionPolicy(StrEnum):
    """Rule deciding which side of a matched pair is authoritative."""

    A_WINS = "a_wins"
    B_WINS = "b_wins"
    NEWEST_WINS = "newest_wins"


class SyncDirection(StrEnum):
    """Which directions may carry creates in a bidirectional run."""

    BOTH = "both"
    A_TO_B = "a_to_b"
    B_TO_A = "b_to_a"

    def allows(self, source: StoreName) -> bool:
        if self == SyncDirection.BOTH:
            return True
        if self == SyncDirection.A_TO_B:
            return source == StoreName.AIRTABLE
        return source == StoreName.SHEETS


class SyncSettings(BaseModel):
    """Engine settings derived from the [sync] config section."""

    policy: ResolutionPolicy = ResolutionPolicy.NEWEST_WINS
    master_source: StoreName = StoreName.AIRTABLE
    direction: SyncDirection = SyncDirection.BOTH
    batch_size: int = Field(default=10, ge=1)
    inter_batch_delay: float = Field(default=2.0, ge=0)


# ---------------------------------------------------------------------------
# Matching and resolution
# ---------------------------------------------------------------------------


class Pair(BaseModel):
    """Two records from different stores sharing a canonical identity."""

    identity: str
    airtable: ContentRecord
    sheets: ContentRecord


class MatchResult(BaseModel):
    """Total, disjoint partition of two record lists."""

    matched: list[Pair] = Field(default_factory=list)
    left_only: list[ContentRecord] = Field(default_factory=list)
    right_only: list[ContentRecord] = Field(default_factory=list)


class Resolution(BaseModel):
    """Outcome of resolving one pair; the loser's store receives a write."""

    winner: ContentRecord
    loser: ContentRecord
    loser_store: StoreName


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


class OpKind(StrEnum):
    CREATE = "create"
    UPDATE = "update"


class WriteOp(BaseModel):
    """One record to push into a target store."""

    kind: OpKind
    record: ContentRecord
    native_id: str | None = None


class SyncResult(BaseModel):
    """Per-record outcome of a write."""

    success: bool
    record: ContentRecord
    kind: OpKind
    action: str = ""  # "created", "updated", "skipped", "planned", "failed"
    target: StoreName | None = None
    error: str | None = None


class RecordError(BaseModel):
    """A failed write, as persisted in the status file."""

    title: str
    identity: str
    target: StoreName | None = None
    kind: OpKind
    error: str


class SyncPhase(StrEnum):
    """Progress of one orchestrator invocation."""

    FETCHING = "fetching"
    MATCHING = "matching"
    RESOLVING = "resolving"
    WRITING = "writing"
    DONE = "done"


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


class SyncReport(BaseModel):
    """Everything one sync run did."""

    operation: str
    dry_run: bool = False
    phase: SyncPhase = SyncPhase.FETCHING
    started_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    finished_at: datetime | None = None
    airtable_count: int = 0
    sheets_count: int = 0
    airtable_reachable: bool = True
    sheets_reachable: bool = True
    matched: int = 0
    in_sync: int = 0
    left_only: int = 0
    right_only: int = 0
    results: list[SyncResult] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def both_unreachable(self) -> bool:
        return not self.airtable_reachable and not self.sheets_reachable

    def _count(self, action: str, target: StoreName) -> int:
        return sum(1 for r in self.results if r.action == action and r.target == target)

    @property
    def created_a_to_b(self) -> int:
        return self._count("created", StoreName.SHEETS)

    @property
    def created_b_to_a(self) -> int:
        return self._count("created", StoreName.AIRTABLE)

    @property
    def updated_airtable(self) -> int:
        return self._count("updated", StoreName.AIRTABLE)

    @property
    def updated_sheets(self) -> int:
        return self._count("updated", StoreName.SHEETS)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.action == "skipped")

    @property
    def planned(self) -> int:
        return sum(1 for r in self.results if r.action == "planned")

    @property
    def errors(self) -> list[RecordError]:
        return [
            RecordError(
                title=r.record.title,
                identity=r.record.identity,
                target=r.target,
                kind=r.kind,
                error=r.error or "unknown error",
            )
            for r in self.results
            if not r.success
        ]

    def counts(self) -> dict[str, int]:
        return {
            "airtable": self.airtable_count,
            "sheets": self.sheets_count,
            "matched": self.matched,
            "in_sync": self.in_sync,
            "left_only": self.left_only,
            "right_only": self.right_only,
            "created_a_to_b": self.created_a_to_b,
            "created_b_to_a": self.created_b_to_a,
            "updated_airtable": self.updated_airtable,
            "updated_sheets": self.updated_sheets,
            "skipped": self.skipped,
            "planned": self.planned,
            "errors": len(self.errors),
        }

    def summary(self) -> str:
        return (
            f"{self.matched} matched, {self.created_a_to_b} created A→B, "
            f"{self.created_b_to_a} created B→A, {len(self.errors)} errors"
        )


class StatusReport(BaseModel):
    """Fetch-only diff between the two stores."""

    last_check: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    airtable_count: int = 0
    sheets_count: int = 0
    matched: int = 0
    left_only: int = 0
    right_only: int = 0
    sync_recommended: bool = False
    warnings: list[str] = Field(default_factory=list)
