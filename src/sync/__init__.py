"""Bidirectional sync engine: matcher, resolver, batch writer, orchestrator."""

from blogsync.sync.matcher import match_records
from blogsync.sync.models import (
    MatchResult,
    OpKind,
    Pair,
    Resolution,
    ResolutionPolicy,
    StatusReport,
    SyncDirection,
    SyncPhase,
    SyncReport,
    SyncResult,
    SyncSettings,
    WriteOp,
)
from blogsync.sync.orchestrator import SyncOrchestrator
from blogsync.sync.resolver import resolve_conflict
from blogsync.sync.status import SyncStatus, load_sync_status, save_sync_status
from blogsync.sync.writer import BatchSyncWriter, BatchUnreachable

__all__ = [
    "BatchSyncWriter",
    "BatchUnreachable",
    "MatchResult",
    "OpKind",
    "Pair",
    "Resolution",
    "ResolutionPolicy",
    "StatusReport",
    "SyncDirection",
    "SyncOrchestrator",
    "SyncPhase",
    "SyncReport",
    "SyncResult",
    "SyncSettings",
    "SyncStatus",
    "WriteOp",
    "load_sync_status",
    "match_records",
    "resolve_conflict",
    "save_sync_status",
]
