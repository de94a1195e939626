"""Sync orchestrator: one-way sync, bidirectional sync, and status.

One invocation moves through FETCHING → MATCHING → RESOLVING → WRITING →
DONE.  Only fetching may partially fail: a store that cannot be read is
treated as empty for the run and reported as a warning, so the healthy
store is still processed.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime

from blogsync.content.models import ContentRecord, StoreName
from blogsync.stores.base import ContentStoreAdapter
from blogsync.sync.matcher import match_records
from blogsync.sync.models import (
    OpKind,
    StatusReport,
    SyncPhase,
    SyncReport,
    SyncResult,
    SyncSettings,
    WriteOp,
)
from blogsync.sync.resolver import resolve_conflict
from blogsync.sync.writer import BatchSyncWriter, BatchUnreachable

logger = logging.getLogger(__name__)


class SyncOrchestrator:
    """Compose adapters, matcher, resolver, and writer into sync runs."""

    def __init__(
        self,
        airtable: ContentStoreAdapter,
        sheets: ContentStoreAdapter,
        settings: SyncSettings | None = None,
        writer: BatchSyncWriter | None = None,
    ) -> None:
        self.airtable = airtable
        self.sheets = sheets
        self.settings = settings or SyncSettings()
        self.writer = writer or BatchSyncWriter(
            batch_size=self.settings.batch_size,
            inter_batch_delay=self.settings.inter_batch_delay,
        )

    def store(self, name: StoreName | str) -> ContentStoreAdapter:
        return self.airtable if StoreName(name) == StoreName.AIRTABLE else self.sheets

    # ── Fetching ─────────────────────────────────────────────────

    async def _safe_fetch(self, store: ContentStoreAdapter) -> list[ContentRecord] | None:
        """Fetch all records; None means the store could not be read."""
        try:
            return await store.fetch_all()
        except Exception:
            logger.warning("%s fetch failed, treating as empty", store.name, exc_info=True)
            return None

    async def _fetch_both(
        self, report: SyncReport | StatusReport
    ) -> tuple[list[ContentRecord], list[ContentRecord], bool, bool]:
        a_records, b_records = await asyncio.gather(
            self._safe_fetch(self.airtable),
            self._safe_fetch(self.sheets),
        )
        a_ok, b_ok = a_records is not None, b_records is not None
        if not a_ok:
            report.warnings.append("Airtable unreachable: treated as empty for this run")
        if not b_ok:
            report.warnings.append("Google Sheets unreachable: treated as empty for this run")
        a_records, b_records = a_records or [], b_records or []
        report.airtable_count = len(a_records)
        report.sheets_count = len(b_records)
        logger.info(
            "Found %d posts in Airtable, %d in Google Sheets", len(a_records), len(b_records)
        )
        return a_records, b_records, a_ok, b_ok

    # ── Writing ──────────────────────────────────────────────────

    async def _push(
        self,
        report: SyncReport,
        target: ContentStoreAdapter,
        ops: list[WriteOp],
        dry_run: bool,
    ) -> None:
        if not ops:
            return
        if dry_run:
            for op in ops:
                logger.info("Would %s in %s: %s", op.kind, target.name, op.record.title)
                report.results.append(
                    SyncResult(
                        success=True,
                        record=op.record,
                        kind=op.kind,
                        action="planned",
                        target=target.name,
                    )
                )
            return
        try:
            report.results.extend(await self.writer.write(target, ops))
        except BatchUnreachable as exc:
            # The other direction's results remain valid; record what we have.
            report.results.extend(exc.results)
            report.warnings.append(f"Writes to {target.name} aborted: {exc}")
            logger.error("Writes to %s aborted: %s", target.name, exc)

    # ── Public operations ────────────────────────────────────────

    async def sync_one_way(
        self,
        source: StoreName | str,
        target: StoreName | str,
        dry_run: bool = False,
    ) -> SyncReport:
        """Create every *source* record missing from *target*; update nothing."""
        source_store, target_store = self.store(source), self.store(target)
        if source_store is target_store:
            raise ValueError("source and target must be different stores")

        report = SyncReport(operation=f"{source_store.name}-to-{target_store.name}", dry_run=dry_run)
        logger.info("One-way sync: %s → %s", source_store.name, target_store.name)

        records = await self._safe_fetch(source_store)
        if records is None:
            report.warnings.append(f"{source_store.name} unreachable: nothing to sync")
            if source_store.name == StoreName.AIRTABLE:
                report.airtable_reachable = False
            else:
                report.sheets_reachable = False
            records = []
        if source_store.name == StoreName.AIRTABLE:
            report.airtable_count = len(records)
            report.left_only = len(records)
        else:
            report.sheets_count = len(records)
            report.right_only = len(records)

        report.phase = SyncPhase.WRITING
        ops = [WriteOp(kind=OpKind.CREATE, record=r) for r in records]
        await self._push(report, target_store, ops, dry_run)
        return self._finish(report)

    async def sync_bidirectional(self, dry_run: bool = False) -> SyncReport:
        """Reconcile both stores.

        Matched pairs whose content differs are resolved and the loser's
        store is updated; unmatched records are created on the other side
        when the configured direction allows it.  Pair updates are written
        before creates.
        """
        report = SyncReport(operation="bidirectional", dry_run=dry_run)
        logger.info(
            "Starting bidirectional sync (policy=%s, direction=%s, dry_run=%s)",
            self.settings.policy,
            self.settings.direction,
            dry_run,
        )

        report.phase = SyncPhase.FETCHING
        a_records, b_records, a_ok, b_ok = await self._fetch_both(report)
        report.airtable_reachable, report.sheets_reachable = a_ok, b_ok

        report.phase = SyncPhase.MATCHING
        match = match_records(a_records, b_records)
        report.matched = len(match.matched)
        report.left_only = len(match.left_only)
        report.right_only = len(match.right_only)

        report.phase = SyncPhase.RESOLVING
        updates: dict[StoreName, list[WriteOp]] = {StoreName.AIRTABLE: [], StoreName.SHEETS: []}
        for pair in match.matched:
            if pair.airtable.payload_equals(pair.sheets):
                report.in_sync += 1
                continue
            resolution = resolve_conflict(pair, self.settings.policy, self.settings.master_source)
            logger.info(
                "Conflict for %r: %s wins",
                resolution.winner.title,
                resolution.winner.source_store,
            )
            updates[resolution.loser_store].append(
                WriteOp(
                    kind=OpKind.UPDATE,
                    record=resolution.winner.filled_from(resolution.loser),
                    native_id=resolution.loser.source_native_id,
                )
            )

        report.phase = SyncPhase.WRITING
        await self._push(report, self.sheets, updates[StoreName.SHEETS], dry_run)
        await self._push(report, self.airtable, updates[StoreName.AIRTABLE], dry_run)

        direction = self.settings.direction
        if direction.allows(StoreName.AIRTABLE):
            creates = [WriteOp(kind=OpKind.CREATE, record=r) for r in match.left_only]
            await self._push(report, self.sheets, creates, dry_run)
        elif match.left_only:
            logger.info("Direction %s: not creating %d posts in Sheets", direction, len(match.left_only))
        if direction.allows(StoreName.SHEETS):
            creates = [WriteOp(kind=OpKind.CREATE, record=r) for r in match.right_only]
            await self._push(report, self.airtable, creates, dry_run)
        elif match.right_only:
            logger.info("Direction %s: not creating %d posts in Airtable", direction, len(match.right_only))

        return self._finish(report)

    async def get_status(self) -> StatusReport:
        """Fetch both stores and report how far apart they are; writes nothing."""
        report = StatusReport()
        a_records, b_records, _, _ = await self._fetch_both(report)
        match = match_records(a_records, b_records)
        report.matched = len(match.matched)
        report.left_only = len(match.left_only)
        report.right_only = len(match.right_only)
        report.sync_recommended = bool(match.left_only or match.right_only)
        return report

    def _finish(self, report: SyncReport) -> SyncReport:
        report.phase = SyncPhase.DONE
        report.finished_at = datetime.now(tz=UTC)
        logger.info("Sync complete: %s", report.summary())
        for error in report.errors:
            logger.warning("  - %s (%s): %s", error.title, error.target, error.error)
        return report
