"""Rate-limited batch writer.

Applies CREATE/UPDATE operations to one target store in fixed-size
batches.  Every record is attempted on its own: a failure is captured
in that record's SyncResult and the run carries on.  Creates go through
an identity gate first, so re-running after a partial failure does not
duplicate posts.
"""

from __future__ import annotations

import asyncio
import logging

from blogsync.errors import ConfigurationMissing, RecordWriteFailed, StoreUnreachable
from blogsync.stores.base import ContentStoreAdapter
from blogsync.sync.models import OpKind, SyncResult, WriteOp

logger = logging.getLogger(__name__)

_UNREACHABLE = (StoreUnreachable, ConfigurationMissing)


class BatchUnreachable(StoreUnreachable):
    """Every write in a batch failed because the target could not be reached.

    Carries the results collected before (and including) the failed batch.
    """

    def __init__(self, store: str, message: str, results: list[SyncResult]) -> None:
        super().__init__(store, message)
        self.results = results


class BatchSyncWriter:
    """Push records into a store, batch by batch."""

    def __init__(self, batch_size: int = 10, inter_batch_delay: float = 2.0) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.batch_size = batch_size
        self.inter_batch_delay = inter_batch_delay

    async def write(self, target: ContentStoreAdapter, ops: list[WriteOp]) -> list[SyncResult]:
        """Apply *ops* to *target* and return one SyncResult per op.

        Raises:
            BatchUnreachable: If every op in some batch failed with
                StoreUnreachable or ConfigurationMissing.
        """
        results: list[SyncResult] = []
        if not ops:
            return results

        logger.info("Writing %d records to %s", len(ops), target.name)
        for start in range(0, len(ops), self.batch_size):
            batch = ops[start : start + self.batch_size]
            unreachable: list[Exception] = []

            for op in batch:
                try:
                    result = await self._apply(target, op)
                except Exception as exc:
                    if isinstance(exc, _UNREACHABLE):
                        unreachable.append(exc)
                    logger.error(
                        "Error syncing %r to %s: %s", op.record.title, target.name, exc
                    )
                    result = SyncResult(
                        success=False,
                        record=op.record,
                        kind=op.kind,
                        action="failed",
                        target=target.name,
                        error=str(exc),
                    )
                results.append(result)

            if len(unreachable) == len(batch):
                raise BatchUnreachable(target.name, str(unreachable[-1]), results)

            if start + self.batch_size < len(ops) and self.inter_batch_delay > 0:
                await asyncio.sleep(self.inter_batch_delay)

        ok = sum(1 for r in results if r.success)
        logger.info("%s write complete: %d successful, %d failed", target.name, ok, len(results) - ok)
        return results

    async def _apply(self, target: ContentStoreAdapter, op: WriteOp) -> SyncResult:
        record = op.record
        existing = await target.find_by_identity(record.title, record.primary_keyword)

        if op.kind == OpKind.CREATE:
            if existing.found:
                logger.debug("Already in %s, skipping create: %s", target.name, record.title)
                return SyncResult(
                    success=True,
                    record=existing.record or record,
                    kind=op.kind,
                    action="skipped",
                    target=target.name,
                )
            written = await target.create_record(record)
            return SyncResult(
                success=True, record=written, kind=op.kind, action="created", target=target.name
            )

        native_id = existing.native_id if existing.found else op.native_id
        if not native_id:
            raise RecordWriteFailed(f"No {target.name} record to update for {record.title!r}")
        written = await target.update_record(native_id, record)
        return SyncResult(
            success=True, record=written, kind=op.kind, action="updated", target=target.name
        )
