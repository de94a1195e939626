"""Explicit per-adapter record cache.

Holds the last full read of a store so that identity lookups during a
write run do not re-read the whole table for every record.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from blogsync.content.models import ContentRecord

logger = logging.getLogger(__name__)


class RecordCache:
    """Records keyed by canonical identity, with an explicit expiry."""

    def __init__(self, ttl_seconds: float = 300.0) -> None:
        self.ttl = timedelta(seconds=ttl_seconds)
        self.expires_at: datetime | None = None
        self._by_identity: dict[str, ContentRecord] = {}
        self._records: list[ContentRecord] = []

    @property
    def is_fresh(self) -> bool:
        return self.expires_at is not None and datetime.now(tz=UTC) < self.expires_at

    def get(self) -> list[ContentRecord] | None:
        """Return cached records, or None if the cache is empty or expired."""
        if not self.is_fresh:
            return None
        return list(self._records)

    def lookup(self, identity: str) -> ContentRecord | None:
        """Find a cached record by identity (caller checks freshness)."""
        return self._by_identity.get(identity)

    def refresh(self, records: list[ContentRecord]) -> None:
        """Replace the cached contents and restart the expiry clock.

        When a store holds duplicate identities the first one wins, matching
        the matcher's one-to-one rule.
        """
        self._records = list(records)
        self._by_identity = {}
        for record in records:
            self._by_identity.setdefault(record.identity, record)
        self.expires_at = datetime.now(tz=UTC) + self.ttl
        logger.debug("Cache refreshed with %d records", len(records))

    def put(self, record: ContentRecord) -> None:
        """Record a write so later lookups in the same run see it."""
        if self.expires_at is None:
            return
        previous = self._by_identity.get(record.identity)
        if previous is not None:
            self._records = [r for r in self._records if r is not previous]
        self._records.append(record)
        self._by_identity[record.identity] = record

    def invalidate(self) -> None:
        """Drop everything; the next read goes to the store."""
        self._records = []
        self._by_identity = {}
        self.expires_at = None
