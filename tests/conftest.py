"""Shared fixtures: an in-memory store adapter and record factories."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from blogsync.content.identity import canonical_identity
from blogsync.content.models import ContentRecord, PostStatus, StoreName
from blogsync.errors import RecordWriteFailed
from blogsync.stores.base import ContentStoreAdapter, IdentityLookup

T1 = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)
T2 = datetime(2024, 3, 5, 9, 0, tzinfo=UTC)


class InMemoryStore(ContentStoreAdapter):
    """Adapter backed by a dict, recording every write it receives."""

    def __init__(self, name: StoreName, records: list[ContentRecord] | None = None) -> None:
        self.name = name
        self.rows: dict[str, ContentRecord] = {}
        self.created: list[ContentRecord] = []
        self.updated: list[tuple[str, ContentRecord]] = []
        self.fetch_calls = 0
        self.fetch_error: Exception | None = None
        self.write_error: Exception | None = None
        self.fail_on_titles: set[str] = set()
        self._next_id = 1
        for record in records or []:
            self._insert(record)

    def _insert(self, record: ContentRecord) -> ContentRecord:
        native_id = f"{self.name.value}-{self._next_id}"
        self._next_id += 1
        stored = record.with_provenance(self.name, native_id)
        self.rows[native_id] = stored
        return stored

    def _check_write(self, record: ContentRecord) -> None:
        if self.write_error is not None:
            raise self.write_error
        if record.title in self.fail_on_titles:
            raise RecordWriteFailed(f"rejected {record.title}", 422)

    @property
    def writes(self) -> int:
        return len(self.created) + len(self.updated)

    async def fetch_all(self) -> list[ContentRecord]:
        self.fetch_calls += 1
        if self.fetch_error is not None:
            raise self.fetch_error
        return list(self.rows.values())

    async def find_by_identity(self, title: str, primary_keyword: str) -> IdentityLookup:
        if self.write_error is not None:
            raise self.write_error
        identity = canonical_identity(title, primary_keyword)
        for native_id, record in self.rows.items():
            if record.identity == identity:
                return IdentityLookup(found=True, native_id=native_id, record=record)
        return IdentityLookup(found=False)

    async def create_record(self, record: ContentRecord) -> ContentRecord:
        self._check_write(record)
        stored = self._insert(record)
        self.created.append(stored)
        return stored

    async def update_record(self, native_id: str, record: ContentRecord) -> ContentRecord:
        self._check_write(record)
        if native_id not in self.rows:
            raise RecordWriteFailed(f"no row {native_id}", 404)
        stored = record.with_provenance(self.name, native_id)
        self.rows[native_id] = stored
        self.updated.append((native_id, stored))
        return stored


def make_record(
    title: str = "AI Trends",
    primary_keyword: str = "ai",
    *,
    store: StoreName = StoreName.AIRTABLE,
    approved: bool = False,
    last_modified: datetime | None = T1,
    **fields: object,
) -> ContentRecord:
    data: dict[str, object] = {
        "title": title,
        "primary_keyword": primary_keyword,
        "approved": approved,
        "status": PostStatus.APPROVED if approved else PostStatus.DRAFT,
        "source_store": store,
        "last_modified": last_modified,
    }
    data.update(fields)
    return ContentRecord(**data)


@pytest.fixture
def airtable_store() -> InMemoryStore:
    return InMemoryStore(StoreName.AIRTABLE)


@pytest.fixture
def sheets_store() -> InMemoryStore:
    return InMemoryStore(StoreName.SHEETS)
