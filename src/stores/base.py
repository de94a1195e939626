"""Base class for content store adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod

from blogsync.content.models import ContentRecord, StoreName
from pydantic import BaseModel


class IdentityLookup(BaseModel):
    """Result of a find-by-identity scan."""

    found: bool
    native_id: str | None = None
    record: ContentRecord | None = None


class ContentStoreAdapter(ABC):
    """Translate one backing store into ContentRecords and back.

    All methods are coroutines; every call is a network round trip.
    """

    name: StoreName

    @abstractmethod
    async def fetch_all(self) -> list[ContentRecord]:
        """Read every record from the store."""

    @abstractmethod
    async def find_by_identity(self, title: str, primary_keyword: str) -> IdentityLookup:
        """Locate the record whose canonical identity matches title+keyword."""

    @abstractmethod
    async def create_record(self, record: ContentRecord) -> ContentRecord:
        """Create *record* and return it enriched with its native id."""

    @abstractmethod
    async def update_record(self, native_id: str, record: ContentRecord) -> ContentRecord:
        """Overwrite the record at *native_id* with *record*'s payload."""
