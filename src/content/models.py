"""Content domain models: pure Pydantic v2 data types.

A ContentRecord is one blog post as seen by one store.  Title and
primary keyword form its identity; everything else is payload that the
sync engine copies wholesale from the winning side.  Provenance fields
say where the record was read from and are never compared.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time
from enum import StrEnum

from blogsync.content.identity import canonical_identity
from pydantic import BaseModel, Field, field_validator, model_validator

# Floor used when a store reports neither a modification time nor a publish date.
EPOCH_FLOOR = datetime(2020, 1, 1, tzinfo=UTC)

_PAYLOAD_FIELDS = (
    "title",
    "primary_keyword",
    "author",
    "status",
    "approved",
    "publish_date",
    "feature_image_url",
    "body_ref",
)


class StoreName(StrEnum):
    """The two backing stores."""

    AIRTABLE = "airtable"
    SHEETS = "sheets"

    @property
    def other(self) -> StoreName:
        return StoreName.SHEETS if self is StoreName.AIRTABLE else StoreName.AIRTABLE


class PostStatus(StrEnum):
    """Editorial status of a post."""

    DRAFT = "Draft"
    APPROVED = "Approved"
    PUBLISHED = "Published"

    @classmethod
    def parse(cls, value: str | None, approved: bool = False) -> PostStatus:
        """Parse a store's status cell, falling back on the approval flag."""
        text = (value or "").strip().lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        return cls.APPROVED if approved else cls.DRAFT


class ContentRecord(BaseModel):
    """Canonical, store-agnostic blog post."""

    title: str
    primary_keyword: str = ""
    author: str = ""
    status: PostStatus = PostStatus.DRAFT
    approved: bool = False
    publish_date: date | None = None
    feature_image_url: str = ""
    body_ref: str = ""

    source_store: StoreName
    source_native_id: str | None = None
    last_modified: datetime = Field(default=EPOCH_FLOOR)
    # Fields the source store has no value for; never compared or written.
    unknown_fields: frozenset[str] = Field(default_factory=frozenset)

    @field_validator("last_modified")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @model_validator(mode="before")
    @classmethod
    def _default_last_modified(cls, data: object) -> object:
        """Fall back to the publish date when no modification time is known.

        The fallback is marked unknown so the resolver never treats it as a
        real edit time.
        """
        if not isinstance(data, dict) or data.get("last_modified") is not None:
            return data
        data = dict(data)
        data.pop("last_modified", None)
        data["unknown_fields"] = frozenset(data.get("unknown_fields") or ()) | {"last_modified"}
        publish = data.get("publish_date")
        if isinstance(publish, str) and publish:
            try:
                publish = date.fromisoformat(publish)
            except ValueError:
                publish = None
        if isinstance(publish, date):
            data["last_modified"] = datetime.combine(publish, time.min, tzinfo=UTC)
        return data

    @property
    def identity(self) -> str:
        return canonical_identity(self.title, self.primary_keyword)

    @property
    def last_modified_known(self) -> bool:
        return "last_modified" not in self.unknown_fields

    def knows(self, field_name: str) -> bool:
        return field_name not in self.unknown_fields

    def payload_equals(self, other: ContentRecord) -> bool:
        """True when both records carry the same post content.

        Fields either side does not carry are left out of the comparison.
        """
        skip = self.unknown_fields | other.unknown_fields
        return all(
            getattr(self, f) == getattr(other, f) for f in _PAYLOAD_FIELDS if f not in skip
        )

    def filled_from(self, other: ContentRecord) -> ContentRecord:
        """Copy this record, taking the fields it does not carry from *other*."""
        missing = self.unknown_fields - other.unknown_fields
        if not missing:
            return self
        update: dict[str, object] = {f: getattr(other, f) for f in missing}
        update["unknown_fields"] = self.unknown_fields & other.unknown_fields
        return self.model_copy(update=update)

    def with_provenance(
        self,
        store: StoreName,
        native_id: str | None,
    ) -> ContentRecord:
        """Copy this record as if it had been read from *store*."""
        return self.model_copy(update={"source_store": store, "source_native_id": native_id})


def is_visible(record: ContentRecord, today: date | None = None) -> bool:
    """Read-time filter: posts dated after *today* are not shown yet.

    Records without a publish date are always visible.  This is never
    consulted by the sync engine; future-dated posts are still synced.
    """
    if record.publish_date is None:
        return True
    today = today or datetime.now(tz=UTC).date()
    return record.publish_date <= today


def visible_posts(records: list[ContentRecord], today: date | None = None) -> list[ContentRecord]:
    """Return visible records, newest publish date first."""
    shown = [r for r in records if is_visible(r, today)]
    return sorted(shown, key=lambda r: r.publish_date or date.min, reverse=True)
