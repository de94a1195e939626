"""Airtable store adapter: config, API client, and record conversion.

Airtable is the table-based store: records carry a stable server-assigned
id, the list endpoint is paginated and accepts a server-side formula
filter, and batch writes are capped at ten records per request.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import urllib.parse
import urllib.request

from blogsync.content.identity import canonical_identity
from blogsync.content.models import ContentRecord, PostStatus, StoreName
from blogsync.errors import ConfigurationMissing, StoreUnreachable
from blogsync.stores.base import ContentStoreAdapter, IdentityLookup
from blogsync.stores.cache import RecordCache
from blogsync.stores.http import open_json
from blogsync.stores.values import format_timestamp, parse_bool, parse_date, parse_timestamp
from pydantic import BaseModel

logger = logging.getLogger(__name__)

AIRTABLE_API_BASE = "https://api.airtable.com/v0"
MAX_RECORDS_PER_REQUEST = 10
APPROVED_ONLY_FORMULA = "{Approved} = TRUE()"

# ContentRecord field -> Airtable column name
AIRTABLE_FIELDS: dict[str, str] = {
    "title": "Title",
    "primary_keyword": "Primary Keyword",
    "author": "Client",
    "status": "Status",
    "approved": "Approved",
    "publish_date": "Publish Date",
    "feature_image_url": "Feature Image",
    "body_ref": "Post URL",
}


class AirtableConfig(BaseModel):
    """Connection settings for the Airtable blog base."""

    api_key: str = ""
    base_id: str = ""
    table_name: str = "Table 1"
    approved_only: bool = False
    page_size: int = 100
    last_modified_field: str = "Last Modified"
    write_last_modified: bool = False
    timeout: float = 30.0

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.base_id)

    @classmethod
    def from_env(cls) -> AirtableConfig:
        """Create config from environment variables."""
        return cls(
            api_key=os.environ.get("AIRTABLE_API_KEY", ""),
            base_id=os.environ.get("AIRTABLE_BLOG_BASE_ID", ""),
            table_name=os.environ.get("AIRTABLE_TABLE_NAME", "Table 1"),
        )


# ---------------------------------------------------------------------------
# Conversion boundary
# ---------------------------------------------------------------------------


def from_airtable(raw: dict, last_modified_field: str = "Last Modified") -> ContentRecord | None:
    """Convert an Airtable API record to a ContentRecord.

    Returns None for rows without a title, which cannot be identified.
    """
    fields = raw.get("fields") or {}
    title = str(fields.get(AIRTABLE_FIELDS["title"]) or "").strip()
    if not title:
        return None

    approved = parse_bool(fields.get(AIRTABLE_FIELDS["approved"]))
    image = fields.get(AIRTABLE_FIELDS["feature_image_url"]) or ""
    if isinstance(image, list):
        # Attachment field: take the first attachment's URL.
        image = image[0].get("url", "") if image and isinstance(image[0], dict) else ""

    return ContentRecord(
        title=title,
        primary_keyword=str(fields.get(AIRTABLE_FIELDS["primary_keyword"]) or "").strip(),
        author=str(fields.get(AIRTABLE_FIELDS["author"]) or "").strip(),
        status=PostStatus.parse(fields.get(AIRTABLE_FIELDS["status"]), approved),
        approved=approved,
        publish_date=parse_date(fields.get(AIRTABLE_FIELDS["publish_date"])),
        feature_image_url=str(image).strip(),
        body_ref=str(fields.get(AIRTABLE_FIELDS["body_ref"]) or "").strip(),
        source_store=StoreName.AIRTABLE,
        source_native_id=raw.get("id"),
        last_modified=parse_timestamp(fields.get(last_modified_field)),
    )


def to_airtable(record: ContentRecord, last_modified_field: str | None = None) -> dict:
    """Convert a ContentRecord to an Airtable ``fields`` map.

    Fields the record does not carry are left out so Airtable keeps its
    own value for them.
    """
    values: dict[str, object] = {
        "title": record.title,
        "primary_keyword": record.primary_keyword,
        "author": record.author,
        "status": record.status.value,
        "approved": record.approved,
        "publish_date": record.publish_date.isoformat() if record.publish_date else None,
        "feature_image_url": record.feature_image_url,
        "body_ref": record.body_ref,
    }
    fields = {AIRTABLE_FIELDS[k]: v for k, v in values.items() if record.knows(k)}
    if last_modified_field and record.last_modified_known:
        fields[last_modified_field] = format_timestamp(record.last_modified)
    return fields


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


class AirtableAPIClient:
    """Client for the Airtable REST API.

    Handles bearer authentication, pagination, and batch limits via urllib.
    """

    def __init__(self, config: AirtableConfig) -> None:
        self.config = config

    def _table_url(self) -> str:
        if not self.config.api_key:
            raise ConfigurationMissing(StoreName.AIRTABLE, "api_key")
        if not self.config.base_id:
            raise ConfigurationMissing(StoreName.AIRTABLE, "base_id")
        table = urllib.parse.quote(self.config.table_name, safe="")
        return f"{AIRTABLE_API_BASE}/{self.config.base_id}/{table}"

    def _request(
        self,
        method: str,
        params: dict[str, str] | None = None,
        data: dict | None = None,
    ) -> dict:
        """Make an authenticated request against the configured table."""
        url = self._table_url()
        if params:
            url = f"{url}?{urllib.parse.urlencode(params)}"
        body = json.dumps(data).encode("utf-8") if data is not None else None
        req = urllib.request.Request(
            url,
            data=body,
            method=method,
            headers={
                "Authorization": f"Bearer {self.config.api_key}",
                "Content-Type": "application/json",
            },
        )
        return open_json(req, StoreName.AIRTABLE, self.config.timeout)

    def list_records(self, formula: str | None = None) -> list[dict]:
        """Return every record in the table, following pagination offsets."""
        records: list[dict] = []
        offset: str | None = None
        while True:
            params = {"pageSize": str(self.config.page_size)}
            if formula:
                params["filterByFormula"] = formula
            if offset:
                params["offset"] = offset
            page = self._request("GET", params=params)
            records.extend(page.get("records") or [])
            offset = page.get("offset")
            if not offset:
                return records

    def create_records(self, fields_list: list[dict]) -> list[dict]:
        """Create records, at most ten per request."""
        created: list[dict] = []
        for start in range(0, len(fields_list), MAX_RECORDS_PER_REQUEST):
            chunk = fields_list[start : start + MAX_RECORDS_PER_REQUEST]
            result = self._request(
                "POST",
                data={"records": [{"fields": f} for f in chunk], "typecast": True},
            )
            created.extend(result.get("records") or [])
        return created

    def update_records(self, updates: list[tuple[str, dict]]) -> list[dict]:
        """PATCH ``(record_id, fields)`` pairs, at most ten per request."""
        updated: list[dict] = []
        for start in range(0, len(updates), MAX_RECORDS_PER_REQUEST):
            chunk = updates[start : start + MAX_RECORDS_PER_REQUEST]
            result = self._request(
                "PATCH",
                data={
                    "records": [{"id": rid, "fields": f} for rid, f in chunk],
                    "typecast": True,
                },
            )
            updated.extend(result.get("records") or [])
        return updated


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------


class AirtableStore(ContentStoreAdapter):
    """Store A: the Airtable blog table."""

    name = StoreName.AIRTABLE

    def __init__(
        self,
        config: AirtableConfig,
        cache: RecordCache | None = None,
        client: AirtableAPIClient | None = None,
    ) -> None:
        self.config = config
        self.cache = cache or RecordCache()
        self.client = client or AirtableAPIClient(config)

    def _convert(self, raw_records: list[dict]) -> list[ContentRecord]:
        records: list[ContentRecord] = []
        for raw in raw_records:
            record = from_airtable(raw, self.config.last_modified_field)
            if record is None:
                logger.warning("Skipping Airtable record %s: missing title", raw.get("id"))
                continue
            records.append(record)
        return records

    def _write_fields(self, record: ContentRecord) -> dict:
        lm_field = self.config.last_modified_field if self.config.write_last_modified else None
        return to_airtable(record, lm_field)

    async def _load_all(self) -> list[ContentRecord]:
        raw = await asyncio.to_thread(self.client.list_records, None)
        records = self._convert(raw)
        self.cache.refresh(records)
        return records

    async def fetch_all(self) -> list[ContentRecord]:
        """Read the table, filtering to approved posts server-side when configured."""
        if not self.config.approved_only:
            records = await self._load_all()
        else:
            raw = await asyncio.to_thread(self.client.list_records, APPROVED_ONLY_FORMULA)
            records = self._convert(raw)
        logger.info("Fetched %d records from Airtable", len(records))
        return records

    async def find_by_identity(self, title: str, primary_keyword: str) -> IdentityLookup:
        # The identity index always covers the whole table, even when
        # fetch_all is filtered, so unapproved rows still gate creates.
        if self.cache.get() is None:
            await self._load_all()
        match = self.cache.lookup(canonical_identity(title, primary_keyword))
        if match is None:
            return IdentityLookup(found=False)
        return IdentityLookup(found=True, native_id=match.source_native_id, record=match)

    async def create_record(self, record: ContentRecord) -> ContentRecord:
        created = await asyncio.to_thread(self.client.create_records, [self._write_fields(record)])
        if not created:
            raise StoreUnreachable(StoreName.AIRTABLE, "create returned no records")
        result = record.with_provenance(StoreName.AIRTABLE, created[0].get("id"))
        self.cache.put(result)
        logger.info("Created in Airtable: %s (%s)", record.title, result.source_native_id)
        return result

    async def update_record(self, native_id: str, record: ContentRecord) -> ContentRecord:
        await asyncio.to_thread(
            self.client.update_records, [(native_id, self._write_fields(record))]
        )
        result = record.with_provenance(StoreName.AIRTABLE, native_id)
        self.cache.put(result)
        logger.info("Updated in Airtable: %s (%s)", record.title, native_id)
        return result
