"""Google Sheets store adapter: config, values API client, row conversion.

The spreadsheet is the awkward store: rows have no stable id, so a
record's native id is just its 1-based row number, and identity has to
be recovered by scanning the whole range.  The column layout comes from
the header row (see SchemaMap).  Without an API key or access token the
sheet can still be read through its public CSV export, but not written.
"""

from __future__ import annotations

import asyncio
import csv
import io
import json
import logging
import os
import urllib.parse
import urllib.request

from blogsync.content.identity import canonical_identity
from blogsync.content.models import ContentRecord, PostStatus, StoreName
from blogsync.errors import ConfigurationMissing, RecordWriteFailed
from blogsync.stores.base import ContentStoreAdapter, IdentityLookup
from blogsync.stores.cache import RecordCache
from blogsync.stores.http import open_json, open_url
from blogsync.stores.schema import SchemaMap
from blogsync.stores.values import format_timestamp, parse_bool, parse_date, parse_timestamp
from pydantic import BaseModel

logger = logging.getLogger(__name__)

SHEETS_API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"
CSV_EXPORT_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv&gid={gid}"


class SheetsConfig(BaseModel):
    """Connection settings for the blog content spreadsheet."""

    api_key: str = ""
    access_token: str = ""
    spreadsheet_id: str = ""
    sheet_name: str = "Content"
    gid: str = "0"
    read_range: str = "A:Z"
    timeout: float = 30.0

    @property
    def is_configured(self) -> bool:
        return bool(self.spreadsheet_id)

    @property
    def has_api_access(self) -> bool:
        return bool(self.api_key or self.access_token)

    @classmethod
    def from_env(cls) -> SheetsConfig:
        """Create config from environment variables."""
        return cls(
            api_key=os.environ.get("GOOGLE_SHEETS_API_KEY", ""),
            access_token=os.environ.get("GOOGLE_SHEETS_ACCESS_TOKEN", ""),
            spreadsheet_id=os.environ.get("BLOG_GOOGLE_SHEET_ID", ""),
        )


# ---------------------------------------------------------------------------
# Conversion boundary
# ---------------------------------------------------------------------------


def from_sheet_row(row: list[str], schema: SchemaMap, row_number: int) -> ContentRecord | None:
    """Convert a data row to a ContentRecord; None for rows without a title."""
    title = schema.get(row, "title")
    if not title:
        return None
    approved = parse_bool(schema.get(row, "approved"))
    return ContentRecord(
        title=title,
        primary_keyword=schema.get(row, "primary_keyword"),
        author=schema.get(row, "author"),
        status=PostStatus.parse(schema.get(row, "status"), approved),
        approved=approved,
        publish_date=parse_date(schema.get(row, "publish_date")),
        feature_image_url=schema.get(row, "feature_image_url"),
        body_ref=schema.get(row, "body_ref"),
        source_store=StoreName.SHEETS,
        source_native_id=str(row_number),
        last_modified=parse_timestamp(schema.get(row, "last_modified")),
        unknown_fields=schema.missing_fields,
    )


def to_sheet_row(
    record: ContentRecord,
    schema: SchemaMap,
    existing: list[str] | None = None,
) -> list[str]:
    """Lay a ContentRecord out as a sheet row.

    Only mapped columns are written; cells under unmapped headers, and
    cells for fields the record does not carry, keep whatever *existing*
    held.
    """
    values = {
        "title": record.title,
        "primary_keyword": record.primary_keyword,
        "author": record.author,
        "status": record.status.value,
        "approved": "YES" if record.approved else "NO",
        "publish_date": record.publish_date.isoformat() if record.publish_date else "",
        "feature_image_url": record.feature_image_url,
        "body_ref": record.body_ref,
        "last_modified": format_timestamp(record.last_modified),
    }
    known = {k: v for k, v in values.items() if record.knows(k)}
    return schema.build_row(known, existing)


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


class SheetsAPIClient:
    """Client for the Sheets v4 values API, with a CSV export fallback."""

    def __init__(self, config: SheetsConfig) -> None:
        self.config = config

    def _values_url(self, range_a1: str, params: dict[str, str] | None = None) -> str:
        if not self.config.spreadsheet_id:
            raise ConfigurationMissing(StoreName.SHEETS, "spreadsheet_id")
        query = dict(params or {})
        if self.config.api_key:
            query["key"] = self.config.api_key
        encoded = urllib.parse.quote(range_a1, safe="!:")
        url = f"{SHEETS_API_BASE}/{self.config.spreadsheet_id}/values/{encoded}"
        return f"{url}?{urllib.parse.urlencode(query)}" if query else url

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.access_token:
            headers["Authorization"] = f"Bearer {self.config.access_token}"
        return headers

    def read_range(self, range_a1: str) -> list[list[str]]:
        """Return the rows of *range_a1* (e.g. ``Content!A:Z``)."""
        req = urllib.request.Request(
            self._values_url(range_a1), method="GET", headers=self._headers()
        )
        data = open_json(req, StoreName.SHEETS, self.config.timeout)
        return [[str(cell) for cell in row] for row in data.get("values") or []]

    def write_range(self, range_a1: str, rows: list[list[str]]) -> dict:
        """Overwrite *range_a1* with *rows*."""
        if not self.config.has_api_access:
            raise ConfigurationMissing(StoreName.SHEETS, "api_key")
        url = self._values_url(range_a1, {"valueInputOption": "USER_ENTERED"})
        body = {"range": range_a1, "majorDimension": "ROWS", "values": rows}
        req = urllib.request.Request(
            url,
            data=json.dumps(body).encode("utf-8"),
            method="PUT",
            headers=self._headers(),
        )
        return open_json(req, StoreName.SHEETS, self.config.timeout)

    def read_csv(self) -> list[list[str]]:
        """Read the sheet through its public CSV export."""
        if not self.config.spreadsheet_id:
            raise ConfigurationMissing(StoreName.SHEETS, "spreadsheet_id")
        url = CSV_EXPORT_URL.format(sheet_id=self.config.spreadsheet_id, gid=self.config.gid)
        req = urllib.request.Request(url, method="GET")
        text = open_url(req, StoreName.SHEETS, self.config.timeout).decode("utf-8-sig")
        rows = [[cell.strip() for cell in row] for row in csv.reader(io.StringIO(text))]
        while rows and not any(rows[-1]):
            rows.pop()
        return rows


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------


class SheetsStore(ContentStoreAdapter):
    """Store B: the Google Sheets content tab."""

    name = StoreName.SHEETS

    def __init__(
        self,
        config: SheetsConfig,
        cache: RecordCache | None = None,
        client: SheetsAPIClient | None = None,
    ) -> None:
        self.config = config
        self.cache = cache or RecordCache()
        self.client = client or SheetsAPIClient(config)
        self.schema: SchemaMap | None = None
        self._rows: list[list[str]] = []

    @property
    def _range(self) -> str:
        return f"{self.config.sheet_name}!{self.config.read_range}"

    def _read_rows(self) -> list[list[str]]:
        if self.config.has_api_access:
            return self.client.read_range(self._range)
        logger.warning("Google Sheets API key not configured, reading CSV export")
        return self.client.read_csv()

    def _apply_header(self, header: list[str]) -> SchemaMap:
        if self.schema is None:
            self.schema = SchemaMap.from_header(header)
            logger.debug("Sheet schema: %s", self.schema.columns)
        elif tuple(header) != self.schema.header:
            logger.warning("Sheet header changed during session, remapping columns")
            self.schema = SchemaMap.from_header(header)
        return self.schema

    async def _load_all(self) -> list[ContentRecord]:
        rows = await asyncio.to_thread(self._read_rows)
        self._rows = list(rows)
        records: list[ContentRecord] = []
        if rows:
            schema = self._apply_header(rows[0])
            for row_number, row in enumerate(rows[1:], start=2):
                record = from_sheet_row(row, schema, row_number)
                if record is not None:
                    records.append(record)
        self.cache.refresh(records)
        return records

    async def _ensure_loaded(self) -> SchemaMap:
        if self.cache.get() is None:
            await self._load_all()
        if self.schema is None or not self.schema.has("title"):
            raise RecordWriteFailed("Sheet has no recognisable Title column in its header row")
        return self.schema

    def _row_range(self, row_number: int, schema: SchemaMap) -> str:
        return f"{self.config.sheet_name}!A{row_number}:{schema.last_column}{row_number}"

    async def fetch_all(self) -> list[ContentRecord]:
        records = await self._load_all()
        logger.info("Fetched %d records from Google Sheets", len(records))
        return records

    async def find_by_identity(self, title: str, primary_keyword: str) -> IdentityLookup:
        """Scan the (cached) sheet for the row matching title+keyword."""
        if self.cache.get() is None:
            await self._load_all()
        match = self.cache.lookup(canonical_identity(title, primary_keyword))
        if match is None:
            return IdentityLookup(found=False)
        return IdentityLookup(found=True, native_id=match.source_native_id, record=match)

    async def create_record(self, record: ContentRecord) -> ContentRecord:
        """Append *record* at the first row after the current data."""
        schema = await self._ensure_loaded()
        row_number = max(len(self._rows), 1) + 1
        row = to_sheet_row(record, schema)
        await asyncio.to_thread(self.client.write_range, self._row_range(row_number, schema), [row])
        self._rows.extend([[]] * (row_number - 1 - len(self._rows)))
        self._rows.append(row)
        result = record.with_provenance(StoreName.SHEETS, str(row_number))
        self.cache.put(result)
        logger.info("Added to Google Sheets row %d: %s", row_number, record.title)
        return result

    async def update_record(self, native_id: str, record: ContentRecord) -> ContentRecord:
        """Rewrite the mapped cells of row *native_id*."""
        schema = await self._ensure_loaded()
        try:
            row_number = int(native_id)
        except (TypeError, ValueError) as exc:
            raise RecordWriteFailed(f"Invalid sheet row reference {native_id!r}") from exc
        if row_number < 2:
            raise RecordWriteFailed(f"Refusing to overwrite header row {row_number}")
        existing = self._rows[row_number - 1] if row_number - 1 < len(self._rows) else []
        row = to_sheet_row(record, schema, existing)
        await asyncio.to_thread(self.client.write_range, self._row_range(row_number, schema), [row])
        if row_number - 1 < len(self._rows):
            self._rows[row_number - 1] = row
        result = record.with_provenance(StoreName.SHEETS, str(row_number))
        self.cache.put(result)
        logger.info("Updated Google Sheets row %d: %s", row_number, record.title)
        return result
