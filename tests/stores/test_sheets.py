"""Tests for the Google Sheets adapter."""

from __future__ import annotations

import asyncio
import json
from datetime import UTC, date, datetime
from unittest.mock import MagicMock, patch

import pytest

from blogsync.content.models import EPOCH_FLOOR, PostStatus, StoreName
from blogsync.errors import ConfigurationMissing, RecordWriteFailed
from blogsync.stores.schema import SchemaMap
from blogsync.stores.sheets import (
    SheetsAPIClient,
    SheetsConfig,
    SheetsStore,
    from_sheet_row,
    to_sheet_row,
)
from conftest import make_record

HEADER = ["Title", "Primary Keyword", "Client", "Approved", "Publish Date", "Notes", "Last Modified"]

_TEST_CONFIG = SheetsConfig(api_key="sheetkey", spreadsheet_id="sheet123")


def _mock_response(body: bytes) -> MagicMock:
    mock_response = MagicMock()
    mock_response.read.return_value = body
    mock_response.__enter__ = lambda s: s
    mock_response.__exit__ = MagicMock(return_value=False)
    return mock_response


# ── SheetsConfig ─────────────────────────────────────────────────────────

class TestSheetsConfig:
    def test_flags(self):
        assert _TEST_CONFIG.is_configured is True
        assert _TEST_CONFIG.has_api_access is True
        assert SheetsConfig(spreadsheet_id="s").has_api_access is False
        assert SheetsConfig(access_token="t").has_api_access is True
        assert SheetsConfig().is_configured is False

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("BLOG_GOOGLE_SHEET_ID", "envsheet")
        monkeypatch.setenv("GOOGLE_SHEETS_API_KEY", "envkey")
        monkeypatch.delenv("GOOGLE_SHEETS_ACCESS_TOKEN", raising=False)
        cfg = SheetsConfig.from_env()
        assert cfg.spreadsheet_id == "envsheet"
        assert cfg.api_key == "envkey"
        assert cfg.access_token == ""


# ── Row conversion ───────────────────────────────────────────────────────

class TestRowConversion:
    def test_from_sheet_row(self):
        schema = SchemaMap.from_header(HEADER)
        row = ["AI Trends", "ai", "Acme", "YES", "2024-03-01", "note", "2024-03-05T09:00:00Z"]
        record = from_sheet_row(row, schema, 4)
        assert record.title == "AI Trends"
        assert record.author == "Acme"
        assert record.approved is True
        assert record.status is PostStatus.APPROVED
        assert record.publish_date == date(2024, 3, 1)
        assert record.source_store is StoreName.SHEETS
        assert record.source_native_id == "4"
        assert record.last_modified == datetime(2024, 3, 5, 9, tzinfo=UTC)

    def test_short_row_and_missing_timestamp(self):
        schema = SchemaMap.from_header(HEADER)
        record = from_sheet_row(["Post"], schema, 2)
        assert record.primary_keyword == ""
        assert record.approved is False
        assert record.last_modified == EPOCH_FLOOR

    def test_missing_columns_are_unknown(self):
        schema = SchemaMap.from_header(["Title", "Primary Keyword", "Status"])
        record = from_sheet_row(["AI Trends", "ai", "Approved"], schema, 2)
        assert {"approved", "author", "last_modified"} <= record.unknown_fields
        assert record.knows("status")
        assert record.last_modified_known is False

    def test_empty_timestamp_cell_is_unknown(self):
        schema = SchemaMap.from_header(HEADER)
        record = from_sheet_row(["Post", "kw", "", "YES", "", "", ""], schema, 2)
        assert record.unknown_fields == {"status", "feature_image_url", "body_ref", "last_modified"}

    def test_to_sheet_row_skips_unknown_fields(self):
        schema = SchemaMap.from_header(HEADER)
        record = make_record(
            "AI Trends",
            "ai",
            store=StoreName.AIRTABLE,
            last_modified=None,
            unknown_fields=frozenset({"approved", "author"}),
        )
        existing = ["AI Trends", "ai", "Acme", "YES", "", "keep", "2024-01-01T00:00:00Z"]
        row = to_sheet_row(record, schema, existing)
        assert row == existing

    def test_blank_title_skipped(self):
        schema = SchemaMap.from_header(HEADER)
        assert from_sheet_row(["", "kw"], schema, 3) is None

    def test_to_sheet_row_keeps_unmapped_cells(self):
        schema = SchemaMap.from_header(HEADER)
        record = make_record(
            "AI Trends",
            "ai",
            approved=True,
            author="Acme",
            publish_date=date(2024, 3, 1),
            last_modified=datetime(2024, 3, 5, 9, tzinfo=UTC),
        )
        existing = ["Old", "ai", "", "NO", "", "keep", ""]
        row = to_sheet_row(record, schema, existing)
        assert row == [
            "AI Trends",
            "ai",
            "Acme",
            "YES",
            "2024-03-01",
            "keep",
            "2024-03-05T09:00:00Z",
        ]


# ── SheetsAPIClient ──────────────────────────────────────────────────────

class TestSheetsAPIClient:
    def test_read_range(self):
        client = SheetsAPIClient(_TEST_CONFIG)
        payload = {"values": [["Title"], ["A"], [1]]}
        with patch(
            "urllib.request.urlopen", return_value=_mock_response(json.dumps(payload).encode())
        ) as mock_urlopen:
            rows = client.read_range("Content!A:Z")

        assert rows == [["Title"], ["A"], ["1"]]
        req = mock_urlopen.call_args[0][0]
        assert req.full_url == (
            "https://sheets.googleapis.com/v4/spreadsheets/sheet123/values/Content!A:Z?key=sheetkey"
        )

    def test_access_token_header(self):
        client = SheetsAPIClient(SheetsConfig(access_token="tok", spreadsheet_id="sheet123"))
        with patch(
            "urllib.request.urlopen", return_value=_mock_response(b'{"values": []}')
        ) as mock_urlopen:
            client.read_range("Content!A:Z")
        assert mock_urlopen.call_args[0][0].get_header("Authorization") == "Bearer tok"

    def test_write_range(self):
        client = SheetsAPIClient(_TEST_CONFIG)
        with patch("urllib.request.urlopen", return_value=_mock_response(b"{}")) as mock_urlopen:
            client.write_range("Content!A5:G5", [["x"]])

        req = mock_urlopen.call_args[0][0]
        assert req.method == "PUT"
        assert "valueInputOption=USER_ENTERED" in req.full_url
        assert json.loads(req.data)["values"] == [["x"]]

    def test_write_without_credentials_raises(self):
        client = SheetsAPIClient(SheetsConfig(spreadsheet_id="sheet123"))
        with pytest.raises(ConfigurationMissing):
            client.write_range("Content!A2:B2", [["x"]])

    def test_missing_sheet_id_raises(self):
        client = SheetsAPIClient(SheetsConfig(api_key="k"))
        with pytest.raises(ConfigurationMissing):
            client.read_range("Content!A:Z")

    def test_read_csv(self):
        client = SheetsAPIClient(SheetsConfig(spreadsheet_id="sheet123", gid="7"))
        body = "\ufeffTitle,Keyword\nA , a\n\"B, with comma\",b\n,\n".encode()
        with patch("urllib.request.urlopen", return_value=_mock_response(body)) as mock_urlopen:
            rows = client.read_csv()

        assert rows == [["Title", "Keyword"], ["A", "a"], ["B, with comma", "b"]]
        assert mock_urlopen.call_args[0][0].full_url.endswith("export?format=csv&gid=7")


# ── SheetsStore ──────────────────────────────────────────────────────────

def _store(rows: list[list[str]], config: SheetsConfig = _TEST_CONFIG) -> tuple[SheetsStore, MagicMock]:
    client = MagicMock(spec=SheetsAPIClient)
    client.read_range.return_value = rows
    client.read_csv.return_value = rows
    return SheetsStore(config, client=client), client


_ROWS = [
    HEADER,
    ["AI Trends", "ai", "Acme", "YES", "2024-03-01", "note", ""],
    ["", "", "", "", "", "", ""],
    ["SEO Guide", "seo", "Beta", "NO", "", "", ""],
]


class TestSheetsStore:
    def test_fetch_all_uses_row_numbers(self):
        store, client = _store(_ROWS)
        records = asyncio.run(store.fetch_all())
        assert [(r.title, r.source_native_id) for r in records] == [
            ("AI Trends", "2"),
            ("SEO Guide", "4"),
        ]
        client.read_range.assert_called_once_with("Content!A:Z")
        assert store.schema.has("title")

    def test_csv_fallback_without_credentials(self):
        store, client = _store(_ROWS, SheetsConfig(spreadsheet_id="sheet123"))
        records = asyncio.run(store.fetch_all())
        assert len(records) == 2
        client.read_csv.assert_called_once()
        client.read_range.assert_not_called()

    def test_empty_sheet(self):
        store, _ = _store([])
        assert asyncio.run(store.fetch_all()) == []

    def test_find_by_identity(self):
        store, client = _store(_ROWS)
        lookup = asyncio.run(store.find_by_identity("seo guide", "SEO"))
        assert lookup.found is True
        assert lookup.native_id == "4"
        missing = asyncio.run(store.find_by_identity("Nope", ""))
        assert missing.found is False
        client.read_range.assert_called_once()

    def test_create_appends_after_last_row(self):
        store, client = _store(_ROWS)
        record = make_record("New Post", "new", store=StoreName.AIRTABLE, source_native_id="rec1")

        async def run():
            await store.fetch_all()
            first = await store.create_record(record)
            second = await store.create_record(make_record("Another", "x"))
            return first, second

        first, second = asyncio.run(run())
        assert first.source_store is StoreName.SHEETS
        assert first.source_native_id == "5"
        assert second.source_native_id == "6"
        ranges = [c[0][0] for c in client.write_range.call_args_list]
        assert ranges == ["Content!A5:G5", "Content!A6:G6"]
        written = client.write_range.call_args_list[0][0][1][0]
        assert written[0] == "New Post"
        assert written[1] == "new"

    def test_create_in_header_only_sheet(self):
        store, client = _store([HEADER])
        created = asyncio.run(store.create_record(make_record("First")))
        assert created.source_native_id == "2"
        assert client.write_range.call_args[0][0] == "Content!A2:G2"

    def test_update_preserves_unmapped_cells(self):
        store, client = _store(_ROWS)
        record = make_record("AI Trends", "ai", approved=False, author="Acme")
        result = asyncio.run(store.update_record("2", record))
        assert result.source_native_id == "2"
        range_a1, rows = client.write_range.call_args[0]
        assert range_a1 == "Content!A2:G2"
        assert rows[0][3] == "NO"
        assert rows[0][5] == "note"

    def test_update_rejects_header_row(self):
        store, _ = _store(_ROWS)
        with pytest.raises(RecordWriteFailed):
            asyncio.run(store.update_record("1", make_record()))

    def test_update_rejects_bad_reference(self):
        store, _ = _store(_ROWS)
        with pytest.raises(RecordWriteFailed):
            asyncio.run(store.update_record("recXYZ", make_record()))

    def test_write_without_title_column_fails(self):
        store, _ = _store([["Name", "Notes"], ["x", "y"]])
        with pytest.raises(RecordWriteFailed):
            asyncio.run(store.create_record(make_record()))

    def test_header_change_rebuilds_schema(self):
        store, client = _store(_ROWS)
        asyncio.run(store.fetch_all())
        client.read_range.return_value = [["Keyword", "Title"], ["ai", "AI Trends"]]
        records = asyncio.run(store.fetch_all())
        assert store.schema.columns["title"] == 1
        assert records[0].primary_keyword == "ai"
