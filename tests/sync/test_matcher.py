"""Tests for identity matching."""

from blogsync.content.models import StoreName
from blogsync.sync.matcher import match_records
from conftest import make_record


def _a(title, kw="", **kw_fields):
    return make_record(title, kw, store=StoreName.AIRTABLE, **kw_fields)


def _b(title, kw="", **kw_fields):
    return make_record(title, kw, store=StoreName.SHEETS, **kw_fields)


class TestMatchRecords:
    def test_empty(self):
        result = match_records([], [])
        assert result.matched == []
        assert result.left_only == []
        assert result.right_only == []

    def test_partition(self):
        left = [_a("One", "1"), _a("Two", "2"), _a("Three", "3")]
        right = [_b("two", "2"), _b("Four", "4")]
        result = match_records(left, right)

        assert [p.identity for p in result.matched] == ["two|2"]
        assert [r.title for r in result.left_only] == ["One", "Three"]
        assert [r.title for r in result.right_only] == ["Four"]

    def test_pair_sides(self):
        result = match_records([_a("AI Trends", "ai")], [_b("ai trends", "AI")])
        (pair,) = result.matched
        assert pair.airtable.source_store is StoreName.AIRTABLE
        assert pair.sheets.source_store is StoreName.SHEETS

    def test_total_and_disjoint(self):
        left = [_a(f"Post {i}", "kw") for i in range(6)]
        right = [_b(f"Post {i}", "kw") for i in range(3, 9)]
        result = match_records(left, right)

        total = 2 * len(result.matched) + len(result.left_only) + len(result.right_only)
        assert total == len(left) + len(right)
        assert len(result.matched) == 3

    def test_duplicate_right_matches_once(self):
        left = [_a("Dup", "k")]
        right = [_b("Dup", "k", author="first"), _b("Dup", "k", author="second")]
        result = match_records(left, right)

        assert len(result.matched) == 1
        assert result.matched[0].sheets.author == "first"
        assert [r.author for r in result.right_only] == ["second"]

    def test_duplicate_left_first_wins(self):
        left = [_a("Dup", "k", author="first"), _a("Dup", "k", author="second")]
        right = [_b("Dup", "k")]
        result = match_records(left, right)

        assert result.matched[0].airtable.author == "first"
        assert [r.author for r in result.left_only] == ["second"]

    def test_keyword_is_part_of_identity(self):
        result = match_records([_a("Guide", "seo")], [_b("Guide", "ppc")])
        assert result.matched == []
        assert len(result.left_only) == 1
        assert len(result.right_only) == 1
