"""Header-driven column mapping for the spreadsheet store.

The sheet has no fixed layout: authors reorder and rename columns.  A
SchemaMap is built once per session from the header row and every read
and write goes through it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ContentRecord field -> header fragments, checked in order.  A header
# matches when it contains the fragment (case-insensitive).
HEADER_ALIASES: dict[str, tuple[str, ...]] = {
    "title": ("title",),
    "primary_keyword": ("primary keyword", "keyword"),
    "author": ("client", "author"),
    "status": ("status",),
    "approved": ("approved",),
    "publish_date": ("publish date", "post date", "date"),
    "feature_image_url": ("feature image", "image"),
    "body_ref": ("post url", "doc url", "url"),
    "last_modified": ("last modified", "modified"),
}


def column_letter(index: int) -> str:
    """Convert a zero-based column index to A1 notation (0 -> A, 26 -> AA)."""
    letters = ""
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        letters = chr(65 + rem) + letters
    return letters


@dataclass(frozen=True)
class SchemaMap:
    """Mapping of record field name to zero-based column index."""

    header: tuple[str, ...]
    columns: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_header(cls, header: list[str]) -> SchemaMap:
        """Match header cells to record fields.

        Exact fragment matches are tried before looser aliases, and a
        column claimed by one field is not reused for another.
        """
        lowered = [h.strip().lower() for h in header]
        columns: dict[str, int] = {}
        claimed: set[int] = set()
        for field_name, aliases in HEADER_ALIASES.items():
            for alias in aliases:
                match = next(
                    (i for i, h in enumerate(lowered) if alias in h and i not in claimed),
                    None,
                )
                if match is not None:
                    columns[field_name] = match
                    claimed.add(match)
                    break
        return cls(header=tuple(header), columns=columns)

    @property
    def width(self) -> int:
        return max(len(self.header), max(self.columns.values(), default=-1) + 1)

    @property
    def last_column(self) -> str:
        return column_letter(max(self.width - 1, 0))

    def has(self, field_name: str) -> bool:
        return field_name in self.columns

    @property
    def missing_fields(self) -> frozenset[str]:
        """Record fields with no column in this sheet."""
        return frozenset(f for f in HEADER_ALIASES if f not in self.columns)

    def get(self, row: list[str], field_name: str) -> str:
        """Return the cell for *field_name*, or "" when absent."""
        index = self.columns.get(field_name)
        if index is None or index >= len(row):
            return ""
        return str(row[index]).strip()

    def build_row(self, values: dict[str, str], existing: list[str] | None = None) -> list[str]:
        """Lay *values* out in column order on top of *existing* cells."""
        row = list(existing or [])
        row.extend([""] * (self.width - len(row)))
        for field_name, value in values.items():
            index = self.columns.get(field_name)
            if index is not None:
                row[index] = value
        return row
