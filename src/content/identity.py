"""Canonical identity for blog posts.

Neither store shares a record id with the other, so "the same post" is
recognised by its title and primary keyword.
"""

from __future__ import annotations

import re

_IDENTITY_STRIP_RE = re.compile(r"[^a-z0-9|]")


def normalize_identity(value: str | None) -> str:
    """Lower-case, trim, and drop everything outside ``[a-z0-9|]``."""
    return _IDENTITY_STRIP_RE.sub("", (value or "").strip().lower())


def canonical_identity(title: str | None, primary_keyword: str | None) -> str:
    """Return ``normalize(title) + "|" + normalize(primary_keyword)``."""
    return f"{normalize_identity(title)}|{normalize_identity(primary_keyword)}"
