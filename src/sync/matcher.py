"""Identity matching between the two stores' record sets."""

from __future__ import annotations

import logging

from blogsync.content.models import ContentRecord
from blogsync.sync.models import MatchResult, Pair

logger = logging.getLogger(__name__)


def match_records(left: list[ContentRecord], right: list[ContentRecord]) -> MatchResult:
    """Partition *left* (Airtable) and *right* (Sheets) by canonical identity.

    Each left record can pair with at most one right record: a hit is
    removed from the lookup before the next right record is tried.  When
    one side holds the same identity twice, the first occurrence takes
    part in matching and the rest fall through to left_only/right_only.

    Every input record ends up in exactly one of matched, left_only,
    right_only.
    """
    pending: dict[str, ContentRecord] = {}
    result = MatchResult()

    for record in left:
        identity = record.identity
        if identity in pending:
            logger.warning("Duplicate identity %r in %s", identity, record.source_store)
            result.left_only.append(record)
        else:
            pending[identity] = record

    for record in right:
        identity = record.identity
        partner = pending.pop(identity, None)
        if partner is None:
            result.right_only.append(record)
        else:
            result.matched.append(Pair(identity=identity, airtable=partner, sheets=record))

    result.left_only.extend(pending.values())

    logger.info(
        "Matched %d, %d Airtable-only, %d Sheets-only",
        len(result.matched),
        len(result.left_only),
        len(result.right_only),
    )
    return result
