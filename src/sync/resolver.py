"""Conflict resolution for matched pairs.

The resolver never merges: it picks one side wholesale and the other
side's store receives the winner.  It is a pure function of the pair,
the policy, and the master store.
"""

from __future__ import annotations

from blogsync.content.models import StoreName
from blogsync.sync.models import Pair, Resolution, ResolutionPolicy


def _pick(pair: Pair, winner_store: StoreName) -> Resolution:
    if winner_store == StoreName.AIRTABLE:
        return Resolution(winner=pair.airtable, loser=pair.sheets, loser_store=StoreName.SHEETS)
    return Resolution(winner=pair.sheets, loser=pair.airtable, loser_store=StoreName.AIRTABLE)


def resolve_conflict(
    pair: Pair,
    policy: ResolutionPolicy = ResolutionPolicy.NEWEST_WINS,
    master: StoreName = StoreName.AIRTABLE,
) -> Resolution:
    """Decide which side of *pair* is authoritative.

    newest_wins compares last_modified; on an exact tie an approved record
    beats an unapproved one, and after that the master store wins.  A
    fallback timestamp counts as a tie, and approval only breaks the tie
    when both stores carry it.
    """
    if policy == ResolutionPolicy.A_WINS:
        return _pick(pair, StoreName.AIRTABLE)
    if policy == ResolutionPolicy.B_WINS:
        return _pick(pair, StoreName.SHEETS)

    a, b = pair.airtable, pair.sheets
    if a.last_modified_known and b.last_modified_known:
        if a.last_modified > b.last_modified:
            return _pick(pair, StoreName.AIRTABLE)
        if b.last_modified > a.last_modified:
            return _pick(pair, StoreName.SHEETS)
    if a.knows("approved") and b.knows("approved"):
        if a.approved and not b.approved:
            return _pick(pair, StoreName.AIRTABLE)
        if b.approved and not a.approved:
            return _pick(pair, StoreName.SHEETS)
    return _pick(pair, master)
