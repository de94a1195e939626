"""Store adapter factory and registry."""

from __future__ import annotations

from blogsync.content.models import StoreName
from blogsync.stores.airtable import AirtableConfig, AirtableStore
from blogsync.stores.base import ContentStoreAdapter, IdentityLookup
from blogsync.stores.cache import RecordCache
from blogsync.stores.sheets import SheetsConfig, SheetsStore


def create_store(
    store: StoreName | str,
    *,
    airtable_config: AirtableConfig | None = None,
    sheets_config: SheetsConfig | None = None,
    cache_ttl_seconds: float = 300.0,
) -> ContentStoreAdapter:
    """Create an adapter for the given store.

    Args:
        store: Which backing store.
        airtable_config: Settings for Airtable; read from the environment if omitted.
        sheets_config: Settings for Google Sheets; read from the environment if omitted.
        cache_ttl_seconds: Lifetime of the adapter's record cache.

    Returns:
        A ContentStoreAdapter owning its own RecordCache.

    Raises:
        ValueError: If the store is unknown.
    """
    if isinstance(store, str):
        store = StoreName(store)

    cache = RecordCache(ttl_seconds=cache_ttl_seconds)
    if store is StoreName.AIRTABLE:
        return AirtableStore(airtable_config or AirtableConfig.from_env(), cache=cache)
    if store is StoreName.SHEETS:
        return SheetsStore(sheets_config or SheetsConfig.from_env(), cache=cache)

    raise ValueError(f"Unknown store: {store!r}")


__all__ = [
    "AirtableConfig",
    "AirtableStore",
    "ContentStoreAdapter",
    "IdentityLookup",
    "RecordCache",
    "SheetsConfig",
    "SheetsStore",
    "create_store",
]
