"""Exception types shared by the store adapters and the sync engine."""

from __future__ import annotations


class BlogSyncError(Exception):
    """Base class for all blog-sync failures."""


class StoreUnreachable(BlogSyncError):
    """A store could not be reached (network, auth, or server failure)."""

    def __init__(self, store: str, message: str) -> None:
        super().__init__(f"{store}: {message}")
        self.store = store
        self.message = message


class ConfigurationMissing(BlogSyncError):
    """A required setting for a store adapter is not configured."""

    def __init__(self, store: str, setting: str) -> None:
        super().__init__(f"{store}: {setting} not configured")
        self.store = store
        self.setting = setting


class RecordWriteFailed(BlogSyncError):
    """A single create/update was rejected by the store."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
