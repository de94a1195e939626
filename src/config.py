"""Unified configuration loaded from .blogsync.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from blogsync.content.models import StoreName
from blogsync.stores.airtable import AirtableConfig
from blogsync.stores.sheets import SheetsConfig
from blogsync.sync.models import ResolutionPolicy, SyncDirection, SyncSettings
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".blogsync.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
]
GLOBAL_CONFIG_PATH = Path.home() / ".config" / "blogsync" / "config.toml"


class AirtableSectionConfig(BaseModel):
    """[airtable] section."""

    api_key: str = ""
    base_id: str = ""
    table_name: str = "Table 1"
    approved_only: bool = False
    page_size: int = 100
    last_modified_field: str = "Last Modified"
    write_last_modified: bool = False
    timeout: float = 30.0


class SheetsSectionConfig(BaseModel):
    """[sheets] section."""

    api_key: str = ""
    access_token: str = ""
    spreadsheet_id: str = ""
    sheet_name: str = "Content"
    gid: str = "0"
    read_range: str = "A:Z"
    timeout: float = 30.0


class SyncSectionConfig(BaseModel):
    """[sync] section."""

    policy: ResolutionPolicy = ResolutionPolicy.NEWEST_WINS
    master_source: StoreName = StoreName.AIRTABLE
    direction: SyncDirection = SyncDirection.BOTH
    batch_size: int = Field(default=10, ge=1)
    inter_batch_delay: float = Field(default=2.0, ge=0)
    cache_ttl_seconds: float = 300.0


class StatusSectionConfig(BaseModel):
    """[status] section."""

    path: str = "./logs/sync-status.json"


class BlogSyncConfig(BaseModel):
    """Top-level configuration model for blog-sync."""

    airtable: AirtableSectionConfig = Field(default_factory=AirtableSectionConfig)
    sheets: SheetsSectionConfig = Field(default_factory=SheetsSectionConfig)
    sync: SyncSectionConfig = Field(default_factory=SyncSectionConfig)
    status: StatusSectionConfig = Field(default_factory=StatusSectionConfig)

    def to_airtable_config(self) -> AirtableConfig:
        """Convert to AirtableConfig for the Airtable adapter."""
        return AirtableConfig(**self.airtable.model_dump())

    def to_sheets_config(self) -> SheetsConfig:
        """Convert to SheetsConfig for the Google Sheets adapter."""
        return SheetsConfig(**self.sheets.model_dump())

    def to_sync_settings(self) -> SyncSettings:
        """Convert to SyncSettings for the orchestrator."""
        return SyncSettings(
            policy=self.sync.policy,
            master_source=self.sync.master_source,
            direction=self.sync.direction,
            batch_size=self.sync.batch_size,
            inter_batch_delay=self.sync.inter_batch_delay,
        )

    @property
    def status_path(self) -> Path:
        return Path(self.status.path)


def load_config(path: str | Path | None = None) -> BlogSyncConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .blogsync.toml in CWD
    3. ~/.config/blogsync/config.toml

    Then overlay environment variables.

    Args:
        path: Explicit path to a TOML file.

    Returns:
        Merged BlogSyncConfig.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        if not data and GLOBAL_CONFIG_PATH.exists():
            data = _load_toml(GLOBAL_CONFIG_PATH)
            logger.info("Loaded config from %s", GLOBAL_CONFIG_PATH)

    config = BlogSyncConfig.model_validate(data) if data else BlogSyncConfig()

    return _apply_env_vars(config)


def merge_cli_overrides(config: BlogSyncConfig, **cli_kwargs: object) -> BlogSyncConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was explicitly provided
    (i.e., not None).

    Args:
        config: Base config.
        **cli_kwargs: CLI flag values, e.g. ``sync_policy``, ``status_path``.

    Returns:
        Updated config with CLI overrides applied.
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "sync_policy": ("sync", "policy"),
        "sync_direction": ("sync", "direction"),
        "sync_master": ("sync", "master_source"),
        "batch_size": ("sync", "batch_size"),
        "inter_batch_delay": ("sync", "inter_batch_delay"),
        "status_path": ("status", "path"),
        "approved_only": ("airtable", "approved_only"),
    }

    for key, value in cli_kwargs.items():
        if value is None:
            continue
        if key in mapping:
            section, field = mapping[key]
            data[section][field] = value

    return BlogSyncConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: BlogSyncConfig) -> BlogSyncConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "AIRTABLE_API_KEY": ("airtable", "api_key"),
        "AIRTABLE_BLOG_BASE_ID": ("airtable", "base_id"),
        "AIRTABLE_TABLE_NAME": ("airtable", "table_name"),
        "GOOGLE_SHEETS_API_KEY": ("sheets", "api_key"),
        "GOOGLE_SHEETS_ACCESS_TOKEN": ("sheets", "access_token"),
        "BLOG_GOOGLE_SHEET_ID": ("sheets", "spreadsheet_id"),
        "BLOGSYNC_POLICY": ("sync", "policy"),
        "BLOGSYNC_DIRECTION": ("sync", "direction"),
        "BLOGSYNC_STATUS_PATH": ("status", "path"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    approved_raw = os.environ.get("AIRTABLE_APPROVED_ONLY")
    if approved_raw is not None:
        data["airtable"]["approved_only"] = approved_raw.lower() in ("true", "1", "yes")

    return BlogSyncConfig.model_validate(data)
