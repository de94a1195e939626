"""CLI interface for blog-sync."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from blogsync.config import BlogSyncConfig, load_config, merge_cli_overrides
from blogsync.content.models import StoreName, visible_posts
from blogsync.errors import BlogSyncError
from blogsync.stores import create_store
from blogsync.sync import (
    ResolutionPolicy,
    SyncDirection,
    SyncOrchestrator,
    SyncReport,
    SyncStatus,
    load_sync_status,
    save_sync_status,
)

app = typer.Typer(
    name="blog-sync",
    help="Keep the Airtable and Google Sheets blog catalogs in step.",
)

console = Console()
err_console = Console(stderr=True)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to a .blogsync.toml file."),
]
PolicyOption = Annotated[
    Optional[ResolutionPolicy],
    typer.Option("--policy", help="Conflict policy for matched posts."),
]
DirectionOption = Annotated[
    Optional[SyncDirection],
    typer.Option("--direction", help="Which directions may create posts."),
]
MasterOption = Annotated[
    Optional[StoreName],
    typer.Option("--master", help="Store that wins when nothing else decides a conflict."),
]
BatchSizeOption = Annotated[
    Optional[int],
    typer.Option("--batch-size", min=1, help="Records written per batch."),
]
DelayOption = Annotated[
    Optional[float],
    typer.Option("--delay", min=0, help="Seconds to wait between write batches."),
]
StatusPathOption = Annotated[
    Optional[Path],
    typer.Option("--status-path", help="Where the last-run status file lives."),
]
ApprovedOnlyOption = Annotated[
    Optional[bool],
    typer.Option("--approved-only/--all-posts", help="Read only approved Airtable posts."),
]
DryRunOption = Annotated[
    bool,
    typer.Option("--dry-run", help="Plan writes without touching either store."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", help="Enable debug logging."),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from blogsync import __version__

        console.print(f"blog-sync {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Blog Sync - reconcile blog posts between Airtable and Google Sheets."""
    pass


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load(
    config_path: Path | None,
    policy: ResolutionPolicy | None = None,
    direction: SyncDirection | None = None,
    master: StoreName | None = None,
    batch_size: int | None = None,
    delay: float | None = None,
    status_path: Path | None = None,
    approved_only: bool | None = None,
) -> BlogSyncConfig:
    config = load_config(config_path)
    return merge_cli_overrides(
        config,
        sync_policy=policy.value if policy else None,
        sync_direction=direction.value if direction else None,
        sync_master=master.value if master else None,
        batch_size=batch_size,
        inter_batch_delay=delay,
        status_path=str(status_path) if status_path else None,
        approved_only=approved_only,
    )


def build_orchestrator(config: BlogSyncConfig) -> SyncOrchestrator:
    """Wire both store adapters and the engine from *config*."""
    ttl = config.sync.cache_ttl_seconds
    airtable = create_store(
        StoreName.AIRTABLE, airtable_config=config.to_airtable_config(), cache_ttl_seconds=ttl
    )
    sheets = create_store(
        StoreName.SHEETS, sheets_config=config.to_sheets_config(), cache_ttl_seconds=ttl
    )
    return SyncOrchestrator(airtable, sheets, settings=config.to_sync_settings())


def _report(report: SyncReport, config: BlogSyncConfig) -> None:
    """Print the run summary, persist the status file, and set the exit code."""
    for warning in report.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")
    for error in report.errors:
        console.print(f"[red]Failed:[/red] {error.title} → {error.target}: {error.error}")
    if report.dry_run:
        console.print(f"[cyan]Dry run:[/cyan] {report.planned} write(s) planned")

    console.print(f"[green]{report.summary()}[/green]")

    save_sync_status(SyncStatus.from_report(report), config.status_path)

    if report.both_unreachable:
        console.print("[red]Error:[/red] Neither store could be reached.")
        raise typer.Exit(1)


@app.command(name="sync-bidirectional")
def sync_bidirectional_cmd(
    config_path: ConfigOption = None,
    policy: PolicyOption = None,
    direction: DirectionOption = None,
    master: MasterOption = None,
    batch_size: BatchSizeOption = None,
    delay: DelayOption = None,
    status_path: StatusPathOption = None,
    approved_only: ApprovedOnlyOption = None,
    dry_run: DryRunOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Reconcile both stores: resolve conflicts and create missing posts."""
    _setup_logging(verbose)
    config = _load(
        config_path,
        policy,
        direction,
        master=master,
        batch_size=batch_size,
        delay=delay,
        status_path=status_path,
        approved_only=approved_only,
    )
    orchestrator = build_orchestrator(config)
    report = asyncio.run(orchestrator.sync_bidirectional(dry_run=dry_run))
    _report(report, config)


def _one_way(source: StoreName, target: StoreName, config: BlogSyncConfig, dry_run: bool) -> None:
    orchestrator = build_orchestrator(config)
    report = asyncio.run(orchestrator.sync_one_way(source, target, dry_run=dry_run))
    _report(report, config)


@app.command(name="sync-a-to-b")
def sync_a_to_b_cmd(
    config_path: ConfigOption = None,
    batch_size: BatchSizeOption = None,
    delay: DelayOption = None,
    status_path: StatusPathOption = None,
    approved_only: ApprovedOnlyOption = None,
    dry_run: DryRunOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Copy posts missing from Google Sheets over from Airtable."""
    _setup_logging(verbose)
    config = _load(
        config_path,
        batch_size=batch_size,
        delay=delay,
        status_path=status_path,
        approved_only=approved_only,
    )
    _one_way(StoreName.AIRTABLE, StoreName.SHEETS, config, dry_run)


@app.command(name="sync-b-to-a")
def sync_b_to_a_cmd(
    config_path: ConfigOption = None,
    batch_size: BatchSizeOption = None,
    delay: DelayOption = None,
    status_path: StatusPathOption = None,
    dry_run: DryRunOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Copy posts missing from Airtable over from Google Sheets."""
    _setup_logging(verbose)
    config = _load(config_path, batch_size=batch_size, delay=delay, status_path=status_path)
    _one_way(StoreName.SHEETS, StoreName.AIRTABLE, config, dry_run)


@app.command()
def status(
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Show how far apart the two stores are. Writes nothing."""
    _setup_logging(verbose)
    config = _load(config_path)
    report = asyncio.run(build_orchestrator(config).get_status())
    typer.echo(report.model_dump_json(indent=2))


@app.command(name="last-run")
def last_run(
    config_path: ConfigOption = None,
    status_path: StatusPathOption = None,
) -> None:
    """Print the outcome of the most recent sync run."""
    config = _load(config_path, status_path=status_path)
    saved = load_sync_status(config.status_path)
    if saved is None:
        console.print(f"[yellow]No sync status found at {config.status_path}[/yellow]")
        raise typer.Exit(0)
    typer.echo(saved.model_dump_json(indent=2))


@app.command()
def posts(
    store: Annotated[
        StoreName,
        typer.Option("--store", "-s", help="Store to read posts from."),
    ] = StoreName.AIRTABLE,
    config_path: ConfigOption = None,
    approved_only: ApprovedOnlyOption = None,
    verbose: VerboseOption = False,
) -> None:
    """List posts whose publish date has arrived, newest first."""
    _setup_logging(verbose)
    config = _load(config_path, approved_only=approved_only)
    orchestrator = build_orchestrator(config)
    try:
        records = asyncio.run(orchestrator.store(store).fetch_all())
    except BlogSyncError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc
    shown = visible_posts(records)
    payload = [r.model_dump(mode="json") for r in shown]
    typer.echo(json.dumps(payload, indent=2))


if __name__ == "__main__":
    app()
