"""CLI interface for vidserve."""

import logging
import sys
from pathlib import Path

import click
import uvicorn

from vidserve.app import Application, build_application, create_app
from vidserve.config import Config
from vidserve.database import Database, Store
from vidserve.errors import MountError, NotFoundError, ScanInProgressError, StoreError
from vidserve.scanner import format_duration

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@click.group()
@click.option("--log-level", type=str, default=None, help="Logging level (default from config)")
@click.option(
    "--decryptor",
    type=str,
    default=None,
    metavar="MODULE:FUNCTION",
    help="Function that decrypts stored network share passwords "
    "(default from VIDSERVE_PASSWORD_DECRYPTOR). Network folders cannot be mounted without one.",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None, decryptor: str | None) -> None:
    ctx.ensure_object(dict)
    config = Config.from_env()
    if log_level:
        config.log_level = log_level.upper()
    if decryptor:
        config.network.password_decryptor = decryptor
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)
    ctx.obj["config"] = config


@cli.command()
@click.option("--host", type=str, default=None, help="Interface to bind")
@click.option("--port", type=int, default=None, help="Port to listen on")
@click.option("--no-initial-scan", is_flag=True, help="Skip scanning every folder at startup")
@click.option("--database", type=click.Path(path_type=Path), help="Path to database file")
@click.pass_context
def serve(
    ctx: click.Context,
    host: str | None,
    port: int | None,
    no_initial_scan: bool,
    database: Path | None,
) -> None:
    """Run the streaming server and the scan scheduler."""
    config: Config = ctx.obj["config"]
    if database:
        config.database_path = database
    if no_initial_scan:
        config.scanner.scan_on_startup = False

    application = _build_application(config)
    server = uvicorn.Server(
        uvicorn.Config(
            create_app(application),
            host=host or config.server.host,
            port=port or config.server.port,
            timeout_graceful_shutdown=config.server.graceful_shutdown_seconds,
            log_level=config.log_level.lower(),
        )
    )
    server.run()


@cli.command()
@click.argument("location_id", type=int)
@click.option("--database", type=click.Path(path_type=Path), help="Path to database file")
@click.pass_context
def scan(ctx: click.Context, location_id: int, database: Path | None) -> None:
    """Scan one watch folder now."""
    config: Config = ctx.obj["config"]
    if database:
        config.database_path = database

    application = _build_application(config)
    try:
        result = application.scheduler.trigger_scan(location_id)
    except (NotFoundError, ScanInProgressError, MountError, StoreError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)
    finally:
        application.close()

    click.echo()
    click.echo("Scan Complete:")
    click.echo(f"  Files found: {result.files_found:,}")
    click.echo(f"  Processed (new or changed): {result.processed_count:,}")
    click.echo(f"  Unchanged: {result.skipped_count:,}")
    click.echo(f"  Indexed: {result.indexed_count:,}")
    click.echo(f"  Removed: {result.removed_count:,}")
    click.echo(f"  Duration: {format_duration(result.duration_ms / 1000)}")


@cli.command()
@click.option("--limit", type=int, default=10, help="Number of scans to show")
@click.option("--database", type=click.Path(path_type=Path), help="Path to database file")
@click.pass_context
def status(ctx: click.Context, limit: int, database: Path | None) -> None:
    """Show watch folders and recent scan history."""
    config: Config = ctx.obj["config"]
    db_path = database or config.database_path

    if not db_path.exists():
        click.echo("No database found. Run 'vidserve serve' or 'vidserve scan' first.")
        return

    with Database(db_path) as db:
        store = Store(db)
        locations = store.get_enabled_watch_folders()
        history = store.get_scan_history(limit=limit)

    click.echo("\nWatch Folders:")
    click.echo("-" * 80)
    if not locations:
        click.echo("No enabled watch folders.")
    for location in locations:
        name = _truncate(location.display_name, 34)
        click.echo(
            f"{location.id:>4} "
            f"{name:<35} "
            f"{location.kind.value:<8} "
            f"{location.scan_interval:<20}"
        )

    click.echo("\nRecent Scans:")
    click.echo("-" * 80)
    if not history:
        click.echo("No scans recorded.")
        return

    header = "Folder".rjust(6) + "  " + "When".ljust(21) + "Found".rjust(8)
    header += "Processed".rjust(11) + "Skipped".rjust(9) + "Errors".rjust(8) + "Time".rjust(10)
    click.echo(header)
    click.echo("-" * 80)
    for record in history:
        folder = str(record.watch_folder_id) if record.watch_folder_id is not None else "-"
        click.echo(
            f"{folder:>6}  "
            f"{record.timestamp or 'unknown':<21}"
            f"{record.files_found:>8,}"
            f"{record.processed_count:>11,}"
            f"{record.skipped_count:>9,}"
            f"{record.errors:>8}"
            f"{format_duration(record.duration_ms / 1000):>10}"
        )


def _build_application(config: Config) -> Application:
    try:
        return build_application(config)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _truncate(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return "..." + text[-(max_len - 3) :]


def main() -> None:
    """Entry point for the CLI."""
    cli(standalone_mode=True)  # pylint: disable=no-value-for-parameter


if __name__ == "__main__":
    main()
