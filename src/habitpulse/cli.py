"""Command-line entry points for HabitPulse maintenance jobs."""

from __future__ import annotations

import time

import click

from .config import BaseConfig
from .context import create_app_context
from .errors import HabitPulseError
from .lib.dates import parse_date_key, today_key
from .logging_config import setup_logging
from .scheduler import create_scheduler


def _validate_date(ctx, param, value):
    if value is None:
        return None
    try:
        parse_date_key(value)
    except HabitPulseError as exc:
        raise click.BadParameter(str(exc)) from exc
    return value


@click.group()
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory for the database and logs (defaults to HABITPULSE_DATA_DIR).",
)
@click.pass_context
def main(ctx: click.Context, data_dir: str | None) -> None:
    """HabitPulse maintenance commands."""

    config = BaseConfig(data_dir=data_dir)
    setup_logging(config)
    ctx.obj = create_app_context(config)


@main.command("snapshot")
@click.option("--date", "snapshot_date", callback=_validate_date, help="Day to snapshot (YYYY-MM-DD).")
@click.option("--user-id", type=int, default=None, help="Only snapshot this user's habits.")
@click.pass_obj
def snapshot(app, snapshot_date: str | None, user_id: int | None) -> None:
    """Write streak snapshots for every habit."""

    snapshot_date = snapshot_date or today_key()
    if user_id is None:
        result = app.archiver.snapshot_all_users(snapshot_date=snapshot_date)
    else:
        result = app.archiver.snapshot_all_for_user(user_id=user_id, snapshot_date=snapshot_date)

    click.echo(f"Snapshots for {snapshot_date}: {result.snapshots} written, {result.skipped} skipped.")
    for item_id, error in result.failed:
        click.echo(f"  failed {item_id}: {error}", err=True)
    if not result.ok:
        raise SystemExit(1)


@main.command("purge-cache")
@click.pass_obj
def purge_cache(app) -> None:
    """Delete expired weekly/monthly stats cache rows."""

    removed = app.stats.purge_expired()
    click.echo(f"Purged {removed} expired cache rows.")


@main.command("scheduler")
@click.pass_obj
def scheduler(app) -> None:
    """Run the snapshot and purge jobs until interrupted."""

    runner = create_scheduler(app, auto_start=True)
    click.echo("Scheduler running; press Ctrl+C to stop.")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        runner.stop()


if __name__ == "__main__":  # pragma: no cover
    main()
