"""Administrative commands, available as ``flask --app leave_tracker <command>``."""

from __future__ import annotations

import datetime as dt
import shutil

import click
from flask import current_app
from flask.cli import with_appcontext


@click.command("clear-entries")
@click.option("--no-backup", is_flag=True, help="Do not copy the current file first.")
@with_appcontext
def clear_entries_command(no_backup: bool) -> None:
    """Remove every leave entry, keeping a timestamped backup."""
    store = current_app.extensions["leave_tracker"]["store"]
    if not store.path.exists():
        click.echo(f"Entries file not found at {store.path}; nothing to clear.")
        return

    with store.locked():
        if not no_backup:
            stamp = dt.datetime.now().strftime("%Y%m%d_%H%M%S")
            backup_path = store.path.with_name(f"{store.path.stem}_backup_{stamp}.json")
            shutil.copy2(store.path, backup_path)
            click.echo(f"Backup created: {backup_path}")
        store.save_all([])
    click.echo("All entries cleared.")


__all__ = ["clear_entries_command"]
