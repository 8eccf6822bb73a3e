"""
CLI commands for backups.

Thin wrappers over ``dotstrap.core.use_cases.backups``.
"""

from __future__ import annotations

import json
import sys
from datetime import datetime

import click


@click.group()
def backups() -> None:
    """Backups — files setup moved aside before linking."""


@backups.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, as_json: bool) -> None:
    """List backed-up files, newest first."""
    from dotstrap.core.use_cases.backups import get_backups

    result = get_backups(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    if not result.entries:
        click.secho(f"No backups in {result.backup_dir}", fg="yellow")
        return

    click.secho(f"\n💾 Backups in {result.backup_dir}", fg="cyan", bold=True)
    for entry in result.entries:
        when = datetime.fromtimestamp(entry["mtime"]).strftime("%Y-%m-%d %H:%M:%S")
        kind = "/" if entry["is_dir"] else ""
        click.echo(f"   {when}  {entry['name']}{kind}")
    click.echo()
