"""
dotstrap — CLI entrypoint.

Usage:
    dotstrap --help
    dotstrap setup               # symlink dotfiles only
    dotstrap setup --install     # full bootstrap
    dotstrap config check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from dotstrap import __version__
from dotstrap.core.observability.logging_config import (
    LOG_FILE_ENV_VAR,
    LOG_FILE_LEVEL_ENV_VAR,
    resolve_level,
    setup_logging,
)


@click.group()
@click.version_option(version=__version__, prog_name="dotstrap")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to dotfiles.yml (default: $DOTSTRAP_CONFIG or auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """dotstrap — bootstrap a machine from a dotfiles checkout."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(LOG_FILE_ENV_VAR),
        log_file_level=os.environ.get(LOG_FILE_LEVEL_ENV_VAR),
        quiet_third_party=not debug,
    )


@cli.command()
@click.option("--install", is_flag=True, help="Install packages, tools and plugins too.")
@click.option("--dry-run", is_flag=True, help="Plan and validate but don't execute.")
@click.option("--mock", is_flag=True, help="Use mock adapter (no real execution).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def setup(ctx: click.Context, install: bool, dry_run: bool, mock: bool, as_json: bool) -> None:
    """Link dotfiles into $HOME, optionally installing everything first.

    Examples:

        dotstrap setup

        dotstrap setup --install

        dotstrap setup --install --dry-run
    """
    from dotstrap.core.use_cases.setup import run_setup

    quiet = ctx.obj.get("quiet", False)
    verbose = ctx.obj.get("verbose", False)

    def on_start(action) -> None:
        if not quiet and action.description:
            click.secho(f"==> {action.description}...", fg="cyan")

    def on_receipt(action, receipt) -> None:
        if receipt.ok:
            if not quiet:
                click.secho(f"   ✓ {receipt.message}", fg="green")
        elif receipt.failed:
            click.secho(f"   ✗ {receipt.message}", fg="red")
        elif not quiet:
            click.secho(f"   ⊘ {receipt.message}", fg="yellow")
        if verbose and receipt.output and not receipt.failed:
            for line in receipt.output.strip().split("\n")[:10]:
                click.echo(f"     │ {line}")

    if as_json:
        result = run_setup(
            config_path=ctx.obj.get("config_path"),
            install=install,
            dry_run=dry_run,
            mock_mode=mock,
        )
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error_count:
            sys.exit(1)
        return

    mode_label = "[dry-run] " if dry_run else "[mock] " if mock else ""
    what = "full setup" if install else "linking dotfiles"
    if not quiet:
        click.secho(f"\n⚡ {mode_label}dotstrap — {what}", fg="cyan", bold=True)
        click.echo()

    result = run_setup(
        config_path=ctx.obj.get("config_path"),
        install=install,
        dry_run=dry_run,
        mock_mode=mock,
        on_start=on_start,
        on_receipt=on_receipt,
    )

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    # Summary
    click.echo()
    if result.error_count == 0:
        click.secho("✅ Setup complete!", fg="green", bold=True)
    else:
        click.secho(f"⚠️  Setup finished with {result.error_count} error(s)", fg="yellow", bold=True)

    if result.links and not quiet:
        click.echo()
        click.secho("   Symlinks:", fg="white", bold=True)
        for link in result.links:
            if link.points_to:
                click.echo(f"     {link.target} -> {link.points_to}")
            else:
                click.echo(f"     {link.target} (not a symlink)")

    if result.backup_dir_exists and not quiet:
        click.echo()
        click.echo(f"   Backups saved to: {result.backup_dir}")

    if not install and not dry_run and not quiet:
        click.echo()
        click.echo("   Run 'dotstrap setup --install' to install packages and plugins too.")

    click.echo()
    if result.error_count:
        sys.exit(1)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show link status, backups and the last setup run."""
    from dotstrap.core.use_cases.status import get_status

    result = get_status(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    manifest = result.manifest
    assert manifest is not None  # guaranteed after error check above

    if not ctx.obj.get("quiet", False):
        click.secho(f"\n📋 {manifest.name}", fg="cyan", bold=True)
        click.echo(f"   {result.dotfiles_root}")
        click.echo()

    click.secho(
        f"   Links: {result.linked_count}/{len(result.links)} linked",
        fg="white",
        bold=True,
    )
    markers = {
        "linked": ("✓", "green", ""),
        "foreign": ("✗", "red", "points elsewhere"),
        "not_symlink": ("✗", "red", "regular file, not linked"),
        "missing": ("⊘", "yellow", "missing"),
    }
    for link in result.links:
        marker, color, note = markers.get(link.state, ("?", "white", link.state))
        click.secho(f"     {marker} {link.target}", fg=color, nl=False)
        if link.state == "foreign":
            click.echo(f"  ({note}: {link.points_to})")
        elif note:
            click.echo(f"  ({note})")
        else:
            click.echo()

    click.echo()
    click.echo(f"   Backups: {result.backup_count} in {result.backup_dir}")

    if result.state and result.state.last_operation.operation_id:
        op = result.state.last_operation
        click.echo()
        click.secho("   Last operation:", fg="white", bold=True)
        status_color = {"ok": "green", "partial": "yellow", "failed": "red"}.get(
            op.status, "white"
        )
        click.echo(f"     setup ({op.mode}) — ", nl=False)
        click.secho(op.status, fg=status_color)
        click.echo(
            f"     {op.steps_succeeded} ok, {op.steps_failed} failed, "
            f"{op.steps_skipped} skipped"
        )
        if op.ended_at:
            click.echo(f"     at {op.ended_at}")

    if len(result.recent_runs) > 1:
        click.echo()
        click.secho("   Recent runs:", fg="white", bold=True)
        for entry in reversed(result.recent_runs):
            click.echo(f"     {entry.timestamp}  {entry.mode:<7} {entry.status}")

    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def detect(ctx: click.Context, as_json: bool) -> None:
    """Detect the OS, package manager and installed tools."""
    from dotstrap.core.use_cases.detect import run_detect

    result = run_detect(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    info = result.platform
    assert info is not None

    click.secho("\n🔍 Platform", fg="cyan", bold=True)
    label = info.distro or f"{info.system} {info.release}"
    click.echo(f"   OS: {label} ({info.machine})")
    if info.wsl:
        click.echo("   WSL: yes")
    click.echo(f"   Package manager: {info.package_manager or 'none'}")
    click.echo(f"   Homebrew: {info.brew or 'not installed'}")
    click.echo(f"   Login shell: {info.login_shell or 'unknown'}")
    if info.is_root:
        click.secho("   Running as root (sudo not used)", fg="yellow")
    click.echo()

    click.secho("   Tools:", fg="white", bold=True)
    for tool in info.tools:
        if tool["available"]:
            click.secho(f"   ✓ {tool['label']} ", fg="green", nl=False)
            click.echo(f"→ {tool['path']}")
        else:
            click.secho(f"   ✗ {tool['label']} ", fg="red", nl=False)
            click.echo("(not found)")

    click.echo()
    click.secho("   Adapters:", fg="white", bold=True)
    for name, adapter in result.adapters.items():
        if adapter["available"]:
            click.secho(f"   ✓ {name}", fg="green")
        else:
            click.secho(f"   ✗ {name} (unavailable)", fg="red")

    click.echo()


@cli.group()
def config() -> None:
    """Manifest configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate dotfiles.yml."""
    from dotstrap.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.manifest is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Manifest: {result.manifest.name}")
        click.echo(f"   Links: {len(result.manifest.links)}")
        click.echo(f"   Installers: {len(result.manifest.installers)}")
        click.echo(f"   Plugins: {len(result.manifest.plugins)}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


@cli.command()
@click.argument("directory", required=False, type=click.Path(file_okay=False))
@click.option("--force", is_flag=True, help="Overwrite an existing dotfiles.yml.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def init(directory: str | None, force: bool, as_json: bool) -> None:
    """Write a starter dotfiles.yml into DIRECTORY (default: current directory)."""
    from dotstrap.core.use_cases.init import init_manifest

    result = init_manifest(Path(directory) if directory else None, force=force)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    verb = "Overwrote" if result.overwritten else "Created"
    click.secho(f"✅ {verb} {result.path}", fg="green", bold=True)
    click.echo("   Next: dotstrap config check && dotstrap setup")


# ── Register sub-command groups from dotstrap/ui/cli/ ─────────────

from dotstrap.ui.cli.backups import backups  # noqa: E402

cli.add_command(backups)


if __name__ == "__main__":
    cli()
