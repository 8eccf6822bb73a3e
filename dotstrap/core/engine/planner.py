"""
Setup planner — turn a manifest into an ordered list of steps.

Order matters: oh-my-zsh must exist before plugins are cloned into
its custom dir, Homebrew before brew packages, TPM before its plugins.

    install phase   system-packages → homebrew → brew-packages
                    → installer:* → plugin:*
    link phase      link:*                       (always)
    post phase      default-shell → tmux-plugins
"""

from __future__ import annotations

import logging
from pathlib import Path

from dotstrap.core.config.loader import expand_path
from dotstrap.core.engine.executor import ExecutionPlan
from dotstrap.core.models.action import Action
from dotstrap.core.models.manifest import Manifest
from dotstrap.core.services.detection import SUPPORTED_PACKAGE_MANAGERS, PlatformInfo
from dotstrap.core.services.links import resolve_link

logger = logging.getLogger(__name__)

NO_PACKAGE_MANAGER = "No supported package manager found ({})".format(
    " or ".join(SUPPORTED_PACKAGE_MANAGERS)
)


def system_package_commands(manager: str | None, packages: list[str]) -> list[list[str]]:
    """argv lists that install ``packages`` with ``manager``."""
    if not packages:
        return []
    if manager == "apt":
        return [
            ["apt-get", "update"],
            ["apt-get", "install", "-y", *packages],
        ]
    if manager == "dnf":
        return [["dnf", "install", "-y", *packages]]
    return []


def build_setup_plan(
    manifest: Manifest,
    dotfiles_root: Path,
    platform: PlatformInfo,
    install: bool,
    operation_id: str,
) -> ExecutionPlan:
    """Build the plan for ``dotstrap setup``.

    Args:
        manifest: Loaded manifest.
        dotfiles_root: Directory holding dotfiles.yml.
        platform: Detected host platform.
        install: Include install and post steps, not just links.
        operation_id: Prefix for action IDs.
    """
    plan = ExecutionPlan(operation_id=operation_id, mode="install" if install else "link")

    def action(step: str, **kwargs) -> Action:
        return Action(id=f"{operation_id}:{step}", step=step, **kwargs)

    if install:
        _plan_install(plan, action, manifest, platform)

    backup_dir = str(expand_path(manifest.backup_dir))
    for link in manifest.links:
        src, dest = resolve_link(dotfiles_root, link.source, link.target)
        plan.add(action(
            f"link:{link.target}",
            name=str(dest),
            adapter="link",
            description=f"Linking {dest}",
            params={
                "source": str(src),
                "target": str(dest),
                "backup_dir": backup_dir,
                "success_message": f"Linked: {dest} -> {src}",
                "failure_message": f"Failed to link {dest}",
            },
        ))

    if install:
        _plan_post(plan, action, manifest)

    logger.debug("Planned %d steps (%s)", plan.total_actions, plan.mode)
    return plan


def _plan_install(plan: ExecutionPlan, action, manifest: Manifest, platform: PlatformInfo) -> None:
    if manifest.system_packages:
        manager = platform.package_manager
        packages = manifest.system_packages.get(manager, []) if manager else []
        if manager is None:
            missing = NO_PACKAGE_MANAGER
        else:
            missing = f"No packages listed for '{manager}' under system_packages"
        plan.add(action(
            "system-packages",
            name="System packages",
            adapter="shell",
            description="Installing system packages",
            params={
                "commands": system_package_commands(manager, packages),
                "sudo": True,
                "capture": False,
                "missing_reason": missing,
                "success_message": "System packages installed",
                "already_message": "No system packages needed on macOS",
                "failure_message": "Failed to install system packages",
            },
            unless={"system": "Darwin"},
        ))

    brew = manifest.homebrew
    if brew.enabled:
        plan.add(action(
            "homebrew",
            name="Homebrew",
            adapter="script",
            description="Installing Homebrew",
            params={
                "url": brew.install_url,
                "interpreter": "bash",
                "activate_homebrew": brew.prefixes,
            },
            unless={"command": "brew"},
        ))
        if brew.packages:
            names = ", ".join(brew.packages)
            plan.add(action(
                "brew-packages",
                name="Brew packages",
                adapter="shell",
                description=f"Installing brew packages ({names})",
                params={
                    "commands": [["brew", "install", *brew.packages]],
                    "capture": False,
                    "success_message": "Brew packages installed",
                    "failure_message": "Failed to install brew packages",
                },
            ))

    for installer in manifest.installers:
        unless: dict[str, str] = {}
        if installer.creates:
            unless["path"] = installer.creates
        if installer.provides:
            unless["command"] = installer.provides
        plan.add(action(
            f"installer:{installer.name}",
            name=installer.name,
            adapter="script",
            description=f"Installing {installer.name}",
            params={
                "url": installer.url,
                "interpreter": installer.interpreter,
                "args": installer.args,
                "env": installer.env,
            },
            unless=unless,
        ))

    for plugin in manifest.plugins:
        dest = expand_path(plugin.dest)
        plan.add(action(
            f"plugin:{plugin.name}",
            name=plugin.name,
            adapter="git",
            description=f"Installing {plugin.name}",
            params={
                "operation": "clone",
                "repo": plugin.repo,
                "dest": str(dest),
            },
            unless={"path": str(dest)},
        ))


def _plan_post(plan: ExecutionPlan, action, manifest: Manifest) -> None:
    shell = manifest.shell.login_shell
    if shell:
        plan.add(action(
            "default-shell",
            name="Default shell",
            adapter="login_shell",
            description=f"Changing default shell to {shell}",
            params={
                "shell": shell,
                "shells_file": manifest.shell.shells_file,
                "failure_message": "Failed to change default shell",
            },
        ))

    if manifest.tmux.install_plugins:
        plugin_path = expand_path(manifest.tmux.plugin_path)
        tpm_install = plugin_path / "tpm" / "bin" / "install_plugins"
        plan.add(action(
            "tmux-plugins",
            name="Tmux plugins",
            adapter="shell",
            description="Installing tmux plugins",
            params={
                "commands": [[str(tpm_install)]],
                "env": {"TMUX_PLUGIN_MANAGER_PATH": str(plugin_path)},
                "capture": False,
                "skip_message": "TPM install script not found, skipping tmux plugin install",
                "failure_message": "Failed to install tmux plugins",
            },
            requires={"executable": str(tpm_install)},
        ))
