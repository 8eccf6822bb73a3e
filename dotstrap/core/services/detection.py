"""
Host detection — OS, package manager, Homebrew, available tools.

Read-only probes. Nothing here changes the system except
``activate_homebrew``, which only touches this process's environment.
"""

from __future__ import annotations

import logging
import os
import platform
import shutil
from dataclasses import asdict, dataclass, field
from pathlib import Path

import distro

logger = logging.getLogger(__name__)

# Package managers we know how to drive, in probe order: id → CLI
SUPPORTED_PACKAGE_MANAGERS: dict[str, str] = {
    "apt": "apt-get",
    "dnf": "dnf",
}

# Tools the dotfiles expect once setup has run
EXPECTED_TOOLS: list[dict[str, str]] = [
    {"id": "zsh", "cli": "zsh", "label": "Zsh"},
    {"id": "tmux", "cli": "tmux", "label": "tmux"},
    {"id": "neovim", "cli": "nvim", "label": "Neovim"},
    {"id": "vim", "cli": "vim", "label": "Vim"},
    {"id": "autojump", "cli": "autojump", "label": "autojump"},
    {"id": "git", "cli": "git", "label": "Git"},
    {"id": "curl", "cli": "curl", "label": "curl"},
    {"id": "brew", "cli": "brew", "label": "Homebrew"},
]


@dataclass
class PlatformInfo:
    """Snapshot of the host as seen at startup."""

    system: str = ""
    release: str = ""
    machine: str = ""
    wsl: bool = False
    distro: str | None = None
    package_manager: str | None = None
    brew: str | None = None
    login_shell: str | None = None
    is_root: bool = False
    tools: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def detect_platform(
    brew_prefixes: list[str] | None = None,
    probe: bool = False,
) -> PlatformInfo:
    """Detect the operating system and what is available on it.

    Args:
        brew_prefixes: Extra locations to look for a brew binary not on PATH.
        probe: Also check availability of every tool in EXPECTED_TOOLS.
    """
    system = platform.system()
    info = PlatformInfo(
        system=system,
        release=platform.release(),
        machine=platform.machine(),
        wsl=_detect_wsl(),
        package_manager=detect_package_manager(),
        brew=find_brew(brew_prefixes or []),
        login_shell=os.environ.get("SHELL") or None,
        is_root=is_root(),
    )
    if system == "Linux":
        info.distro = distro.name(pretty=True) or "Linux (unknown)"
    if probe:
        info.tools = probe_tools()

    logger.debug(
        "Detected %s (%s), package manager=%s, brew=%s",
        info.system, info.distro or info.release, info.package_manager, info.brew,
    )
    return info


def _detect_wsl() -> bool:
    try:
        with open("/proc/version", encoding="utf-8") as f:
            version_str = f.read().lower()
    except OSError:
        return False
    return "microsoft" in version_str or "wsl" in version_str


def detect_package_manager() -> str | None:
    """Return the first supported package manager on PATH (``apt`` or ``dnf``)."""
    for manager_id, cli in SUPPORTED_PACKAGE_MANAGERS.items():
        if shutil.which(cli):
            return manager_id
    return None


def command_available(name: str) -> bool:
    """Equivalent of ``command -v NAME``."""
    return shutil.which(name) is not None


def is_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


def sudo_prefix() -> list[str]:
    """``["sudo"]`` for regular users, nothing when already root."""
    return [] if is_root() else ["sudo"]


def find_brew(prefixes: list[str]) -> str | None:
    """Locate a brew binary on PATH or under one of the known prefixes."""
    on_path = shutil.which("brew")
    if on_path:
        return on_path
    for prefix in prefixes:
        candidate = Path(prefix) / "bin" / "brew"
        if candidate.is_file() and os.access(candidate, os.X_OK):
            return str(candidate)
    return None


def activate_homebrew(prefixes: list[str]) -> str | None:
    """Put a freshly installed Homebrew on this process's PATH.

    Mirrors what ``eval "$(brew shellenv)"`` does for a shell, so later
    steps (``brew install ...``) can find brew.

    Returns:
        The prefix that was activated, or None if no brew was found.
    """
    for prefix in prefixes:
        brew = Path(prefix) / "bin" / "brew"
        if not (brew.is_file() and os.access(brew, os.X_OK)):
            continue

        os.environ["HOMEBREW_PREFIX"] = prefix
        os.environ["HOMEBREW_CELLAR"] = f"{prefix}/Cellar"
        os.environ["HOMEBREW_REPOSITORY"] = (
            prefix if prefix == "/opt/homebrew" else f"{prefix}/Homebrew"
        )

        path_entries = os.environ.get("PATH", "").split(os.pathsep)
        new_entries = [f"{prefix}/bin", f"{prefix}/sbin"]
        os.environ["PATH"] = os.pathsep.join(
            new_entries + [p for p in path_entries if p and p not in new_entries]
        )
        logger.info("Activated Homebrew at %s", prefix)
        return prefix

    logger.warning("Homebrew not found under %s", ", ".join(prefixes))
    return None


def probe_tools(tools: list[dict[str, str]] | None = None) -> list[dict]:
    """Check availability of each expected tool."""
    results = []
    for tool in tools or EXPECTED_TOOLS:
        path = shutil.which(tool["cli"])
        results.append({
            "id": tool["id"],
            "cli": tool["cli"],
            "label": tool["label"],
            "available": path is not None,
            "path": path,
        })
    return results
