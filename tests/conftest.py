"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

import subprocess
import textwrap
from pathlib import Path

import pytest


MINIMAL_MANIFEST = textwrap.dedent("""\
    name: test-dotfiles
    backup_dir: ~/.dotfiles-backup
    links:
      - source: .zshrc
        target: ~/.zshrc
      - source: .vimrc
        target: ~/.vimrc
      - source: nvim
        target: ~/.config/nvim
""")


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep the developer's own environment out of every test."""
    for var in (
        "DOTSTRAP_CONFIG",
        "DOTSTRAP_LOG_LEVEL",
        "DOTSTRAP_LOG_FILE",
        "DOTSTRAP_LOG_FILE_LEVEL",
        "ZSH_CUSTOM",
    ):
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture
def home(tmp_path: Path, monkeypatch) -> Path:
    """A fake $HOME so ~ expansion never touches the real one."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    return home_dir


@pytest.fixture
def dotfiles_dir(tmp_path: Path) -> Path:
    """A dotfiles checkout with a minimal manifest and its link sources."""
    root = tmp_path / "dotfiles"
    root.mkdir()
    (root / ".zshrc").write_text("# zshrc\n")
    (root / ".vimrc").write_text('" vimrc\n')
    (root / "nvim").mkdir()
    (root / "nvim" / "init.lua").write_text('require("config.lazy")\n')
    (root / "dotfiles.yml").write_text(MINIMAL_MANIFEST)
    return root


@pytest.fixture
def manifest_path(dotfiles_dir: Path) -> Path:
    return dotfiles_dir / "dotfiles.yml"


class FakeRun:
    """Stand-in for ``subprocess.run`` that records argv lists.

    ``fail(prefix, stderr)`` makes every command whose argv starts with
    ``prefix`` exit 1.
    """

    def __init__(self):
        self.calls: list[dict] = []
        self._failures: list[tuple[list[str], str]] = []
        self.stdout = "echo fake-installer"

    @property
    def argvs(self) -> list[list[str]]:
        return [c["cmd"] for c in self.calls]

    def fail(self, *prefix: str, stderr: str = "boom") -> None:
        self._failures.append((list(prefix), stderr))

    def __call__(self, cmd, **kwargs):
        self.calls.append({"cmd": list(cmd), **kwargs})
        for prefix, stderr in self._failures:
            if list(cmd[: len(prefix)]) == prefix:
                return subprocess.CompletedProcess(cmd, 1, stdout="", stderr=stderr)
        return subprocess.CompletedProcess(cmd, 0, stdout=self.stdout, stderr="")


@pytest.fixture
def fake_run(monkeypatch) -> FakeRun:
    """Patch subprocess.run for everything that goes through run_command."""
    fake = FakeRun()
    monkeypatch.setattr("dotstrap.adapters.shell.command.subprocess.run", fake)
    return fake
