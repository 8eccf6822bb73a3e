"""
Manifest model — what a dotfiles checkout wants on this machine.

Loaded from dotfiles.yml. Every section is optional; the defaults
describe the stock setup (zsh + oh-my-zsh, tmux + TPM, Neovim, nvm).
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

HOMEBREW_INSTALL_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
OHMYZSH_INSTALL_URL = "https://raw.githubusercontent.com/ohmyzsh/ohmyzsh/master/tools/install.sh"
NVM_INSTALL_URL = "https://raw.githubusercontent.com/nvm-sh/nvm/v0.40.1/install.sh"


class LinkSpec(BaseModel):
    """A dotfile to symlink: ``source`` (relative to the dotfiles root) → ``target``."""

    source: str
    target: str


class HomebrewSpec(BaseModel):
    """Homebrew bootstrap and the formulae installed through it."""

    enabled: bool = True
    install_url: str = HOMEBREW_INSTALL_URL
    prefixes: list[str] = Field(
        default_factory=lambda: ["/home/linuxbrew/.linuxbrew", "/opt/homebrew"]
    )
    packages: list[str] = Field(
        default_factory=lambda: ["vim", "neovim", "tmux", "autojump"]
    )


class InstallerSpec(BaseModel):
    """A tool installed by piping a remote script into a shell.

    The step counts as done when ``creates`` exists or ``provides``
    is on PATH.
    """

    name: str
    url: str
    interpreter: Literal["sh", "bash", "zsh"] = "bash"
    args: list[str] = Field(default_factory=list)
    creates: str | None = None
    provides: str | None = None
    env: dict[str, str] = Field(default_factory=dict)


class PluginSpec(BaseModel):
    """A plugin repository cloned with git."""

    name: str
    repo: str
    dest: str


class ShellSpec(BaseModel):
    login_shell: str | None = "zsh"
    shells_file: str = "/etc/shells"


class TmuxSpec(BaseModel):
    plugin_path: str = "~/.tmux/plugins"
    install_plugins: bool = True


def _default_links() -> list[LinkSpec]:
    return [
        LinkSpec(source=".zshrc", target="~/.zshrc"),
        LinkSpec(source=".vimrc", target="~/.vimrc"),
        LinkSpec(source=".tmux.conf", target="~/.tmux.conf"),
        LinkSpec(source="nvim", target="~/.config/nvim"),
    ]


def _default_system_packages() -> dict[str, list[str]]:
    return {
        "apt": ["zsh", "git", "curl", "build-essential"],
        "dnf": ["zsh", "git", "curl", "gcc", "make"],
    }


def _default_installers() -> list[InstallerSpec]:
    return [
        InstallerSpec(
            name="oh-my-zsh",
            url=OHMYZSH_INSTALL_URL,
            interpreter="sh",
            args=["--unattended"],
            creates="~/.oh-my-zsh",
        ),
        InstallerSpec(
            name="nvm",
            url=NVM_INSTALL_URL,
            interpreter="bash",
            creates="~/.nvm",
        ),
    ]


def _default_plugins() -> list[PluginSpec]:
    return [
        PluginSpec(
            name="zsh-autosuggestions",
            repo="https://github.com/zsh-users/zsh-autosuggestions",
            dest="${ZSH_CUSTOM:-~/.oh-my-zsh/custom}/plugins/zsh-autosuggestions",
        ),
        PluginSpec(
            name="TPM",
            repo="https://github.com/tmux-plugins/tpm",
            dest="~/.tmux/plugins/tpm",
        ),
    ]


class Manifest(BaseModel):
    """Root manifest — loaded from dotfiles.yml."""

    version: int = 1
    name: str = "dotfiles"
    backup_dir: str = "~/.dotfiles-backup"

    links: list[LinkSpec] = Field(default_factory=_default_links)
    system_packages: dict[str, list[str]] = Field(default_factory=_default_system_packages)
    homebrew: HomebrewSpec = Field(default_factory=HomebrewSpec)
    installers: list[InstallerSpec] = Field(default_factory=_default_installers)
    plugins: list[PluginSpec] = Field(default_factory=_default_plugins)
    shell: ShellSpec = Field(default_factory=ShellSpec)
    tmux: TmuxSpec = Field(default_factory=TmuxSpec)
