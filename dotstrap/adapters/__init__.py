"""Adapters — bindings for the external tools setup shells out to.

Public re-exports for convenient access.
"""

from dotstrap.adapters.base import Adapter, ExecutionContext
from dotstrap.adapters.mock import MockAdapter
from dotstrap.adapters.registry import AdapterRegistry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "build_default_registry",
]


def build_default_registry(mock_mode: bool = False) -> AdapterRegistry:
    """Registry with every real adapter registered."""
    from dotstrap.adapters.shell.command import ShellCommandAdapter
    from dotstrap.adapters.shell.filesystem import SymlinkAdapter
    from dotstrap.adapters.shell.login_shell import LoginShellAdapter
    from dotstrap.adapters.shell.script import ScriptInstallerAdapter
    from dotstrap.adapters.vcs.git import GitAdapter

    registry = AdapterRegistry(mock_mode=mock_mode)
    registry.register(ShellCommandAdapter())
    registry.register(ScriptInstallerAdapter())
    registry.register(GitAdapter())
    registry.register(SymlinkAdapter())
    registry.register(LoginShellAdapter())
    return registry
