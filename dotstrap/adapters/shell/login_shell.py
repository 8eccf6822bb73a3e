"""
Login shell adapter — make zsh (or whatever the manifest says) the default shell.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from dotstrap.adapters.base import Adapter, ExecutionContext
from dotstrap.adapters.shell.command import run_command
from dotstrap.core.models.action import Receipt

logger = logging.getLogger(__name__)


def listed_in_shells_file(shell_path: str, shells_file: Path) -> bool:
    """Whether ``shell_path`` appears as a whole line in /etc/shells."""
    try:
        lines = shells_file.read_text(encoding="utf-8").splitlines()
    except OSError:
        return False
    return shell_path in (line.strip() for line in lines)


class LoginShellAdapter(Adapter):
    """Change the login shell with chsh.

    Action params:
        shell (str): Shell name to look up on PATH (e.g. 'zsh').
        shells_file (str): Allowed-shells file (default: /etc/shells).
    """

    @property
    def name(self) -> str:
        return "login_shell"

    def is_available(self) -> bool:
        return shutil.which("chsh") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        if not context.params.get("shell"):
            return False, "Missing required param: 'shell'"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        shell = context.params["shell"]
        shells_file = Path(context.params.get("shells_file", "/etc/shells"))
        action_id = context.action.id

        shell_path = shutil.which(shell)
        if shell_path is None:
            return Receipt.failure(
                adapter=self.name,
                action_id=action_id,
                error=f"{shell} not found on PATH",
            )

        if os.environ.get("SHELL") == shell_path:
            return Receipt.success(
                adapter=self.name,
                action_id=action_id,
                message=f"Default shell is already {shell}",
                metadata={"shell_path": shell_path, "unchanged": True},
            )

        metadata: dict = {"shell_path": shell_path}
        if not listed_in_shells_file(shell_path, shells_file):
            logger.warning("Adding %s to %s", shell_path, shells_file)
            added = run_command(
                ["tee", "-a", str(shells_file)],
                sudo=True,
                input_text=shell_path + "\n",
                timeout=60,
            )
            metadata["shells_file_updated"] = added["ok"]
            if not added["ok"]:
                # chsh may still accept it; let chsh be the judge
                logger.warning("Could not update %s: %s", shells_file, added["error"])

        changed = run_command(["chsh", "-s", shell_path], capture=False, timeout=None)
        if not changed["ok"]:
            return Receipt.failure(
                adapter=self.name,
                action_id=action_id,
                error=f"{changed['error']}; run 'chsh -s {shell_path}' manually",
                metadata=metadata,
            )

        return Receipt.success(
            adapter=self.name,
            action_id=action_id,
            message=f"Default shell changed to {shell} (takes effect on next login)",
            metadata=metadata,
        )
