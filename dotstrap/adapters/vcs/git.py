"""
Git adapter — clone plugin repositories.

Uses the git CLI — never raw API calls.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from dotstrap.adapters.base import Adapter, ExecutionContext
from dotstrap.adapters.shell.command import run_command
from dotstrap.core.models.action import Receipt

logger = logging.getLogger(__name__)


class GitAdapter(Adapter):
    """Git operations.

    Action params:
        operation (str): Currently only 'clone'.
        repo (str): Repository URL (for 'clone').
        dest (str): Absolute destination directory (for 'clone').
        depth (int): Optional shallow clone depth.
        timeout (int): Timeout in seconds (default: 300).
    """

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "")
        if operation != "clone":
            return False, f"Unknown operation '{operation}'. Valid: clone"

        for key in ("repo", "dest"):
            if not context.params.get(key):
                return False, f"Missing required param: '{key}'"

        dest = Path(context.params["dest"])
        if dest.is_dir():
            if any(dest.iterdir()):
                return False, f"Destination already exists and is not empty: {dest}"
        elif dest.exists():
            return False, f"Destination exists and is not a directory: {dest}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        return self._clone(context)

    def _clone(self, ctx: ExecutionContext) -> Receipt:
        repo = ctx.params["repo"]
        dest = Path(ctx.params["dest"])
        depth = ctx.params.get("depth")

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Cannot create {dest.parent}: {e}",
            )

        args = ["git", "clone"]
        if depth:
            args += ["--depth", str(depth)]
        args += [repo, str(dest)]

        result = run_command(args, timeout=ctx.params.get("timeout", 300))
        if not result["ok"]:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=result["error"],
                metadata={"repo": repo, "dest": str(dest)},
            )

        logger.info("Cloned %s into %s", repo, dest)
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=result.get("stderr", ""),  # git clone reports progress on stderr
            metadata={"repo": repo, "dest": str(dest)},
        )
