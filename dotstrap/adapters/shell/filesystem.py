"""
Filesystem adapter — put dotfiles in place as symlinks.

Wraps ``backup_and_link`` in the receipt protocol so links can be
dry-run, audited, and counted like every other step.
"""

from __future__ import annotations

import logging
from pathlib import Path

from dotstrap.adapters.base import Adapter, ExecutionContext
from dotstrap.core.models.action import Receipt
from dotstrap.core.services.links import backup_and_link

logger = logging.getLogger(__name__)


class SymlinkAdapter(Adapter):
    """Symlink a dotfile, backing up anything already at the target.

    Action params:
        source (str): Absolute path inside the dotfiles checkout.
        target (str): Absolute destination path (e.g. ~/.zshrc expanded).
        backup_dir (str): Where displaced files go.
    """

    @property
    def name(self) -> str:
        return "link"

    def is_available(self) -> bool:
        return True  # filesystem is always available

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        for key in ("source", "target", "backup_dir"):
            if not context.params.get(key):
                return False, f"Missing required param: '{key}'"

        source = Path(context.params["source"])
        if not source.exists():
            return False, f"Link source does not exist: {source}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        source = Path(context.params["source"])
        target = Path(context.params["target"])
        backup_dir = Path(context.params["backup_dir"])

        try:
            outcome = backup_and_link(source, target, backup_dir)
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Filesystem error: {e}",
                metadata={"source": str(source), "target": str(target)},
            )

        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            message=outcome.message,
            metadata={
                "source": str(source),
                "target": str(target),
                "backup": str(outcome.backup) if outcome.backup else None,
                "unchanged": outcome.already_linked,
            },
        )
