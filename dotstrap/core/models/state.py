"""
SetupState — what the last run left behind.

Serialized to <dotfiles root>/.state/current.json after every real
(non dry-run) setup. It is disposable: delete it and the next run
regenerates it.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class LinkState(BaseModel):
    """Outcome of the last link attempt for one target."""

    target: str
    source: str = ""
    status: str = ""                # ok, failed, skipped
    backup: str | None = None
    linked_at: str | None = None


class OperationRecord(BaseModel):
    """Summary of the last operation."""

    operation_id: str = ""
    mode: str = ""                  # link, install
    started_at: str = ""
    ended_at: str = ""
    status: str = ""                # ok, partial, failed
    steps_total: int = 0
    steps_succeeded: int = 0
    steps_failed: int = 0
    steps_skipped: int = 0


class SetupState(BaseModel):
    """Root state model — serialized to .state/current.json."""

    schema_version: int = 1

    manifest_name: str = ""
    hostname: str = ""

    created_at: str = Field(default_factory=_now_iso)
    updated_at: str = Field(default_factory=_now_iso)

    links: dict[str, LinkState] = Field(default_factory=dict)
    last_operation: OperationRecord = Field(default_factory=OperationRecord)
    platform: dict[str, Any] = Field(default_factory=dict)

    def touch(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = _now_iso()

    def set_link_state(self, target: str, **kwargs: Any) -> None:
        """Update or create a link state entry."""
        if target in self.links:
            for key, value in kwargs.items():
                setattr(self.links[target], key, value)
        else:
            self.links[target] = LinkState(target=target, **kwargs)
