"""
Status use case — aggregate link, backup and run status from manifest,
state file and audit ledger.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from dotstrap.core.config.loader import (
    ConfigError,
    dotfiles_root,
    expand_path,
    load_manifest,
    resolve_manifest_path,
)
from dotstrap.core.models.manifest import Manifest
from dotstrap.core.models.state import SetupState
from dotstrap.core.persistence.audit import AuditEntry, AuditWriter
from dotstrap.core.persistence.state_file import default_state_path, load_state
from dotstrap.core.services.links import LinkStatus, link_status, list_backups

RECENT_RUNS = 5


@dataclass
class StatusResult:
    """Aggregated dotfiles status."""

    manifest: Manifest | None = None
    state: SetupState | None = None
    dotfiles_root: Path | None = None
    config_path: Path | None = None
    links: list[LinkStatus] = field(default_factory=list)
    backup_dir: Path | None = None
    backup_count: int = 0
    recent_runs: list[AuditEntry] = field(default_factory=list)
    error: str | None = None

    @property
    def linked_count(self) -> int:
        return sum(1 for link in self.links if link.state == "linked")

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        result["manifest_name"] = self.manifest.name if self.manifest else ""
        result["dotfiles_root"] = str(self.dotfiles_root)
        result["config_path"] = str(self.config_path)
        result["links"] = [link.to_dict() for link in self.links]
        result["linked_count"] = self.linked_count
        result["backup_dir"] = str(self.backup_dir) if self.backup_dir else None
        result["backup_count"] = self.backup_count

        if self.state and self.state.last_operation.operation_id:
            result["last_operation"] = self.state.last_operation.model_dump()
        else:
            result["last_operation"] = None
        result["recent_runs"] = [entry.model_dump(mode="json") for entry in self.recent_runs]

        return result


def get_status(config_path: Path | None = None) -> StatusResult:
    """Get the status of every managed link plus the last recorded run.

    Args:
        config_path: Optional explicit path to dotfiles.yml.
    """
    result = StatusResult()

    try:
        config_path = resolve_manifest_path(config_path)
        manifest = load_manifest(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    assert config_path is not None
    root = dotfiles_root(config_path)
    result.manifest = manifest
    result.config_path = config_path
    result.dotfiles_root = root

    result.links = link_status(manifest, root)
    result.backup_dir = expand_path(manifest.backup_dir)
    result.backup_count = len(list_backups(result.backup_dir))
    result.state = load_state(default_state_path(root))
    result.recent_runs = AuditWriter(dotfiles_root=root).read_recent(RECENT_RUNS)

    return result
