"""
Backups use case — list what setup moved out of the way.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from dotstrap.core.config.loader import (
    ConfigError,
    expand_path,
    load_manifest,
    resolve_manifest_path,
)
from dotstrap.core.services.links import list_backups


@dataclass
class BackupsResult:
    """Entries in the backup directory, newest first."""

    backup_dir: Path | None = None
    entries: list[dict] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "backup_dir": str(self.backup_dir),
            "exists": self.backup_dir.is_dir() if self.backup_dir else False,
            "entries": self.entries,
        }


def get_backups(config_path: Path | None = None) -> BackupsResult:
    result = BackupsResult()
    try:
        manifest = load_manifest(resolve_manifest_path(config_path))
    except ConfigError as e:
        result.error = str(e)
        return result

    result.backup_dir = expand_path(manifest.backup_dir)
    result.entries = list_backups(result.backup_dir)
    return result
