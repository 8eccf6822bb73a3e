"""
Dotfile links — symlink into place, backing up whatever was there.

The rule is the same for files and directories:

    target is already our symlink  →  nothing to do
    anything else at target        →  move it to the backup dir, then link
    nothing at target              →  create parents, then link
"""

from __future__ import annotations

import logging
import os
import shutil
import time
from dataclasses import dataclass
from pathlib import Path

from dotstrap.core.config.loader import expand_path
from dotstrap.core.models.manifest import Manifest

logger = logging.getLogger(__name__)

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


@dataclass
class LinkOutcome:
    """What backup_and_link did."""

    source: Path
    target: Path
    already_linked: bool = False
    backup: Path | None = None

    @property
    def message(self) -> str:
        if self.already_linked:
            return f"Already linked: {self.target} -> {self.source}"
        return f"Linked: {self.target} -> {self.source}"


@dataclass
class LinkStatus:
    """Current state of one manifest link on disk."""

    source: str
    target: str
    state: str                      # linked, foreign, not_symlink, missing
    points_to: str | None = None

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "target": self.target,
            "state": self.state,
            "points_to": self.points_to,
        }


def backup_and_link(src: Path, dest: Path, backup_dir: Path) -> LinkOutcome:
    """Symlink ``dest`` → ``src``, moving any existing ``dest`` aside first.

    Raises:
        OSError: If the move or the symlink fails.
    """
    outcome = LinkOutcome(source=src, target=dest)

    # is_symlink() also catches dangling links, which exists() misses
    if dest.is_symlink() or dest.exists():
        if dest.is_symlink() and os.readlink(dest) == str(src):
            outcome.already_linked = True
            return outcome

        backup_dir.mkdir(parents=True, exist_ok=True)
        backup = _backup_path(backup_dir, dest.name)
        logger.warning("Backing up %s -> %s", dest, backup)
        shutil.move(str(dest), str(backup))
        outcome.backup = backup

    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.symlink_to(src)
    logger.info("Linked %s -> %s", dest, src)
    return outcome


def _backup_path(backup_dir: Path, name: str) -> Path:
    """``<backup_dir>/<name>.<timestamp>``, suffixed .1, .2, … on collision."""
    stamp = time.strftime(BACKUP_TIMESTAMP_FORMAT)
    candidate = backup_dir / f"{name}.{stamp}"
    counter = 1
    while candidate.exists() or candidate.is_symlink():
        candidate = backup_dir / f"{name}.{stamp}.{counter}"
        counter += 1
    return candidate


def resolve_link(root: Path, source: str, target: str) -> tuple[Path, Path]:
    """Absolute (source, target) for a manifest link entry."""
    src = Path(source)
    if not src.is_absolute():
        src = root / src
    return src, expand_path(target)


def link_status(manifest: Manifest, root: Path) -> list[LinkStatus]:
    """Inspect every manifest link target on disk."""
    results: list[LinkStatus] = []
    for link in manifest.links:
        src, dest = resolve_link(root, link.source, link.target)
        if dest.is_symlink():
            points_to = os.readlink(dest)
            state = "linked" if points_to == str(src) else "foreign"
        elif dest.exists():
            points_to = None
            state = "not_symlink"
        else:
            points_to = None
            state = "missing"
        results.append(LinkStatus(
            source=str(src),
            target=str(dest),
            state=state,
            points_to=points_to,
        ))
    return results


def list_backups(backup_dir: Path) -> list[dict]:
    """List backed-up entries, newest first."""
    if not backup_dir.is_dir():
        return []

    entries = []
    for entry in backup_dir.iterdir():
        try:
            st = entry.lstat()
        except OSError:
            continue
        entries.append({
            "name": entry.name,
            "path": str(entry),
            "is_dir": entry.is_dir() and not entry.is_symlink(),
            "mtime": st.st_mtime,
        })
    entries.sort(key=lambda e: (e["mtime"], e["name"]), reverse=True)
    return entries
