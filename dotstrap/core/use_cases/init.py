"""
Init use case — write a starter dotfiles.yml.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from dotstrap.core.config.loader import MANIFEST_FILE
from dotstrap.core.data import default_manifest_text

logger = logging.getLogger(__name__)


@dataclass
class InitResult:
    """Result of ``dotstrap init``."""

    path: Path | None = None
    overwritten: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {"path": str(self.path), "overwritten": self.overwritten}


def init_manifest(directory: Path | None = None, force: bool = False) -> InitResult:
    """Write the bundled default manifest into ``directory``.

    Refuses to replace an existing dotfiles.yml unless ``force`` is set.
    """
    directory = directory or Path.cwd()
    path = directory / MANIFEST_FILE
    result = InitResult(path=path)

    if path.exists() and not force:
        result.error = f"{path} already exists. Use --force to overwrite."
        return result

    result.overwritten = path.exists()
    try:
        directory.mkdir(parents=True, exist_ok=True)
        path.write_text(default_manifest_text(), encoding="utf-8")
    except OSError as e:
        result.error = f"Cannot write {path}: {e}"
        return result

    logger.info("Wrote %s", path)
    return result
