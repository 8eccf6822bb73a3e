"""
Bundled static data — the default dotfiles.yml written by ``dotstrap init``.
"""

from __future__ import annotations

from pathlib import Path

_DATA_DIR = Path(__file__).parent

DEFAULT_MANIFEST_FILE = _DATA_DIR / "default_manifest.yml"


def default_manifest_text() -> str:
    """Return the bundled default manifest as YAML text."""
    return DEFAULT_MANIFEST_FILE.read_text(encoding="utf-8")
