"""
Manifest loader — reads dotfiles.yml into domain models.

This is the primary entry point for loading configuration.
It reads YAML, validates against Pydantic schemas, and returns
a typed Manifest.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

import yaml

from dotstrap.core.models.manifest import Manifest

logger = logging.getLogger(__name__)

# Default manifest filename
MANIFEST_FILE = "dotfiles.yml"

# Explicit manifest path override
CONFIG_ENV_VAR = "DOTSTRAP_CONFIG"

# ${VAR:-default}, ${VAR}, $VAR
_VAR_PATTERN = re.compile(
    r"\$\{(?P<braced>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<default>[^}]*))?\}"
    r"|\$(?P<bare>[A-Za-z_][A-Za-z0-9_]*)"
)


class ConfigError(Exception):
    """Raised when the manifest is invalid or missing."""


def find_manifest(start_dir: Path | None = None) -> Path | None:
    """Search for dotfiles.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to dotfiles.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / MANIFEST_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def resolve_manifest_path(path: Path | None = None) -> Path | None:
    """Explicit path > $DOTSTRAP_CONFIG > upward search from cwd."""
    if path is not None:
        return path
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return find_manifest()


def load_manifest(path: Path | None = None) -> Manifest:
    """Load and validate the dotfiles manifest.

    Args:
        path: Explicit path to dotfiles.yml. If None, uses
            $DOTSTRAP_CONFIG or searches upward from cwd.

    Returns:
        Validated Manifest model.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    path = resolve_manifest_path(path)

    if path is None:
        raise ConfigError(
            f"No {MANIFEST_FILE} found. "
            "Run 'dotstrap init' to create one, or specify --config."
        )

    if not path.is_file():
        raise ConfigError(f"Manifest not found: {path}")

    logger.debug("Loading manifest from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    # An empty file means "all defaults"
    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        manifest = Manifest.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid manifest: {e}") from e

    logger.info("Loaded manifest '%s' with %d links", manifest.name, len(manifest.links))
    return manifest


def dotfiles_root(manifest_path: Path) -> Path:
    """Get the dotfiles root directory from a manifest path."""
    return manifest_path.parent.resolve()


def expand_path(value: str) -> Path:
    """Expand ``~``, ``$VAR``, ``${VAR}`` and ``${VAR:-default}`` in a path.

    Unset variables without a default are left untouched, the same
    way ``os.path.expandvars`` leaves them.
    """
    return Path(os.path.expanduser(_expand_vars(value)))


def _expand_vars(value: str) -> str:
    def _sub(match: re.Match[str]) -> str:
        name = match.group("braced") or match.group("bare")
        default = match.group("default")
        current = os.environ.get(name)
        if default is not None:
            # ":-" substitutes for unset *and* empty
            return current if current else os.path.expanduser(_expand_vars(default))
        if current is not None:
            return current
        return match.group(0)

    return _VAR_PATTERN.sub(_sub, value)
