"""
State file persistence — atomic read/write for SetupState.

State is stored as JSON in <dotfiles root>/.state/current.json.
Writes go to a temp file in the same directory and are then renamed
into place, so a crash never leaves a half-written file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from dotstrap.core.models.state import SetupState

logger = logging.getLogger(__name__)

DEFAULT_STATE_DIR = ".state"
DEFAULT_STATE_FILE = "current.json"


def default_state_path(dotfiles_root: Path) -> Path:
    """Get the default state file path for a dotfiles checkout."""
    return dotfiles_root / DEFAULT_STATE_DIR / DEFAULT_STATE_FILE


def load_state(path: Path) -> SetupState:
    """Load setup state; a missing or unreadable file yields a fresh state."""
    if not path.is_file():
        logger.info("No state file at %s, starting fresh", path)
        return SetupState()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        state = SetupState.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.warning("Cannot load state from %s: %s, starting fresh", path, e)
        return SetupState()

    logger.debug("Loaded state from %s (updated_at=%s)", path, state.updated_at)
    return state


def save_state(state: SetupState, path: Path) -> None:
    """Save setup state to a JSON file (atomic write)."""
    state.touch()
    path.parent.mkdir(parents=True, exist_ok=True)

    content = json.dumps(state.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"

    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".state_", suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        tmp.replace(path)
    except Exception:
        tmp.unlink(missing_ok=True)
        logger.error("Failed to save state to %s", path)
        raise

    logger.debug("State saved to %s", path)
