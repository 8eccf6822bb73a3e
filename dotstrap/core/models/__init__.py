"""
Domain models — Pydantic types for dotstrap.

All models are re-exported here for convenient access:

    from dotstrap.core.models import Manifest, Action, Receipt, SetupState
"""

from dotstrap.core.models.action import Action, Receipt
from dotstrap.core.models.manifest import (
    HomebrewSpec,
    InstallerSpec,
    LinkSpec,
    Manifest,
    PluginSpec,
    ShellSpec,
    TmuxSpec,
)
from dotstrap.core.models.state import LinkState, OperationRecord, SetupState

__all__ = [
    # action.py
    "Action",
    # manifest.py
    "HomebrewSpec",
    "InstallerSpec",
    "LinkSpec",
    # state.py
    "LinkState",
    "Manifest",
    "OperationRecord",
    "PluginSpec",
    "Receipt",
    "SetupState",
    "ShellSpec",
    "TmuxSpec",
]
