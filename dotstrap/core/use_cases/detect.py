"""
Detect use case — report what this machine looks like to setup.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from dotstrap.adapters import build_default_registry
from dotstrap.core.config.loader import ConfigError, load_manifest, resolve_manifest_path
from dotstrap.core.models.manifest import HomebrewSpec
from dotstrap.core.services.detection import PlatformInfo, detect_platform

logger = logging.getLogger(__name__)


@dataclass
class DetectResult:
    """Result of the detect use case."""

    platform: PlatformInfo | None = None
    config_path: Path | None = None
    adapters: dict[str, dict] = field(default_factory=dict)
    error: str | None = None

    @property
    def missing_tools(self) -> list[str]:
        if not self.platform:
            return []
        return [t["id"] for t in self.platform.tools if not t["available"]]

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        result["config_path"] = str(self.config_path) if self.config_path else None
        if self.platform:
            result["platform"] = self.platform.to_dict()
        result["missing_tools"] = self.missing_tools
        result["adapters"] = self.adapters
        return result


def run_detect(config_path: Path | None = None) -> DetectResult:
    """Detect OS, package manager, Homebrew, tools and adapter availability.

    A manifest is optional here: without one, the default Homebrew
    prefixes are searched.
    """
    result = DetectResult()
    prefixes = HomebrewSpec().prefixes

    path = resolve_manifest_path(config_path)
    if path is not None:
        try:
            manifest = load_manifest(path)
        except ConfigError as e:
            result.error = str(e)
            return result
        result.config_path = path
        prefixes = manifest.homebrew.prefixes
    else:
        logger.debug("No manifest found, using default Homebrew prefixes")

    result.platform = detect_platform(brew_prefixes=prefixes, probe=True)
    result.adapters = build_default_registry().adapter_status()
    return result
