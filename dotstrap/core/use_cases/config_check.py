"""
Config check use case — validate dotfiles.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from dotstrap.core.config.loader import (
    ConfigError,
    MANIFEST_FILE,
    dotfiles_root,
    expand_path,
    load_manifest,
    resolve_manifest_path,
)
from dotstrap.core.models.manifest import Manifest
from dotstrap.core.services.detection import SUPPORTED_PACKAGE_MANAGERS
from dotstrap.core.services.links import resolve_link


@dataclass
class ConfigCheckResult:
    """Result of manifest validation."""

    valid: bool = False
    manifest: Manifest | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "manifest_name": self.manifest.name if self.manifest else None,
            "link_count": len(self.manifest.links) if self.manifest else 0,
            "installer_count": len(self.manifest.installers) if self.manifest else 0,
            "plugin_count": len(self.manifest.plugins) if self.manifest else 0,
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate the manifest and report issues.

    Args:
        config_path: Optional explicit path to dotfiles.yml.

    Returns:
        ConfigCheckResult with validation status and any issues.
    """
    result = ConfigCheckResult()

    config_path = resolve_manifest_path(config_path)
    if config_path is None:
        result.errors.append(f"No {MANIFEST_FILE} found.")
        return result
    result.config_path = config_path

    try:
        manifest = load_manifest(config_path)
        result.manifest = manifest
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    root = dotfiles_root(config_path)

    # Links
    if not manifest.links:
        result.warnings.append("No links defined. Setup will not link any dotfiles.")

    targets = [str(expand_path(link.target)) for link in manifest.links]
    dupes = {t for t in targets if targets.count(t) > 1}
    if dupes:
        result.errors.append(f"Duplicate link targets: {', '.join(sorted(dupes))}")

    for link in manifest.links:
        src, _ = resolve_link(root, link.source, link.target)
        if not src.exists():
            result.errors.append(f"Link source does not exist: {link.source}")

    # Package managers
    unknown = sorted(set(manifest.system_packages) - set(SUPPORTED_PACKAGE_MANAGERS))
    if unknown:
        result.warnings.append(
            f"Unknown package managers in system_packages: {', '.join(unknown)} "
            f"(supported: {', '.join(SUPPORTED_PACKAGE_MANAGERS)})"
        )

    # Plugins
    dests = [str(expand_path(p.dest)) for p in manifest.plugins]
    dest_dupes = {d for d in dests if dests.count(d) > 1}
    if dest_dupes:
        result.warnings.append(
            f"Multiple plugins share a destination: {', '.join(sorted(dest_dupes))}. "
            "Only the first will be cloned."
        )

    result.valid = len(result.errors) == 0
    return result
