"""
Setup use case — bootstrap this machine from the dotfiles manifest.

Loads the manifest, detects the platform, plans the steps, executes
them, and persists the outcome. The full vertical slice from
``dotstrap setup`` to an audited run.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass, field
from pathlib import Path

from dotstrap.adapters import build_default_registry
from dotstrap.adapters.registry import AdapterRegistry
from dotstrap.core.config.loader import (
    ConfigError,
    dotfiles_root,
    expand_path,
    load_manifest,
    resolve_manifest_path,
)
from dotstrap.core.engine.executor import (
    ExecutionPlan,
    ExecutionReport,
    ReceiptCallback,
    StartCallback,
    execute_plan,
    generate_operation_id,
    write_audit_entries,
)
from dotstrap.core.engine.planner import build_setup_plan
from dotstrap.core.models.manifest import Manifest
from dotstrap.core.persistence.audit import AuditWriter
from dotstrap.core.persistence.state_file import default_state_path, load_state, save_state
from dotstrap.core.services.detection import PlatformInfo, detect_platform
from dotstrap.core.services.links import LinkStatus, link_status

logger = logging.getLogger(__name__)


@dataclass
class SetupResult:
    """Result of a setup run."""

    report: ExecutionReport | None = None
    plan: ExecutionPlan | None = None
    manifest: Manifest | None = None
    dotfiles_root: Path | None = None
    platform: PlatformInfo | None = None
    links: list[LinkStatus] = field(default_factory=list)
    backup_dir: Path | None = None
    install: bool = False
    dry_run: bool = False
    state_saved: bool = False
    error: str | None = None

    @property
    def error_count(self) -> int:
        if self.error:
            return 1
        return self.report.failed if self.report else 0

    @property
    def backup_dir_exists(self) -> bool:
        return self.backup_dir is not None and self.backup_dir.is_dir()

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        result["manifest_name"] = self.manifest.name if self.manifest else ""
        result["dotfiles_root"] = str(self.dotfiles_root)
        result["mode"] = "install" if self.install else "link"
        result["dry_run"] = self.dry_run
        result["error_count"] = self.error_count
        result["state_saved"] = self.state_saved
        result["backup_dir"] = str(self.backup_dir) if self.backup_dir else None
        result["backup_dir_exists"] = self.backup_dir_exists
        result["links"] = [link.to_dict() for link in self.links]

        if self.platform:
            result["platform"] = self.platform.to_dict()
        if self.report:
            result["report"] = self.report.to_dict()

        return result


def run_setup(
    config_path: Path | None = None,
    install: bool = False,
    dry_run: bool = False,
    mock_mode: bool = False,
    registry: AdapterRegistry | None = None,
    on_start: StartCallback | None = None,
    on_receipt: ReceiptCallback | None = None,
) -> SetupResult:
    """Run setup for the dotfiles checkout.

    Args:
        config_path: Optional explicit path to dotfiles.yml.
        install: Also install packages, tools and plugins (not just links).
        dry_run: If True, plan and validate but don't execute.
        mock_mode: If True, use mock adapter responses.
        registry: Optional pre-configured adapter registry.
        on_start: Progress callback, called before each step.
        on_receipt: Progress callback, called with each step's receipt.

    Returns:
        SetupResult with the execution report and link summary.
    """
    result = SetupResult(install=install, dry_run=dry_run)

    # ── Load manifest ────────────────────────────────────────────
    try:
        manifest_path = resolve_manifest_path(config_path)
        manifest = load_manifest(manifest_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    assert manifest_path is not None  # load_manifest raises otherwise
    root = dotfiles_root(manifest_path)
    result.manifest = manifest
    result.dotfiles_root = root
    result.backup_dir = expand_path(manifest.backup_dir)

    # ── Detect platform and plan ─────────────────────────────────
    platform = detect_platform(brew_prefixes=manifest.homebrew.prefixes)
    result.platform = platform

    operation_id = generate_operation_id()
    plan = build_setup_plan(manifest, root, platform, install, operation_id)
    result.plan = plan

    if registry is None:
        registry = build_default_registry(mock_mode=mock_mode)
    elif mock_mode:
        registry.set_mock_mode(True)

    logger.info(
        "Setup %s: %d steps (%s%s)",
        operation_id, plan.total_actions, plan.mode, ", dry-run" if dry_run else "",
    )

    # ── Execute ──────────────────────────────────────────────────
    report = execute_plan(
        plan=plan,
        registry=registry,
        dotfiles_root=str(root),
        dry_run=dry_run,
        on_start=on_start,
        on_receipt=on_receipt,
    )
    result.report = report
    result.links = link_status(manifest, root)

    if dry_run:
        return result

    # ── Persist state and audit ──────────────────────────────────
    result.state_saved = _save_setup_state(root, manifest, platform, report)

    audit_writer = AuditWriter(dotfiles_root=root)
    write_audit_entries(report, audit_writer, dotfiles_root=str(root))

    return result


def _save_setup_state(
    root: Path,
    manifest: Manifest,
    platform: PlatformInfo,
    report: ExecutionReport,
) -> bool:
    state_path = default_state_path(root)
    state = load_state(state_path)
    state.manifest_name = manifest.name
    state.hostname = socket.gethostname()
    state.platform = platform.to_dict()

    op = state.last_operation
    op.operation_id = report.operation_id
    op.mode = report.mode
    op.started_at = report.started_at
    op.ended_at = report.ended_at
    op.status = report.status
    op.steps_total = report.total
    op.steps_succeeded = report.succeeded
    op.steps_failed = report.failed
    op.steps_skipped = report.skipped

    for step, receipt in report.step_receipts.items():
        if not step.startswith("link:"):
            continue
        target = step.removeprefix("link:")
        state.set_link_state(
            target,
            source=receipt.metadata.get("source", ""),
            status=receipt.status,
            backup=receipt.metadata.get("backup"),
            linked_at=receipt.ended_at if receipt.ok else None,
        )

    try:
        save_state(state, state_path)
    except OSError as e:
        logger.warning("Could not save state to %s: %s", state_path, e)
        return False
    return True
