"""
Engine executor — the central run loop.

Takes a setup plan, evaluates each step's guards against the live
system, dispatches the rest through the adapter registry, and
collects receipts. A failing step never stops the run; failures are
counted and reported at the end.

Flow:
    plan → guard → execute → message → collect → persist
"""

from __future__ import annotations

import logging
import os
import platform
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from dotstrap.adapters.registry import AdapterRegistry
from dotstrap.core.config.loader import expand_path
from dotstrap.core.models.action import Action, Receipt
from dotstrap.core.persistence.audit import AuditEntry, AuditWriter
from dotstrap.core.services.detection import command_available

logger = logging.getLogger(__name__)

StartCallback = Callable[[Action], None]
ReceiptCallback = Callable[[Action, Receipt], None]


@dataclass
class ExecutionPlan:
    """An ordered list of setup steps."""

    operation_id: str = ""
    mode: str = ""                  # link, install
    actions: list[Action] = field(default_factory=list)

    @property
    def total_actions(self) -> int:
        return len(self.actions)

    @property
    def steps(self) -> list[str]:
        return [a.step for a in self.actions]

    def add(self, action: Action) -> None:
        self.actions.append(action)


@dataclass
class ExecutionReport:
    """Result of executing a plan."""

    operation_id: str = ""
    mode: str = ""
    started_at: str = ""
    ended_at: str = ""
    receipts: list[Receipt] = field(default_factory=list)
    step_receipts: dict[str, Receipt] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.receipts)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.receipts if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.receipts if r.failed)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.receipts if r.status == "skipped")

    @property
    def unchanged(self) -> int:
        return sum(1 for r in self.receipts if r.unchanged)

    @property
    def status(self) -> str:
        if self.failed == 0:
            return "ok"
        if self.succeeded > 0:
            return "partial"
        return "failed"

    @property
    def errors(self) -> list[str]:
        return [r.message or r.error or "" for r in self.receipts if r.failed]

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "mode": self.mode,
            "status": self.status,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "unchanged": self.unchanged,
            "steps": {
                step: r.model_dump(mode="json") for step, r in self.step_receipts.items()
            },
        }


# ── Guards ──────────────────────────────────────────────────────


def _unless_satisfied(unless: dict[str, str]) -> str | None:
    """Return which ``unless`` condition holds, or None."""
    command = unless.get("command")
    if command and command_available(command):
        return f"command:{command}"

    path = unless.get("path")
    if path and expand_path(path).exists():
        return f"path:{path}"

    system = unless.get("system")
    if system and platform.system() == system:
        return f"system:{system}"

    return None


def _requirement_missing(requires: dict[str, str]) -> str | None:
    """Return the first unmet ``requires`` condition, or None."""
    executable = requires.get("executable")
    if executable:
        p = expand_path(executable)
        if not (p.is_file() and os.access(p, os.X_OK)):
            return f"executable:{executable}"

    command = requires.get("command")
    if command and not command_available(command):
        return f"command:{command}"

    path = requires.get("path")
    if path and not expand_path(path).exists():
        return f"path:{path}"

    return None


def check_guards(action: Action) -> Receipt | None:
    """Evaluate a step's guards.

    Returns:
        A receipt when the guards settle the step without running it
        (already done → ok, precondition missing → skipped), else None.
    """
    if action.unless:
        matched = _unless_satisfied(action.unless)
        if matched:
            return Receipt.success(
                adapter=action.adapter,
                action_id=action.id,
                message=action.params.get("already_message") or f"{action.name} already installed",
                metadata={"unchanged": True, "guard": matched},
            )

    if action.requires:
        missing = _requirement_missing(action.requires)
        if missing:
            reason = action.params.get("skip_message") or f"Skipping {action.name}: {missing} not found"
            logger.warning(reason)
            return Receipt.skip(
                adapter=action.adapter,
                action_id=action.id,
                reason=reason,
                message=reason,
                metadata={"guard": missing},
            )

    return None


def _finalize_message(action: Action, receipt: Receipt) -> None:
    """Give every receipt a one-line, user-facing summary."""
    if receipt.failed:
        base = action.params.get("failure_message") or f"Failed to install {action.name}"
        receipt.message = f"{base} ({receipt.error})" if receipt.error else base
    elif not receipt.message:
        if receipt.ok:
            receipt.message = action.params.get("success_message") or f"{action.name} installed"
        else:
            receipt.message = receipt.output


def execute_plan(
    plan: ExecutionPlan,
    registry: AdapterRegistry,
    dotfiles_root: str = ".",
    dry_run: bool = False,
    on_start: StartCallback | None = None,
    on_receipt: ReceiptCallback | None = None,
) -> ExecutionReport:
    """Execute all steps in a plan, in order, through the adapter registry.

    Args:
        plan: The execution plan.
        registry: Adapter registry for dispatch.
        dotfiles_root: Root of the dotfiles checkout.
        dry_run: If True, validate but don't execute.
        on_start: Called before each step runs.
        on_receipt: Called with each step's receipt.

    Returns:
        ExecutionReport with all receipts.
    """
    report = ExecutionReport(
        operation_id=plan.operation_id,
        mode=plan.mode,
        started_at=datetime.now(UTC).isoformat(),
    )

    for action in plan.actions:
        if on_start:
            on_start(action)

        receipt = check_guards(action)
        if receipt is None:
            receipt = registry.execute_action(
                action=action,
                dotfiles_root=dotfiles_root,
                dry_run=dry_run,
            )
        _finalize_message(action, receipt)

        report.receipts.append(receipt)
        report.step_receipts[action.step] = receipt

        status_marker = "✓" if receipt.ok else "✗" if receipt.failed else "⊘"
        log = logger.error if receipt.failed else logger.info
        log("%s %s → %s: %s", status_marker, action.step, receipt.status, receipt.message)

        if on_receipt:
            on_receipt(action, receipt)

    report.ended_at = datetime.now(UTC).isoformat()
    return report


def write_audit_entries(
    report: ExecutionReport,
    audit_writer: AuditWriter,
    dotfiles_root: str = "",
) -> None:
    """Append the run's outcome to the audit ledger."""
    entry = AuditEntry(
        operation_id=report.operation_id,
        operation_type="setup",
        mode=report.mode,
        dotfiles_root=dotfiles_root,
        status=report.status,
        steps_total=report.total,
        steps_succeeded=report.succeeded,
        steps_failed=report.failed,
        steps_skipped=report.skipped,
        steps_affected=[
            step for step, r in report.step_receipts.items()
            if r.ok and not r.unchanged and not r.metadata.get("mock")
        ],
        errors=report.errors,
    )
    audit_writer.write(entry)


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"op-{now}-{short}"
