"""
Tests for engine executor — guards, execution, messages and audit.
"""

from pathlib import Path

from dotstrap.adapters.mock import MockAdapter
from dotstrap.adapters.registry import AdapterRegistry
from dotstrap.core.engine import executor
from dotstrap.core.engine.executor import (
    ExecutionPlan,
    ExecutionReport,
    check_guards,
    execute_plan,
    generate_operation_id,
    write_audit_entries,
)
from dotstrap.core.models.action import Action, Receipt
from dotstrap.core.persistence.audit import AuditWriter


def _action(step: str, name: str = "", **kwargs) -> Action:
    return Action(id=f"op:{step}", step=step, name=name or step, adapter="mock", **kwargs)


def _mock_registry() -> tuple[AdapterRegistry, MockAdapter]:
    mock = MockAdapter()
    registry = AdapterRegistry()
    registry.set_mock_mode(True, mock)
    return registry, mock


# ── Guards ───────────────────────────────────────────────────────────


class TestGuards:
    def test_no_guards(self):
        assert check_guards(_action("x")) is None

    def test_unless_path_exists(self, tmp_path: Path):
        receipt = check_guards(_action("nvm", name="nvm", unless={"path": str(tmp_path)}))
        assert receipt.ok
        assert receipt.unchanged
        assert receipt.message == "nvm already installed"

    def test_unless_path_missing(self, tmp_path: Path):
        assert check_guards(_action("nvm", unless={"path": str(tmp_path / "nope")})) is None

    def test_unless_path_with_tilde(self, home: Path):
        (home / ".oh-my-zsh").mkdir()
        assert check_guards(_action("omz", unless={"path": "~/.oh-my-zsh"})) is not None

    def test_unless_command(self, monkeypatch):
        monkeypatch.setattr(executor, "command_available", lambda name: name == "brew")
        receipt = check_guards(_action("homebrew", name="Homebrew", unless={"command": "brew"}))
        assert receipt.message == "Homebrew already installed"
        assert receipt.metadata["guard"] == "command:brew"

    def test_unless_system(self, monkeypatch):
        monkeypatch.setattr(executor.platform, "system", lambda: "Darwin")
        receipt = check_guards(_action(
            "system-packages",
            unless={"system": "Darwin"},
            params={"already_message": "No system packages needed on macOS"},
        ))
        assert receipt.ok
        assert receipt.message == "No system packages needed on macOS"

    def test_unless_system_other(self, monkeypatch):
        monkeypatch.setattr(executor.platform, "system", lambda: "Linux")
        assert check_guards(_action("system-packages", unless={"system": "Darwin"})) is None

    def test_requires_executable_missing(self, tmp_path: Path):
        receipt = check_guards(_action(
            "tmux-plugins",
            requires={"executable": str(tmp_path / "install_plugins")},
            params={"skip_message": "TPM install script not found, skipping tmux plugin install"},
        ))
        assert receipt.status == "skipped"
        assert receipt.message == "TPM install script not found, skipping tmux plugin install"

    def test_requires_executable_not_executable(self, tmp_path: Path):
        script = tmp_path / "install_plugins"
        script.write_text("#!/bin/sh\n")
        script.chmod(0o644)
        receipt = check_guards(_action("tmux-plugins", requires={"executable": str(script)}))
        assert receipt.status == "skipped"

    def test_requires_executable_present(self, tmp_path: Path):
        script = tmp_path / "install_plugins"
        script.write_text("#!/bin/sh\n")
        script.chmod(0o755)
        assert check_guards(_action("tmux-plugins", requires={"executable": str(script)})) is None

    def test_requires_command(self, monkeypatch):
        monkeypatch.setattr(executor, "command_available", lambda name: False)
        receipt = check_guards(_action("x", requires={"command": "tmux"}))
        assert receipt.status == "skipped"
        assert "command:tmux" in receipt.message


# ── Execution ────────────────────────────────────────────────────────


class TestExecutePlan:
    def test_all_succeed(self):
        registry, mock = _mock_registry()
        plan = ExecutionPlan(operation_id="op", mode="install")
        plan.add(_action("a", name="A"))
        plan.add(_action("b", name="B", params={"success_message": "B done"}))

        report = execute_plan(plan, registry)

        assert mock.steps == ["a", "b"]
        assert report.failed == 0
        assert report.status == "ok"
        assert report.step_receipts["a"].message == "A installed"
        assert report.step_receipts["b"].message == "B done"
        assert report.started_at and report.ended_at

    def test_failure_does_not_stop_run(self):
        registry, mock = _mock_registry()
        mock.set_failure("a", "exit 1")
        plan = ExecutionPlan(operation_id="op")
        plan.add(_action("a", name="nvm"))
        plan.add(_action("b"))

        report = execute_plan(plan, registry)

        assert mock.steps == ["a", "b"]
        assert report.failed == 1
        assert report.succeeded == 1
        assert report.status == "partial"
        assert report.errors == ["Failed to install nvm (exit 1)"]

    def test_custom_failure_message(self):
        registry, mock = _mock_registry()
        mock.set_failure("default-shell", "chsh: denied")
        plan = ExecutionPlan(operation_id="op")
        plan.add(_action("default-shell", params={"failure_message": "Failed to change default shell"}))

        report = execute_plan(plan, registry)

        assert report.status == "failed"
        assert report.errors == ["Failed to change default shell (chsh: denied)"]

    def test_guarded_step_is_not_dispatched(self, tmp_path: Path):
        registry, mock = _mock_registry()
        plan = ExecutionPlan(operation_id="op")
        plan.add(_action("nvm", unless={"path": str(tmp_path)}))
        plan.add(_action("tpm", requires={"executable": str(tmp_path / "nope")}))

        report = execute_plan(plan, registry)

        assert mock.steps == []
        assert report.unchanged == 1
        assert report.skipped == 1
        assert report.failed == 0

    def test_guards_see_earlier_steps(self, tmp_path: Path):
        marker = tmp_path / "installed"

        class Installer(MockAdapter):
            def execute(self, context):
                marker.mkdir()
                return super().execute(context)

        registry = AdapterRegistry()
        registry.set_mock_mode(True, Installer())
        plan = ExecutionPlan(operation_id="op")
        plan.add(_action("first"))
        plan.add(_action("second", unless={"path": str(marker)}))

        report = execute_plan(plan, registry)

        assert report.step_receipts["second"].unchanged

    def test_callbacks(self):
        registry, _ = _mock_registry()
        plan = ExecutionPlan(operation_id="op")
        plan.add(_action("a"))
        started, finished = [], []

        execute_plan(
            plan,
            registry,
            on_start=lambda a: started.append(a.step),
            on_receipt=lambda a, r: finished.append((a.step, r.status)),
        )

        assert started == ["a"]
        assert finished == [("a", "ok")]

    def test_dry_run(self):
        registry, mock = _mock_registry()
        registry.set_mock_mode(False)
        registry.register(MockAdapter(adapter_name="mock"))
        plan = ExecutionPlan(operation_id="op")
        plan.add(_action("a"))

        report = execute_plan(plan, registry, dry_run=True)

        assert report.skipped == 1
        assert report.step_receipts["a"].message == "[dry-run] Would run mock:a"


class TestExecutionReport:
    def test_status_failed_when_nothing_succeeded(self):
        report = ExecutionReport(receipts=[
            Receipt.failure(adapter="x", action_id="1", error="e"),
            Receipt.skip(adapter="x", action_id="2"),
        ])
        assert report.status == "failed"

    def test_to_dict(self):
        receipt = Receipt.success(adapter="x", action_id="1", message="done")
        report = ExecutionReport(operation_id="op", mode="link",
                                 receipts=[receipt], step_receipts={"a": receipt})
        data = report.to_dict()
        assert data["status"] == "ok"
        assert data["succeeded"] == 1
        assert data["steps"]["a"]["message"] == "done"


class TestAudit:
    def test_write_audit_entries(self, tmp_path: Path):
        report = ExecutionReport(operation_id="op-1", mode="install")
        ok = Receipt.success(adapter="x", action_id="1")
        same = Receipt.success(adapter="x", action_id="2", metadata={"unchanged": True})
        bad = Receipt.failure(adapter="x", action_id="3", error="e", message="Failed to install c (e)")
        report.receipts = [ok, same, bad]
        report.step_receipts = {"a": ok, "b": same, "c": bad}

        writer = AuditWriter(tmp_path / "audit.ndjson")
        write_audit_entries(report, writer, dotfiles_root="/dots")

        [entry] = writer.read_all()
        assert entry.operation_id == "op-1"
        assert entry.operation_type == "setup"
        assert entry.status == "partial"
        assert entry.steps_affected == ["a"]
        assert entry.errors == ["Failed to install c (e)"]
        assert entry.dotfiles_root == "/dots"


class TestOperationId:
    def test_format(self):
        op_id = generate_operation_id()
        prefix, date, time_, short = op_id.split("-")
        assert prefix == "op"
        assert len(date) == 8 and len(time_) == 6
        assert len(short) == 6

    def test_unique(self):
        assert generate_operation_id() != generate_operation_id()
