"""
Shell command adapter — run external tools (package managers, brew, chsh).

``run_command`` is the SINGLE PLACE where ``subprocess.run`` is called.
Every other adapter goes through it, so sudo handling, environment
overrides and error capture behave the same everywhere.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from typing import Any

from dotstrap.adapters.base import Adapter, ExecutionContext
from dotstrap.core.models.action import Receipt
from dotstrap.core.services.detection import sudo_prefix

logger = logging.getLogger(__name__)


def run_command(
    cmd: list[str],
    *,
    sudo: bool = False,
    env_overrides: dict[str, str] | None = None,
    input_text: str | None = None,
    capture: bool = True,
    timeout: int | None = None,
    cwd: str | None = None,
) -> dict[str, Any]:
    """Run one command.

    With ``capture=False`` the child inherits the terminal, so
    interactive prompts (sudo password, chsh) reach the user.

    Returns:
        ``{"ok": True, "stdout": "...", "elapsed_ms": N}`` on success,
        ``{"ok": False, "error": "...", ...}`` on failure.
    """
    if sudo:
        cmd = sudo_prefix() + cmd

    env = os.environ.copy()
    if env_overrides:
        for key, value in env_overrides.items():
            env[key] = os.path.expandvars(os.path.expanduser(value))

    logger.debug("Executing: %s (cwd=%s)", " ".join(cmd), cwd)
    start = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            capture_output=capture,
            text=True,
            timeout=timeout,
            input=input_text,
            env=env,
            cwd=cwd,
        )
    except FileNotFoundError:
        return {"ok": False, "error": f"Command not found: {cmd[0]}"}
    except subprocess.TimeoutExpired:
        return {"ok": False, "error": f"Command timed out after {timeout}s"}
    except OSError as e:
        return {"ok": False, "error": f"Command execution error: {e}"}

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = (result.stdout or "").strip()
    stderr = (result.stderr or "").strip()

    if result.returncode == 0:
        return {"ok": True, "stdout": stdout, "stderr": stderr, "elapsed_ms": elapsed_ms}

    return {
        "ok": False,
        "error": stderr or f"Command exited with code {result.returncode}",
        "returncode": result.returncode,
        "stdout": stdout,
        "elapsed_ms": elapsed_ms,
    }


class ShellCommandAdapter(Adapter):
    """Run a sequence of commands, stopping at the first failure.

    Action params:
        commands (list[list[str]]): argv lists, run in order.
        sudo (bool): Prefix each command with sudo unless root (default: False).
        env (dict): Extra environment variables.
        input (str): Text fed to each command's stdin.
        capture (bool): Capture output instead of streaming it (default: True).
        timeout (int): Per-command timeout in seconds (default: no limit).
        missing_reason (str): Error to report when there is nothing to run.
    """

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        commands = context.params.get("commands") or []
        if not commands:
            return False, context.params.get("missing_reason") or "Missing required param: 'commands'"

        for cmd in commands:
            if not isinstance(cmd, list) or not cmd:
                return False, f"Invalid command: {cmd!r}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.params
        commands: list[list[str]] = params["commands"]
        outputs: list[str] = []

        for cmd in commands:
            result = run_command(
                cmd,
                sudo=params.get("sudo", False),
                env_overrides=params.get("env"),
                input_text=params.get("input"),
                capture=params.get("capture", True),
                timeout=params.get("timeout"),
                cwd=context.working_dir,
            )
            if not result["ok"]:
                return Receipt.failure(
                    adapter=self.name,
                    action_id=context.action.id,
                    error=result["error"],
                    output="\n".join(outputs),
                    metadata={
                        "command": cmd,
                        "return_code": result.get("returncode"),
                    },
                )
            if result.get("stdout"):
                outputs.append(result["stdout"])

        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output="\n".join(outputs),
            metadata={"commands": commands},
        )
