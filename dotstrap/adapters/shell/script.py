"""
Remote installer adapter — ``<sh|bash> -c "$(curl -fsSL URL)"``.

Homebrew, oh-my-zsh and nvm all ship an install.sh meant to be piped
into a shell. The script is fetched with curl first so a download
failure is reported separately from an installer failure.
"""

from __future__ import annotations

import logging
import shutil

from dotstrap.adapters.base import Adapter, ExecutionContext
from dotstrap.adapters.shell.command import run_command
from dotstrap.core.models.action import Receipt
from dotstrap.core.services.detection import activate_homebrew

logger = logging.getLogger(__name__)

FETCH_TIMEOUT = 120


class ScriptInstallerAdapter(Adapter):
    """Download an installer script and run it.

    Action params:
        url (str): Script URL.
        interpreter (str): ``sh``, ``bash`` or ``zsh`` (default: bash).
        args (list[str]): Positional arguments for the script.
        env (dict): Extra environment variables.
        activate_homebrew (list[str]): Prefixes to activate afterwards.
    """

    @property
    def name(self) -> str:
        return "script"

    def is_available(self) -> bool:
        return shutil.which("curl") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        url = context.params.get("url", "")
        if not url:
            return False, "Missing required param: 'url'"
        if not url.startswith("https://"):
            return False, f"Refusing to run installer from non-https URL: {url}"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.params
        url = params["url"]
        interpreter = params.get("interpreter", "bash")
        action_id = context.action.id

        fetched = run_command(
            ["curl", "-fsSL", url],
            timeout=FETCH_TIMEOUT,
            cwd=context.working_dir,
        )
        if not fetched["ok"]:
            return Receipt.failure(
                adapter=self.name,
                action_id=action_id,
                error=f"Download failed: {fetched['error']}",
                metadata={"url": url},
            )

        script = fetched["stdout"]
        # $0 is the interpreter name, the rest are the script's arguments
        cmd = [interpreter, "-c", script, interpreter, *params.get("args", [])]
        logger.info("Running %s installer from %s", interpreter, url)

        result = run_command(
            cmd,
            env_overrides=params.get("env"),
            capture=False,
            timeout=None,
            cwd=context.working_dir,
        )
        if not result["ok"]:
            return Receipt.failure(
                adapter=self.name,
                action_id=action_id,
                error=result["error"],
                metadata={"url": url, "return_code": result.get("returncode")},
            )

        metadata: dict = {"url": url, "interpreter": interpreter}
        prefixes = params.get("activate_homebrew")
        if prefixes:
            metadata["homebrew_prefix"] = activate_homebrew(prefixes)

        return Receipt.success(
            adapter=self.name,
            action_id=action_id,
            metadata=metadata,
        )
