"""
Mock adapter — test double for every adapter name.

Used by ``--mock`` runs and the test suite to walk a full setup plan
without touching the machine. Configurable per step.
"""

from __future__ import annotations

from dotstrap.adapters.base import Adapter, ExecutionContext
from dotstrap.core.models.action import Receipt


class MockAdapter(Adapter):
    """Universal mock adapter.

    By default, returns success for everything. Responses are keyed by
    the action's ``step`` so tests don't need to know operation IDs.
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "[mock] executed",
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._failures: dict[str, str] = {}
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        """All execution contexts this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def steps(self) -> list[str]:
        """Steps executed, in order."""
        return [ctx.action.step for ctx in self._call_log]

    def is_available(self) -> bool:
        return self._available

    def set_failure(self, step: str, error: str = "Mock failure") -> None:
        """Configure a specific step to fail."""
        self._failures[step] = error

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._call_log.append(context)
        action = context.action

        if action.step in self._failures:
            return Receipt.failure(
                adapter=self._name,
                action_id=action.id,
                error=self._failures[action.step],
            )

        return Receipt.success(
            adapter=self._name,
            action_id=action.id,
            output=self._default_output,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        """Clear call log and configured failures."""
        self._call_log.clear()
        self._failures.clear()
