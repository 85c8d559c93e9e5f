from __future__ import annotations

from collections.abc import Iterator

from kiln.core.system.target import Target, TargetStatus


class RunReport:
    """The outcome of every target processed in one invocation, in processing order.

    The report is append-only. It is owned by the scheduler while the invocation runs and handed to the caller
    afterwards, who uses it to print progress and to decide on the process exit code."""

    def __init__(self, goals: list[str] | None = None) -> None:
        self.goals: list[str] = list(goals or [])
        self._entries: dict[str, TargetStatus] = {}

    def __repr__(self) -> str:
        return f"RunReport({', '.join(f'{k}={v.type.name}' for k, v in self._entries.items())})"

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[tuple[str, TargetStatus]]:
        return iter(self._entries.items())

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def record(self, target: Target | str, status: TargetStatus) -> None:
        """Record the terminal *status* of *target*. A target can only be recorded once."""

        name = target if isinstance(target, str) else target.name
        if not status.is_terminal():
            raise ValueError(f"cannot record non-terminal status {status.type.name} for target `{name}`")
        if name in self._entries:
            raise RuntimeError(f"already have a status for target `{name}`")
        self._entries[name] = status

    def summary(self) -> list[tuple[str, TargetStatus]]:
        """Returns the recorded `(target name, status)` pairs in processing order."""

        return list(self._entries.items())

    def get_status(self, target: Target | str) -> TargetStatus | None:
        name = target if isinstance(target, str) else target.name
        return self._entries.get(name)

    def failed(self) -> list[str]:
        """Returns the targets whose action failed."""

        return [name for name, status in self._entries.items() if status.is_failed()]

    def not_executed(self) -> list[str]:
        """Returns the targets that were skipped because one of their prerequisites failed."""

        return [name for name, status in self._entries.items() if status.is_upstream_failed()]

    def first_failure(self) -> tuple[str, TargetStatus] | None:
        return next(((name, status) for name, status in self._entries.items() if status.is_failed()), None)

    def is_ok(self) -> bool:
        """Returns `True` if every goal was reached and no recorded target ended in a failure state."""

        for goal in self.goals:
            status = self._entries.get(goal)
            if status is None or status.is_not_ok():
                return False
        return all(status.is_ok() for status in self._entries.values())

    def exit_code(self) -> int:
        return 0 if self.is_ok() else 1
