""" This module provides the :class:`Target` class, a named unit of work with prerequisites and one action, and
the :class:`TargetStatus` that a target ends up in after the scheduler has processed it."""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Iterable
from pathlib import Path

from kiln.core.system.action import Action, ActionResult


class TargetStatusType(enum.Enum):
    """Represents the states that a target goes through during one invocation."""

    PENDING = enum.auto()  #: The target was not processed yet.
    RUNNING = enum.auto()  #: The target's action is currently executing.
    UP_TO_DATE = enum.auto()  #: The target was not stale, its action did not run.
    SUCCEEDED = enum.auto()  #: The target was stale and its action succeeded.
    FAILED = enum.auto()  #: The target was stale and its action failed (or was interrupted).
    UPSTREAM_FAILED = enum.auto()  #: A prerequisite failed, the target's action did not run.

    def is_ok(self) -> bool:
        return self in (TargetStatusType.UP_TO_DATE, TargetStatusType.SUCCEEDED)

    def is_not_ok(self) -> bool:
        return not self.is_ok()

    def is_terminal(self) -> bool:
        return self not in (TargetStatusType.PENDING, TargetStatusType.RUNNING)


@dataclasses.dataclass(frozen=True)
class TargetStatus:
    """Represents a target status with a message and, if the target's action ran, the :class:`ActionResult`."""

    type: TargetStatusType
    message: str | None = None
    result: ActionResult | None = dataclasses.field(default=None, compare=False)

    def is_ok(self) -> bool:
        return self.type.is_ok()

    def is_not_ok(self) -> bool:
        return self.type.is_not_ok()

    def is_terminal(self) -> bool:
        return self.type.is_terminal()

    def is_pending(self) -> bool:
        return self.type == TargetStatusType.PENDING

    def is_running(self) -> bool:
        return self.type == TargetStatusType.RUNNING

    def is_up_to_date(self) -> bool:
        return self.type == TargetStatusType.UP_TO_DATE

    def is_succeeded(self) -> bool:
        return self.type == TargetStatusType.SUCCEEDED

    def is_failed(self) -> bool:
        return self.type == TargetStatusType.FAILED

    def is_upstream_failed(self) -> bool:
        return self.type == TargetStatusType.UPSTREAM_FAILED

    @staticmethod
    def pending(message: str | None = None) -> TargetStatus:
        return TargetStatus(TargetStatusType.PENDING, message)

    @staticmethod
    def running(message: str | None = None) -> TargetStatus:
        return TargetStatus(TargetStatusType.RUNNING, message)

    @staticmethod
    def up_to_date(message: str | None = None) -> TargetStatus:
        return TargetStatus(TargetStatusType.UP_TO_DATE, message)

    @staticmethod
    def succeeded(message: str | None = None, result: ActionResult | None = None) -> TargetStatus:
        return TargetStatus(TargetStatusType.SUCCEEDED, message, result)

    @staticmethod
    def failed(message: str | None = None, result: ActionResult | None = None) -> TargetStatus:
        return TargetStatus(TargetStatusType.FAILED, message, result)

    @staticmethod
    def upstream_failed(message: str | None = None) -> TargetStatus:
        return TargetStatus(TargetStatusType.UPSTREAM_FAILED, message)

    @staticmethod
    def from_result(result: ActionResult) -> TargetStatus:
        if result.ok:
            return TargetStatus.succeeded(None, result)
        return TargetStatus.failed(result.message, result)


@dataclasses.dataclass(frozen=True)
class Target:
    """
    A target is a named unit of work. It depends on zero or more other targets (its prerequisites) by name and
    carries exactly one :class:`Action`.

    A target declares the files it produces in :attr:`outputs`, which the staleness check compares against the
    outputs of its prerequisites. A target that produces nothing cacheable (e.g. a step that runs the built
    program) should be marked :attr:`phony`; it is then always executed.
    """

    name: str
    action: Action
    prerequisites: tuple[str, ...] = ()
    outputs: tuple[Path, ...] = ()
    phony: bool = False
    description: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError(f"Target.name must be a non-empty string, got {self.name!r}")
        if not isinstance(self.action, Action):
            raise TypeError(f"Target({self.name}).action must be an Action, got {type(self.action).__name__}")

        # Drop duplicate prerequisites but keep the declaration order.
        object.__setattr__(self, "prerequisites", tuple(dict.fromkeys(_as_tuple(self.prerequisites))))
        object.__setattr__(self, "outputs", tuple(Path(p) for p in _as_tuple(self.outputs)))

        if self.phony and self.outputs:
            raise ValueError(f"Target({self.name}) is phony and cannot declare outputs")

    def __repr__(self) -> str:
        return f"Target({self.name})"

    @property
    def always_stale(self) -> bool:
        """Whether the target must run on every invocation because it has nothing to compare timestamps with."""

        return self.phony or not self.outputs


def _as_tuple(value: Iterable[str | Path] | str | Path) -> tuple[str | Path, ...]:
    if isinstance(value, (str, Path)):
        return (value,)
    return tuple(value)
