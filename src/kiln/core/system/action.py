""" This module provides the :class:`Action` types that a :class:`~kiln.core.system.target.Target` carries and the
:class:`ActionResult` that the :class:`~kiln.core.system.executor.default.ActionExecutor` produces when running one."""

from __future__ import annotations

import abc
import dataclasses
import enum
import shlex
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Union


class ActionErrorType(enum.Enum):
    """Represents the ways in which executing an action can go wrong."""

    EXIT_ERROR = enum.auto()  #: The action ran to completion but reported a non-zero exit code.
    LAUNCH_ERROR = enum.auto()  #: The action could not be started at all (e.g. missing executable).
    TIMEOUT = enum.auto()  #: The action exceeded its timeout and was terminated.
    INTERRUPTED = enum.auto()  #: The action was cancelled by the user.


@dataclasses.dataclass(frozen=True)
class ActionResult:
    """The immutable result of executing an :class:`Action`. An :attr:`error` of `None` means success."""

    error: ActionErrorType | None = None
    exit_code: int | None = 0
    stdout: str | None = None
    stderr: str | None = None
    message: str | None = None
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None

    def is_interrupted(self) -> bool:
        return self.error == ActionErrorType.INTERRUPTED

    def is_timeout(self) -> bool:
        return self.error == ActionErrorType.TIMEOUT

    def is_launch_error(self) -> bool:
        return self.error == ActionErrorType.LAUNCH_ERROR

    @staticmethod
    def succeeded(*, stdout: str | None = None, stderr: str | None = None, duration: float = 0.0) -> ActionResult:
        return ActionResult(None, 0, stdout, stderr, None, duration)

    @staticmethod
    def from_exit_code(
        command: Sequence[str] | None,
        code: int,
        *,
        stdout: str | None = None,
        stderr: str | None = None,
        duration: float = 0.0,
    ) -> ActionResult:
        if code == 0:
            return ActionResult.succeeded(stdout=stdout, stderr=stderr, duration=duration)
        message = (
            f"exit code {code}"
            if command is None
            else 'command "' + " ".join(map(shlex.quote, command)) + f'" returned exit code {code}'
        )
        return ActionResult(ActionErrorType.EXIT_ERROR, code, stdout, stderr, message, duration)


#: The values that a :class:`CallableAction` function may return.
CallableReturn = Union[None, bool, int, ActionResult]


class Action(abc.ABC):
    """Base class for the unit of work attached to a target. Actions are opaque to the scheduler, only the
    :class:`ActionResult` of executing them is inspected."""

    @abc.abstractmethod
    def describe(self) -> str:
        """Return a short human readable description of the action, used in progress output and logs."""


@dataclasses.dataclass(frozen=True)
class CommandAction(Action):
    """Runs an external command.

    A string *command* is passed to the shell (``<shell> -c <command>``), a sequence is executed directly as
    an argument vector. Relative *cwd* and *stdout* paths are interpreted relative to the project directory.
    """

    command: str | Sequence[str]
    cwd: Path | None = None
    env: Mapping[str, str] = dataclasses.field(default_factory=dict)
    stdout: Path | None = None
    timeout: float | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.command, str):
            object.__setattr__(self, "command", tuple(self.command))
            if not self.command:
                raise ValueError("CommandAction.command must not be empty")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"CommandAction.timeout must be positive, got {self.timeout!r}")

    @property
    def is_shell(self) -> bool:
        return isinstance(self.command, str)

    def get_argv(self, shell: str) -> list[str]:
        if isinstance(self.command, str):
            return [shell, "-c", self.command]
        return list(self.command)

    def describe(self) -> str:
        if isinstance(self.command, str):
            text = self.command
        else:
            text = " ".join(map(shlex.quote, self.command))
        if self.stdout is not None:
            text += f" > {self.stdout}"
        return text


@dataclasses.dataclass(frozen=True)
class CallableAction(Action):
    """Runs a Python callable in-process. See :data:`CallableReturn` for how its return value is interpreted."""

    func: Callable[[], CallableReturn]
    name: str | None = None

    def describe(self) -> str:
        return self.name or getattr(self.func, "__qualname__", None) or repr(self.func)
