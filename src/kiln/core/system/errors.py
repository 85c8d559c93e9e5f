from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path


class ConfigurationError(Exception):
    """
    Base class for errors in the description of the targets. These are raised before any action is executed.
    """


class DuplicateTargetError(ConfigurationError):
    def __init__(self, name: str) -> None:
        self.name = name

    def __str__(self) -> str:
        return f"target declared more than once: {self.name}"


class UnknownTargetError(ConfigurationError):
    def __init__(self, name: str, referenced_by: str | None = None) -> None:
        self.name = name
        self.referenced_by = referenced_by

    def __str__(self) -> str:
        if self.referenced_by is None:
            return f"no such target: {self.name}"
        return f"target {self.referenced_by!r} depends on undeclared target {self.name!r}"


class CycleError(ConfigurationError):
    def __init__(self, targets: Sequence[str]) -> None:
        assert len(targets) > 0
        self.targets = list(targets)

    def __str__(self) -> str:
        return f"encountered a dependency cycle: {' → '.join([*self.targets, self.targets[0]])}"


class TargetsFileError(ConfigurationError):
    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


class BuildError(Exception):
    def __init__(self, failed_targets: Iterable[str]) -> None:
        assert not isinstance(failed_targets, str), type(failed_targets)
        self.failed_targets = list(failed_targets)

    def __str__(self) -> str:
        if len(self.failed_targets) == 1:
            return f'target "{self.failed_targets[0]}" failed'
        else:
            return "targets " + ", ".join(f'"{name}"' for name in sorted(self.failed_targets)) + " failed"
