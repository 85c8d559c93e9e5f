""" Pytest fixtures and helpers for testing Kiln target graphs. """

from __future__ import annotations

import os
import tempfile
from collections.abc import Iterator, Sequence
from pathlib import Path

import pytest

from kiln.core.system.action import CallableAction, CallableReturn
from kiln.core.system.config import RunConfig
from kiln.core.system.target import Target

__all__ = [
    "ActionRecorder",
    "kiln_config",
    "recorder",
    "set_mtime",
    "tempdir",
]


@pytest.fixture
def tempdir() -> Iterator[Path]:
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def kiln_config(tempdir: Path) -> RunConfig:
    return RunConfig(project_dir=tempdir)


@pytest.fixture
def recorder(tempdir: Path) -> ActionRecorder:
    return ActionRecorder(tempdir)


def set_mtime(path: Path, mtime: float) -> None:
    """Set the access and modification time of *path* to *mtime* (seconds since the epoch)."""

    os.utime(path, (mtime, mtime))


class ActionRecorder:
    """Creates in-process actions that remember the order in which they were executed and write their outputs.

    :param root: The directory that output paths are relative to.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self.calls: list[str] = []

    def action(self, name: str, *, writes: Sequence[str | Path] = (), returns: CallableReturn = None) -> CallableAction:
        def _run() -> CallableReturn:
            self.calls.append(name)
            for path in writes:
                (self.root / path).write_text(f"written by {name}\n")
            return returns

        return CallableAction(_run, name=name)

    def target(
        self,
        name: str,
        needs: Sequence[str] = (),
        outputs: Sequence[str] = (),
        *,
        phony: bool = False,
        returns: CallableReturn = None,
    ) -> Target:
        """Create a target whose action records its call and writes all of the target's *outputs*."""

        return Target(
            name,
            self.action(name, writes=outputs, returns=returns),
            prerequisites=tuple(needs),
            outputs=tuple(Path(p) for p in outputs),
            phony=phony,
        )
