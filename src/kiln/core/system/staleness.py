""" Decides whether a target needs to be (re)built. Only the existence and modification time of declared outputs
are inspected, never their contents. """

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import NamedTuple

from kiln.core.system.target import Target, TargetStatus

logger = logging.getLogger(__name__)


class PrerequisiteOutcome(NamedTuple):
    """A prerequisite of the target in question together with the status it reached in this invocation."""

    target: Target
    status: TargetStatus


class StalenessOracle:
    """
    Implements the staleness policy for targets:

    1. A phony target, or a target that declares no outputs, is always stale.
    2. A target is stale if any of its declared outputs is missing.
    3. A target is stale if any of its prerequisites was rebuilt in the current invocation. This does not rely
       on timestamps, so a prerequisite and its dependent being rebuilt within the file system's timestamp
       resolution is handled correctly.
    4. Otherwise, a target is stale if the newest output of its prerequisites is not strictly older than the
       oldest of its own outputs.

    :param root: Relative output paths are resolved against this directory.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def _mtime(self, path: Path) -> int | None:
        try:
            return (self.root / path).stat().st_mtime_ns
        except (FileNotFoundError, NotADirectoryError):
            return None

    def explain(self, target: Target, prerequisite_outcomes: Sequence[PrerequisiteOutcome]) -> str | None:
        """Returns a human readable reason for why *target* is stale, or `None` if it is up to date."""

        if target.phony:
            return "target is phony"
        if not target.outputs:
            return "target declares no outputs"

        own_mtimes: list[int] = []
        for output in target.outputs:
            mtime = self._mtime(output)
            if mtime is None:
                return f"output {output} is missing"
            own_mtimes.append(mtime)

        for prerequisite, status in prerequisite_outcomes:
            if status.is_succeeded():
                return f"prerequisite {prerequisite.name} was rebuilt"

        newest: tuple[int, Path] | None = None
        for prerequisite, _status in prerequisite_outcomes:
            for output in prerequisite.outputs:
                mtime = self._mtime(output)
                if mtime is None:
                    return f"output {output} of prerequisite {prerequisite.name} is missing"
                if newest is None or mtime > newest[0]:
                    newest = (mtime, output)

        if newest is not None and newest[0] >= min(own_mtimes):
            return f"{newest[1]} is not older than the outputs of the target"
        return None

    def is_stale(self, target: Target, prerequisite_outcomes: Sequence[PrerequisiteOutcome]) -> bool:
        reason = self.explain(target, prerequisite_outcomes)
        if reason is None:
            logger.debug("target '%s' is up to date", target.name)
            return False
        logger.debug("target '%s' is stale: %s", target.name, reason)
        return True
