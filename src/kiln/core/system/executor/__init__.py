""" Defines the Kiln scheduler observer API. """

from __future__ import annotations

import abc
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kiln.core.system.graph import TargetGraph
    from kiln.core.system.report import RunReport
    from kiln.core.system.target import Target, TargetStatus


class SchedulerObserver(abc.ABC):
    """Observes events in the Kiln scheduler."""

    def before_execute_graph(self, graph: TargetGraph, goals: Sequence[str]) -> None:
        ...

    def before_execute_target(self, target: Target, status: TargetStatus) -> None:
        ...

    def after_execute_target(self, target: Target, status: TargetStatus) -> None:
        ...

    def after_execute_graph(self, graph: TargetGraph, report: RunReport) -> None:
        ...


class NullObserver(SchedulerObserver):
    """An observer that ignores all events."""
