""" The scheduler drives one invocation: it resolves the requested goals to an ordered list of targets, decides
for each target whether it needs to run, runs it and records the outcome in a :class:`RunReport`. """

from __future__ import annotations

import logging
from collections.abc import Sequence

from kiln.common import not_none, pluralize, safe_rmpath
from kiln.core.system.config import RunConfig
from kiln.core.system.errors import BuildError
from kiln.core.system.executor import NullObserver, SchedulerObserver
from kiln.core.system.executor.default import ActionExecutor
from kiln.core.system.graph import TargetGraph
from kiln.core.system.report import RunReport
from kiln.core.system.staleness import PrerequisiteOutcome, StalenessOracle
from kiln.core.system.target import Target, TargetStatus

logger = logging.getLogger(__name__)


class Scheduler:
    """
    Processes targets strictly sequentially in the order returned by :meth:`TargetGraph.resolve`. Every target
    goes from `PENDING` to exactly one terminal state:

    * `UPSTREAM_FAILED` if any of its prerequisites failed (its action never runs),
    * `UP_TO_DATE` if the :class:`StalenessOracle` says it is not stale,
    * otherwise `RUNNING`, and then `SUCCEEDED` or `FAILED` depending on the result of its action.

    A failure only affects the targets that depend on the failed target. Targets that are shared between the
    closures of multiple goals are processed only once per invocation.
    """

    def __init__(self, graph: TargetGraph, observer: SchedulerObserver | None = None) -> None:
        self.graph = graph
        self.observer = observer or NullObserver()

    def _delete_outputs(self, target: Target, config: RunConfig) -> None:
        for output in target.outputs:
            path = config.project_dir / output
            if safe_rmpath(path):
                logger.info("removed output %s of failed target '%s'", output, target.name)

    def _process(
        self,
        target: Target,
        report: RunReport,
        executor: ActionExecutor,
        oracle: StalenessOracle,
        config: RunConfig,
    ) -> TargetStatus:
        prerequisites = [
            PrerequisiteOutcome(p, not_none(report.get_status(p), lambda: f"{p} was not processed before {target}"))
            for p in self.graph.get_prerequisites(target)
        ]

        failed = [p.target.name for p in prerequisites if p.status.is_not_ok()]
        if failed:
            return TargetStatus.upstream_failed(f"{pluralize('prerequisite', failed)} {', '.join(failed)} failed")

        if not oracle.is_stale(target, prerequisites):
            return TargetStatus.up_to_date()

        self.observer.before_execute_target(target, TargetStatus.running(target.action.describe()))
        result = executor.execute(target.action)
        if result.is_interrupted():
            status = TargetStatus.failed("interrupted", result)
        else:
            status = TargetStatus.from_result(result)

        if status.is_failed() and config.delete_outputs_on_failure:
            self._delete_outputs(target, config)
        return status

    def run(self, goals: str | Sequence[str] | None, config: RunConfig) -> RunReport:
        """Build the given *goals* in order and return the report of the invocation.

        :param goals: One or more target names. If `None`, the graph's default goal is built.
        :param config: The configuration for this invocation.
        :raises ConfigurationError: If a goal or one of its prerequisites is undeclared, or if there is a
            dependency cycle. This is raised before any action is executed.
        """

        if goals is None:
            goals = [self.graph.default_goal]
        elif isinstance(goals, str):
            goals = [goals]
        goals = list(dict.fromkeys(goals))

        # Resolve all goals before any action runs.
        orders = [(goal, self.graph.resolve(goal)) for goal in goals]

        report = RunReport(goals)
        executor = ActionExecutor(config)
        oracle = StalenessOracle(config.project_dir)

        self.observer.before_execute_graph(self.graph, goals)
        interrupted = False
        try:
            for goal, order in orders:
                for target in order:
                    if target.name in report:
                        continue
                    if interrupted:
                        status = TargetStatus.upstream_failed("cancelled")
                    else:
                        status = self._process(target, report, executor, oracle, config)
                        interrupted = status.result is not None and status.result.is_interrupted()
                        if interrupted:
                            logger.warning("build was interrupted, cancelling all remaining targets")
                    report.record(target, status)
                    self.observer.after_execute_target(target, status)

                # After an interruption, the targets of the remaining goals are still recorded as cancelled.
                if interrupted:
                    continue
                if not_none(report.get_status(goal)).is_not_ok():
                    remaining = goals[goals.index(goal) + 1 :]
                    if remaining:
                        logger.info("goal '%s' failed, not building %s", goal, ", ".join(remaining))
                    break
        finally:
            self.observer.after_execute_graph(self.graph, report)

        return report


def build(
    graph: TargetGraph,
    goals: str | Sequence[str] | None,
    config: RunConfig,
    observer: SchedulerObserver | None = None,
) -> RunReport:
    """Like :meth:`Scheduler.run`, but raises a :class:`BuildError` if the build was not successful."""

    report = Scheduler(graph, observer).run(goals, config)
    if not report.is_ok():
        raise BuildError(report.failed())
    return report
