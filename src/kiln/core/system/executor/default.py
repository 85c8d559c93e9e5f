from __future__ import annotations

import contextlib
import logging
import os
import signal
import subprocess
import sys
import time
from collections.abc import Callable, Sequence
from typing import IO, Any

from kiln.core.system.action import Action, ActionErrorType, ActionResult, CallableAction, CommandAction
from kiln.core.system.config import RunConfig
from kiln.core.system.executor import SchedulerObserver
from kiln.core.system.graph import TargetGraph
from kiln.core.system.report import RunReport
from kiln.core.system.target import Target, TargetStatus

TARGETS_SKIPPED_DUE_TO_FAILING_PREREQUISITES_TITLE = "Targets that were not executed due to failing prerequisites"
FIRST_FAILURE_OUTPUT_TITLE = "Output of the first failing target"

logger = logging.getLogger(__name__)


class ActionExecutor:
    """Executes the action of a target and reports the outcome as an :class:`ActionResult`.

    Execution blocks until the action is done. Failures of any kind (non-zero exit code, failure to start the
    process, timeout, interruption by the user) are reported through the result and never raised."""

    def __init__(self, config: RunConfig) -> None:
        self.config = config

    def execute(self, action: Action) -> ActionResult:
        if isinstance(action, CommandAction):
            return self._execute_command(action)
        elif isinstance(action, CallableAction):
            return self._execute_callable(action)
        else:
            return ActionResult(
                ActionErrorType.LAUNCH_ERROR,
                None,
                message=f"don't know how to execute action of type {type(action).__name__}",
            )

    # Command actions

    def _signal(self, proc: subprocess.Popen[Any], sig: int) -> None:
        try:
            if os.name == "posix":
                # The child runs in its own session; signal the whole group so that processes spawned by a
                # shell command receive it, too.
                os.killpg(proc.pid, sig)
            else:
                proc.send_signal(sig)
        except ProcessLookupError:
            pass

    def _stop(self, proc: subprocess.Popen[Any], first_signal: int) -> None:
        """Sends *first_signal* to the process, followed by `SIGTERM` and `SIGKILL` if the process does not exit
        within the grace period after each signal."""

        signals = [first_signal]
        for sig in (signal.SIGTERM, getattr(signal, "SIGKILL", None)):
            if sig is not None and sig not in signals:
                signals.append(sig)

        for sig in signals:
            if proc.poll() is not None:
                return
            logger.debug("sending %s to process %d", signal.Signals(sig).name, proc.pid)
            self._signal(proc, sig)
            try:
                proc.wait(timeout=self.config.interrupt_grace_period)
                return
            except subprocess.TimeoutExpired:
                continue

    def _execute_command(self, action: CommandAction) -> ActionResult:
        shell = self.config.shell or os.getenv("SHELL") or "sh"
        argv = action.get_argv(shell)
        cwd = self.config.project_dir / action.cwd if action.cwd else self.config.project_dir
        env = {**os.environ, **self.config.env, **action.env}
        timeout = action.timeout or self.config.timeout
        capture = self.config.capture_output

        logger.info("running %s in %s", action.describe(), cwd)
        tstart = time.perf_counter()

        def _result(error: ActionErrorType, exit_code: int | None, message: str, out: Any = None) -> ActionResult:
            stdout, stderr = out or (None, None)
            return ActionResult(error, exit_code, stdout, stderr, message, time.perf_counter() - tstart)

        with contextlib.ExitStack() as exit_stack:
            stdout: int | IO[bytes] | None = subprocess.PIPE if capture else None
            if action.stdout is not None:
                try:
                    stdout = exit_stack.enter_context((cwd / action.stdout).open("wb"))
                except OSError as exc:
                    return _result(ActionErrorType.LAUNCH_ERROR, None, f"cannot open {action.stdout}: {exc}")

            try:
                proc = subprocess.Popen(
                    argv,
                    cwd=cwd,
                    env=env,
                    stdout=stdout,
                    stderr=subprocess.PIPE if capture else None,
                    text=True,
                    errors="replace",
                    start_new_session=os.name == "posix",
                )
            except OSError as exc:
                logger.debug("failed to launch %s", argv, exc_info=True)
                message = f"failed to launch {argv[0]!r}: {exc.strerror or exc}"
                return _result(ActionErrorType.LAUNCH_ERROR, None, message)

            try:
                out = proc.communicate(timeout=timeout)
            except subprocess.TimeoutExpired:
                logger.warning("%s timed out after %ss, terminating it", action.describe(), timeout)
                self._stop(proc, signal.SIGTERM)
                return _result(ActionErrorType.TIMEOUT, None, f"timed out after {timeout}s", proc.communicate())
            except KeyboardInterrupt:
                logger.warning("interrupted, stopping %s", action.describe())
                self._stop(proc, signal.SIGINT)
                return _result(ActionErrorType.INTERRUPTED, proc.returncode, "interrupted", proc.communicate())

        return ActionResult.from_exit_code(
            argv, proc.returncode, stdout=out[0], stderr=out[1], duration=time.perf_counter() - tstart
        )

    # Callable actions

    def _execute_callable(self, action: CallableAction) -> ActionResult:
        logger.info("running %s", action.describe())
        tstart = time.perf_counter()
        try:
            value = action.func()
        except KeyboardInterrupt:
            return ActionResult(
                ActionErrorType.INTERRUPTED, None, message="interrupted", duration=time.perf_counter() - tstart
            )
        except SystemExit as exc:
            value = exc.code if isinstance(exc.code, int) else int(exc.code is not None)
        except Exception as exc:
            logger.exception("action %s raised an unhandled exception", action.describe())
            return ActionResult(
                ActionErrorType.EXIT_ERROR,
                1,
                message=f"unhandled exception: {exc}",
                duration=time.perf_counter() - tstart,
            )

        duration = time.perf_counter() - tstart
        if isinstance(value, ActionResult):
            return value
        elif value is None or value is True:
            return ActionResult.succeeded(duration=duration)
        elif value is False:
            return ActionResult.from_exit_code(None, 1, duration=duration)
        elif isinstance(value, int):
            return ActionResult.from_exit_code(None, value, duration=duration)
        return ActionResult(ActionErrorType.EXIT_ERROR, 1, message=f"bad return value: {value!r}", duration=duration)


class DefaultPrintingObserver(SchedulerObserver):
    """The default printing observer that has some parameters for customization."""

    def __init__(
        self,
        execute_prefix: str = ">",
        status_to_text: Callable[[TargetStatus], str] | None = None,
        format_header: Callable[[str], str] | None = None,
        format_duration: Callable[[str], str] | None = None,
    ) -> None:
        self.execute_prefix = execute_prefix
        self.status_to_text = status_to_text or self.default_status_to_text
        self.format_header = format_header or str
        self.format_duration = format_duration or str
        self._started: dict[str, float] = {}
        self._duration: dict[str, float] = {}

    def _print(self, *args: Any, file: IO[str] | None = None) -> None:
        print(*args, file=file or sys.stdout, flush=True)

    def default_status_to_text(self, status: TargetStatus) -> str:
        if status.message:
            return f"{status.type.name} ({status.message})"
        else:
            return status.type.name

    def before_execute_graph(self, graph: TargetGraph, goals: Sequence[str]) -> None:
        self._print()
        self._print(self.format_header("Start build"))
        self._print()

    def before_execute_target(self, target: Target, status: TargetStatus) -> None:
        self._print(self.execute_prefix, target.name, self.status_to_text(status))
        self._started[target.name] = time.perf_counter()

    def after_execute_target(self, target: Target, status: TargetStatus) -> None:
        self._print(self.execute_prefix, target.name, self.status_to_text(status))
        if target.name in self._started:
            self._duration[target.name] = time.perf_counter() - self._started[target.name]

    def after_execute_graph(self, graph: TargetGraph, report: RunReport) -> None:
        indent = " " * (len(self.execute_prefix) + 1)

        self._print()
        self._print(self.format_header("Build summary"))
        self._print()
        for name, status in report.summary():
            duration = self._duration.get(name)
            self._print(
                indent + name,
                self.status_to_text(status),
                self.format_duration(f"[{duration:.3f}s]") if duration is not None else "",
            )

        not_executed = report.not_executed()
        if not_executed:
            self._print()
            self._print(self.format_header(TARGETS_SKIPPED_DUE_TO_FAILING_PREREQUISITES_TITLE))
            self._print()
            for name in not_executed:
                self._print(indent + name)

        # Only the output of the first failure is shown.
        first_failure = report.first_failure()
        if first_failure is not None:
            name, status = first_failure
            result = status.result
            if result is not None and (result.stdout or result.stderr):
                self._print()
                self._print(self.format_header(f"{FIRST_FAILURE_OUTPUT_TITLE} ({name})"))
                self._print()
                if result.stdout:
                    self._print(result.stdout.rstrip())
                if result.stderr:
                    self._print(result.stderr.rstrip(), file=sys.stderr)

        self._print()
