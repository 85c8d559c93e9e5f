from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from pathlib import Path


@dataclasses.dataclass(frozen=True)
class RunConfig:
    """Configuration for one invocation of the :class:`~kiln.core.system.scheduler.Scheduler`.

    Nothing in Kiln reads the current working directory or other process-wide state implicitly; everything an
    invocation depends on is passed in through this object."""

    #: The directory that relative output paths are resolved against, and that commands run in by default.
    project_dir: Path

    #: The default timeout in seconds for command actions that do not specify their own. `None` means no timeout.
    timeout: float | None = None

    #: Capture the standard output and error of command actions instead of letting them inherit the streams.
    capture_output: bool = False

    #: Additional environment variables for command actions.
    env: Mapping[str, str] = dataclasses.field(default_factory=dict)

    #: The shell used to run string commands. Defaults to `$SHELL`, falling back to `sh`.
    shell: str | None = None

    #: Remove the declared outputs of a target whose action failed, so they do not appear up to date later.
    delete_outputs_on_failure: bool = True

    #: Seconds to wait for a child process after each signal when stopping it (interrupt or timeout).
    interrupt_grace_period: float = 3.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "project_dir", Path(self.project_dir).absolute())
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"RunConfig.timeout must be positive, got {self.timeout!r}")
