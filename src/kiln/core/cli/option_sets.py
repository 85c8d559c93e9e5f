from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import TYPE_CHECKING

from kiln.core.system.config import RunConfig
from kiln.core.system.loader import DEFAULT_TARGETS_FILE

if TYPE_CHECKING:
    import argparse


def _positive_float(value: str) -> float:
    import argparse

    try:
        result = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if result <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value!r}")
    return result


@dataclasses.dataclass(frozen=True)
class BuildOptions:
    project_dir: Path
    targets_file: Path

    @staticmethod
    def add_to_parser(parser: argparse.ArgumentParser) -> None:
        group = parser.add_argument_group("build options")
        group.add_argument(
            "-p",
            "--project-dir",
            metavar="PATH",
            type=Path,
            default=Path.cwd(),
            help="the project directory. relative output paths are resolved against it and commands run in it "
            "[default: the current directory]",
        )
        group.add_argument(
            "-f",
            "--file",
            metavar="PATH",
            type=Path,
            help=f"the targets file to load [default: ${{--project-dir}}/{DEFAULT_TARGETS_FILE}]",
        )

    @classmethod
    def collect(cls, args: argparse.Namespace) -> BuildOptions:
        project_dir = args.project_dir.absolute()
        return cls(
            project_dir=project_dir,
            targets_file=args.file or project_dir / DEFAULT_TARGETS_FILE,
        )


@dataclasses.dataclass(frozen=True)
class GraphOptions:
    goals: list[str] | None

    @staticmethod
    def add_to_parser(parser: argparse.ArgumentParser) -> None:
        group = parser.add_argument_group("graph options")
        group.add_argument(
            "goals",
            metavar="goal",
            nargs="*",
            help="one or more targets to build, in order. if not set, the default goal is built.",
            default=[],
        )

    @classmethod
    def collect(cls, args: argparse.Namespace) -> GraphOptions:
        return cls(goals=args.goals or None)


@dataclasses.dataclass(frozen=True)
class RunOptions:
    timeout: float | None
    capture_output: bool
    keep_outputs_on_failure: bool

    @staticmethod
    def add_to_parser(parser: argparse.ArgumentParser) -> None:
        group = parser.add_argument_group("run options")
        group.add_argument(
            "-t",
            "--timeout",
            metavar="SECONDS",
            type=_positive_float,
            help="the default timeout for every command. targets may override it [default: no timeout]",
        )
        group.add_argument(
            "-c",
            "--capture-output",
            action="store_true",
            help="capture the output of commands and only show it for the first failing target",
        )
        group.add_argument(
            "-k",
            "--keep-outputs-on-failure",
            action="store_true",
            help="do not remove the declared outputs of a target whose command failed",
        )

    @classmethod
    def collect(cls, args: argparse.Namespace) -> RunOptions:
        return cls(
            timeout=args.timeout,
            capture_output=args.capture_output,
            keep_outputs_on_failure=args.keep_outputs_on_failure,
        )

    def to_config(self, build_options: BuildOptions) -> RunConfig:
        return RunConfig(
            project_dir=build_options.project_dir,
            timeout=self.timeout,
            capture_output=self.capture_output,
            delete_outputs_on_failure=not self.keep_outputs_on_failure,
        )
