from __future__ import annotations

import argparse
import builtins
import logging
import os
import sys
import textwrap
from functools import partial
from typing import NoReturn

from termcolor import colored

from kiln.common import LoggingOptions, pluralize
from kiln.core.cli.executor import ColoredDefaultPrintingObserver
from kiln.core.cli.option_sets import BuildOptions, GraphOptions, RunOptions
from kiln.core.system.errors import BuildError, ConfigurationError
from kiln.core.system.graph import TargetGraph
from kiln.core.system.loader import load_targets
from kiln.core.system.scheduler import Scheduler

logger = logging.getLogger(__name__)
print = partial(builtins.print, flush=True)


def _get_argument_parser(prog: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog,
        formatter_class=lambda prog: argparse.RawDescriptionHelpFormatter(prog, width=120, max_help_position=60),
        description=textwrap.dedent(
            """
            Kiln, a small task runner.

            Builds goal targets by running the commands of every target in their prerequisite closure that is
            out of date, in dependency order.
            """
        ),
    )
    subparsers = parser.add_subparsers(dest="cmd")

    run = subparsers.add_parser("run", aliases=["r"], description="build one or more goals", allow_abbrev=False)
    LoggingOptions.add_to_parser(run)
    BuildOptions.add_to_parser(run)
    GraphOptions.add_to_parser(run)
    RunOptions.add_to_parser(run)

    query = subparsers.add_parser("query", aliases=["q"])
    query_subparsers = query.add_subparsers(dest="query_cmd")

    ls = query_subparsers.add_parser("ls", description="list all targets in the targets file")
    LoggingOptions.add_to_parser(ls)
    BuildOptions.add_to_parser(ls)

    order = query_subparsers.add_parser(
        "order",
        aliases=["o"],
        description="print the order in which the targets for the goals would be processed, without running them",
    )
    LoggingOptions.add_to_parser(order)
    BuildOptions.add_to_parser(order)
    GraphOptions.add_to_parser(order)

    return parser


def run(build_options: BuildOptions, graph_options: GraphOptions, run_options: RunOptions) -> None:
    graph = load_targets(build_options.targets_file)
    scheduler = Scheduler(graph, ColoredDefaultPrintingObserver())
    report = scheduler.run(graph_options.goals, run_options.to_config(build_options))

    if not report.is_ok():
        print("error:", BuildError(report.failed()), file=sys.stderr)
        sys.exit(1)


def ls(graph: TargetGraph) -> None:
    goals = {t.name for t in graph.goals()}
    longest_name = max(len(t.name) for t in graph)

    print()
    print(colored("Targets", "blue", attrs=["bold", "underline"]))
    print()

    for target in graph:
        line = target.name.ljust(longest_name)
        if target.name in goals:
            line = colored(line, "green")
        if target.name == graph.default_goal:
            line = colored(line, attrs=["bold"]) + colored(" (default)", "yellow")
        if target.phony:
            line += colored(" (phony)", "blue")
        if target.description:
            line += "  " + target.description
        print("  " + line)

        indent = "  " + " " * (longest_name + 2)
        if target.prerequisites:
            print(indent + colored("needs:", "grey"), ", ".join(target.prerequisites))
        if target.outputs:
            print(indent + colored("outputs:", "grey"), ", ".join(map(str, target.outputs)))
        print(indent + colored("action:", "grey"), target.action.describe())

    print()


def order(graph: TargetGraph, graph_options: GraphOptions) -> None:
    goals = graph_options.goals or [graph.default_goal]
    seen: set[str] = set()
    for goal in goals:
        for target in graph.resolve(goal):
            if target.name not in seen:
                seen.add(target.name)
                print(target.name)
    logger.info("%d %s in the closure of %s", len(seen), pluralize("target", seen), ", ".join(goals))


def on_exception(exc: BaseException) -> int:
    """
    Called when an exception occurs in :func:`main_internal` to map it to an exit code and log a readable message.
    """

    match exc:
        case SystemExit():
            if exc.code is None:
                return 0
            if not isinstance(exc.code, int):
                logger.warning("SystemExit.code is not an integer: %r", exc.code)
                return 1
            return exc.code
        case KeyboardInterrupt():
            logger.error("interrupted")
            return 130
        case ConfigurationError():
            logger.error("%s", exc)
            return 2
        case _:
            logger.error(
                "An unexpected error occurred in the Kiln CLI. This is likely a bug in Kiln.\n\n",
                exc_info=exc,
            )
            return 3


def main_internal(prog: str, argv: list[str] | None) -> NoReturn:
    parser = _get_argument_parser(prog)
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    if not args.cmd:
        parser.print_usage()
        sys.exit(0)

    if LoggingOptions.available(args):
        LoggingOptions.collect(args).init_logging()

    if args.cmd in ("run", "r"):
        run(BuildOptions.collect(args), GraphOptions.collect(args), RunOptions.collect(args))

    elif args.cmd in ("query", "q"):
        if not args.query_cmd:
            parser.print_usage()
            sys.exit(0)

        graph = load_targets(BuildOptions.collect(args).targets_file)
        if args.query_cmd == "ls":
            ls(graph)
        elif args.query_cmd in ("order", "o"):
            order(graph, GraphOptions.collect(args))
        else:
            assert False, args.query_cmd

    else:
        parser.print_usage()

    sys.exit(0)


def main(prog: str = "kiln", argv: list[str] | None = None, handle_exceptions: bool = True) -> NoReturn:
    try:
        main_internal(prog, argv)
    except BaseException as exc:
        if not handle_exceptions:
            raise
        if os.getenv("KILN_DEBUG") == "1" and not isinstance(exc, SystemExit):
            logger.exception("exception in main_internal()")
        sys.exit(on_exception(exc))


if __name__ == "__main__":
    main()
