""" Loads a :class:`TargetGraph` from a targets file. The file is plain TOML data: a table per target, no
expressions or variables. For example:

```toml
default = "run"

[targets.compile]
command = "cargo run"
stdout = "result.asm"
outputs = ["result.asm"]

[targets.assemble]
needs = ["compile"]
command = ["nasm", "-f", "elf64", "result.asm"]
outputs = ["result.o"]
```
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import tomli

from kiln.common import TomlConfigFile
from kiln.core.system.action import CommandAction
from kiln.core.system.errors import TargetsFileError
from kiln.core.system.graph import TargetGraph
from kiln.core.system.target import Target

DEFAULT_TARGETS_FILE = Path("kiln.toml")
TOP_LEVEL_KEYS = frozenset({"default", "targets"})
TARGET_KEYS = frozenset({"command", "needs", "outputs", "phony", "description", "stdout", "cwd", "env", "timeout"})

logger = logging.getLogger(__name__)


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(x, str) for x in value)


class _TargetParser:
    def __init__(self, path: Path, name: str, table: Any) -> None:
        self.path = path
        self.name = name
        if not isinstance(table, dict):
            raise self.error(f"expected a table, got {type(table).__name__}")
        self.table: dict[str, Any] = table

    def error(self, message: str) -> TargetsFileError:
        return TargetsFileError(self.path, f"target {self.name!r}: {message}")

    def get_str(self, key: str) -> str | None:
        value = self.table.get(key)
        if value is not None and not isinstance(value, str):
            raise self.error(f"{key!r} must be a string")
        return value

    def get_str_list(self, key: str) -> list[str]:
        value = self.table.get(key, [])
        if not _is_str_list(value):
            raise self.error(f"{key!r} must be a list of strings")
        return list(value)

    def parse(self) -> Target:
        unknown = sorted(set(self.table) - TARGET_KEYS)
        if unknown:
            raise self.error(f"unknown {'key' if len(unknown) == 1 else 'keys'} {', '.join(map(repr, unknown))}")

        command = self.table.get("command")
        if command is None:
            raise self.error("missing 'command'")
        if not (isinstance(command, str) or (_is_str_list(command) and command)):
            raise self.error("'command' must be a string or a non-empty list of strings")

        phony = self.table.get("phony", False)
        if not isinstance(phony, bool):
            raise self.error("'phony' must be a boolean")

        timeout = self.table.get("timeout")
        if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float))):
            raise self.error("'timeout' must be a number")

        env = self.table.get("env", {})
        if not isinstance(env, dict) or not all(isinstance(v, str) for v in env.values()):
            raise self.error("'env' must be a table of strings")

        stdout = self.get_str("stdout")
        cwd = self.get_str("cwd")

        try:
            action = CommandAction(
                command,
                cwd=Path(cwd) if cwd else None,
                env=env,
                stdout=Path(stdout) if stdout else None,
                timeout=timeout,
            )
            return Target(
                self.name,
                action,
                prerequisites=tuple(self.get_str_list("needs")),
                outputs=tuple(Path(p) for p in self.get_str_list("outputs")),
                phony=phony,
                description=self.get_str("description"),
            )
        except ValueError as exc:
            raise self.error(str(exc)) from exc


def load_targets(path: Path) -> TargetGraph:
    """Load the targets file at *path* and return the validated graph.

    :raises TargetsFileError: If the file does not exist or is malformed.
    :raises ConfigurationError: If the graph has undeclared prerequisites or a dependency cycle.
    """

    config = TomlConfigFile(path)
    if not config.exists():
        raise TargetsFileError(path, "file does not exist")

    try:
        data = dict(config)
    except tomli.TOMLDecodeError as exc:
        raise TargetsFileError(path, f"invalid TOML: {exc}") from exc

    unknown = sorted(set(data) - TOP_LEVEL_KEYS)
    if unknown:
        raise TargetsFileError(path, f"unknown top-level {'key' if len(unknown) == 1 else 'keys'} {', '.join(unknown)}")

    default = data.get("default")
    if default is not None and not isinstance(default, str):
        raise TargetsFileError(path, "'default' must be a string")

    tables = data.get("targets", {})
    if not isinstance(tables, dict):
        raise TargetsFileError(path, "'targets' must be a table")
    if not tables:
        raise TargetsFileError(path, "no targets declared")

    targets = [_TargetParser(path, name, table).parse() for name, table in tables.items()]
    graph = TargetGraph(targets, default=default)
    graph.validate()

    logger.info("loaded %d target(s) from %s", len(graph), path)
    return graph
