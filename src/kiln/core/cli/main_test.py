import json
import sys
from pathlib import Path

import pytest

from kiln.core.cli.main import main, on_exception
from kiln.core.system.errors import CycleError, TargetsFileError


def _command(code: str) -> str:
    return json.dumps([sys.executable, "-c", code])


def _main(*argv: str) -> int:
    with pytest.raises(SystemExit) as excinfo:
        main(argv=list(argv))
    code = excinfo.value.code
    assert isinstance(code, int)
    return code


@pytest.fixture
def project(tempdir: Path) -> Path:
    (tempdir / "kiln.toml").write_text(
        f"""
default = "greet"

[targets.hello]
command = {_command("print('hello')")}
stdout = "hello.txt"
outputs = ["hello.txt"]

[targets.greet]
needs = ["hello"]
command = {_command("import pathlib; print(pathlib.Path('hello.txt').read_text().strip() + ' world')")}
phony = true
description = "Greets the world"

[targets.broken]
command = {_command("raise SystemExit(7)")}
phony = true
"""
    )
    return tempdir


def test__main__without_command_prints_usage(capsys: pytest.CaptureFixture[str]) -> None:
    assert _main() == 0
    assert "usage:" in capsys.readouterr().out


def test__main__run_default_goal(project: Path, capfd: pytest.CaptureFixture[str]) -> None:
    assert _main("run", "-p", str(project)) == 0
    assert (project / "hello.txt").read_text() == "hello\n"

    out = capfd.readouterr().out
    assert "Build summary" in out
    assert "hello world" in out


def test__main__run_failing_goal(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _main("run", "-p", str(project), "hello", "broken") == 1
    assert 'error: target "broken" failed' in capsys.readouterr().err


def test__main__run_with_capture_output_shows_output_of_first_failure(
    tempdir: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (tempdir / "kiln.toml").write_text(
        f"""
[targets.broken]
command = {_command("import sys; print('stdout of broken'); sys.exit(1)")}
phony = true
"""
    )
    assert _main("run", "-p", str(tempdir), "-c") == 1
    out = capsys.readouterr().out
    assert "Output of the first failing target (broken)" in out
    assert "stdout of broken" in out


def test__main__run_with_timeout(tempdir: Path) -> None:
    (tempdir / "kiln.toml").write_text(
        f"""
[targets.slow]
command = {_command("import time; time.sleep(30)")}
phony = true
"""
    )
    assert _main("run", "-p", str(tempdir), "--timeout", "0.5") == 1


def test__main__configuration_errors_exit_with_2(tempdir: Path) -> None:
    assert _main("run", "-p", str(tempdir)) == 2

    (tempdir / "kiln.toml").write_text("[targets.a]\ncommand = 'true'\nneeds = ['a2']\n")
    assert _main("run", "-p", str(tempdir)) == 2
    assert _main("query", "ls", "-p", str(tempdir)) == 2


def test__main__unknown_goal_exits_with_2(project: Path) -> None:
    assert _main("run", "-p", str(project), "nope") == 2
    assert not (project / "hello.txt").exists()


def test__main__alternative_targets_file(tempdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tempdir / "other.toml").write_text("[targets.a]\ncommand = 'true'\nphony = true\n")
    assert _main("query", "order", "-p", str(tempdir), "-f", str(tempdir / "other.toml")) == 0
    assert capsys.readouterr().out.split() == ["a"]


def test__main__query_order(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _main("query", "order", "-p", str(project)) == 0
    assert capsys.readouterr().out.split() == ["hello", "greet"]

    assert _main("q", "o", "-p", str(project), "broken", "greet") == 0
    assert capsys.readouterr().out.split() == ["broken", "hello", "greet"]
    assert not (project / "hello.txt").exists()


def test__main__query_ls(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _main("query", "ls", "-p", str(project)) == 0
    out = capsys.readouterr().out
    for name in ("hello", "greet", "broken", "Greets the world", "hello.txt"):
        assert name in out


def test__on_exception__maps_exceptions_to_exit_codes() -> None:
    assert on_exception(SystemExit()) == 0
    assert on_exception(SystemExit(4)) == 4
    assert on_exception(SystemExit("message")) == 1
    assert on_exception(KeyboardInterrupt()) == 130
    assert on_exception(CycleError(["a", "b"])) == 2
    assert on_exception(TargetsFileError(Path("kiln.toml"), "file does not exist")) == 2
    assert on_exception(RuntimeError("boom")) == 3
