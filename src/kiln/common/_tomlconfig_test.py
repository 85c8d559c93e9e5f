from pathlib import Path
from textwrap import dedent

import tomli
from pytest import raises

from kiln.common._tomlconfig import TomlConfigFile


def test__TomlConfigFile__load(tempdir: Path) -> None:
    config_file = tempdir / "config.toml"
    config_file.write_text(
        dedent(
            """
        default = "b"

        [targets.b]
        command = "true"

        [targets.a]
        command = "true"
        """
        )
    )
    config = TomlConfigFile(config_file)
    assert config.exists()
    assert dict(config) == {"default": "b", "targets": {"b": {"command": "true"}, "a": {"command": "true"}}}

    # Table order is preserved, it determines the declaration order of targets.
    assert list(config["targets"]) == ["b", "a"]


def test__TomlConfigFile__missing_file_reads_as_empty(tempdir: Path) -> None:
    config = TomlConfigFile(tempdir / "missing.toml")
    assert not config.exists()
    assert dict(config) == {}


def test__TomlConfigFile__invalid_toml_raises(tempdir: Path) -> None:
    config_file = tempdir / "config.toml"
    config_file.write_text("[targets\n")
    with raises(tomli.TOMLDecodeError):
        dict(TomlConfigFile(config_file))
