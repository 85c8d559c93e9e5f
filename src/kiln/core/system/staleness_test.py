from pathlib import Path

from kiln.core.system.action import CallableAction
from kiln.core.system.staleness import PrerequisiteOutcome, StalenessOracle
from kiln.core.system.target import Target, TargetStatus
from kiln.core.testing import set_mtime


def _target(name: str, *outputs: str, needs: tuple[str, ...] = (), phony: bool = False) -> Target:
    return Target(
        name,
        CallableAction(lambda: None, name=name),
        prerequisites=needs,
        outputs=tuple(Path(p) for p in outputs),
        phony=phony,
    )


def _touch(root: Path, name: str, mtime: float) -> None:
    (root / name).write_text(name)
    set_mtime(root / name, mtime)


def test__StalenessOracle__phony_target_is_always_stale(tempdir: Path) -> None:
    oracle = StalenessOracle(tempdir)
    target = _target("run", phony=True)
    assert oracle.is_stale(target, [])
    assert oracle.explain(target, []) == "target is phony"


def test__StalenessOracle__target_without_outputs_is_always_stale(tempdir: Path) -> None:
    oracle = StalenessOracle(tempdir)
    assert oracle.is_stale(_target("lint"), [])


def test__StalenessOracle__missing_output_is_stale(tempdir: Path) -> None:
    oracle = StalenessOracle(tempdir)
    _touch(tempdir, "a.out", 1000)
    target = _target("x", "a.out", "b.out")

    assert oracle.explain(target, []) == "output b.out is missing"
    _touch(tempdir, "b.out", 1000)
    assert not oracle.is_stale(target, [])


def test__StalenessOracle__output_in_missing_directory_is_stale(tempdir: Path) -> None:
    oracle = StalenessOracle(tempdir)
    assert oracle.is_stale(_target("x", "build/x.out"), [])


def test__StalenessOracle__rebuilt_prerequisite_invalidates_regardless_of_timestamps(tempdir: Path) -> None:
    oracle = StalenessOracle(tempdir)
    prerequisite = _target("p", "p.out")
    target = _target("x", "x.out", needs=("p",))
    _touch(tempdir, "p.out", 1000)
    _touch(tempdir, "x.out", 2000)

    assert not oracle.is_stale(target, [PrerequisiteOutcome(prerequisite, TargetStatus.up_to_date())])
    assert oracle.is_stale(target, [PrerequisiteOutcome(prerequisite, TargetStatus.succeeded())])
    assert oracle.explain(target, [PrerequisiteOutcome(prerequisite, TargetStatus.succeeded())]) == (
        "prerequisite p was rebuilt"
    )


def test__StalenessOracle__compares_newest_prerequisite_output_with_oldest_own_output(tempdir: Path) -> None:
    oracle = StalenessOracle(tempdir)
    p1 = _target("p1", "p1.out")
    p2 = _target("p2", "p2a.out", "p2b.out")
    target = _target("x", "x1.out", "x2.out", needs=("p1", "p2"))
    outcomes = [PrerequisiteOutcome(p1, TargetStatus.up_to_date()), PrerequisiteOutcome(p2, TargetStatus.up_to_date())]

    _touch(tempdir, "p1.out", 1000)
    _touch(tempdir, "p2a.out", 1000)
    _touch(tempdir, "p2b.out", 3000)
    _touch(tempdir, "x1.out", 4000)
    _touch(tempdir, "x2.out", 2000)

    # p2b.out (3000) is newer than x2.out (2000).
    assert oracle.is_stale(target, outcomes)

    set_mtime(tempdir / "x2.out", 3500)
    assert not oracle.is_stale(target, outcomes)


def test__StalenessOracle__equal_timestamps_are_stale(tempdir: Path) -> None:
    oracle = StalenessOracle(tempdir)
    prerequisite = _target("p", "p.out")
    target = _target("x", "x.out", needs=("p",))
    _touch(tempdir, "p.out", 1000)
    _touch(tempdir, "x.out", 1000)

    assert oracle.is_stale(target, [PrerequisiteOutcome(prerequisite, TargetStatus.up_to_date())])


def test__StalenessOracle__phony_prerequisite_contributes_no_timestamps(tempdir: Path) -> None:
    oracle = StalenessOracle(tempdir)
    prerequisite = _target("setup", phony=True)
    target = _target("x", "x.out", needs=("setup",))
    _touch(tempdir, "x.out", 1000)

    assert not oracle.is_stale(target, [PrerequisiteOutcome(prerequisite, TargetStatus.up_to_date())])


def test__StalenessOracle__resolves_relative_outputs_against_root(tempdir: Path) -> None:
    (tempdir / "sub").mkdir()
    _touch(tempdir / "sub", "x.out", 1000)

    assert not StalenessOracle(tempdir / "sub").is_stale(_target("x", "x.out"), [])
    assert StalenessOracle(tempdir).is_stale(_target("x", "x.out"), [])
