from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import cast

from networkx import DiGraph, NetworkXNoCycle, find_cycle, lexicographical_topological_sort

from kiln.common import not_none
from kiln.core.system.errors import CycleError, DuplicateTargetError, UnknownTargetError
from kiln.core.system.target import Target

logger = logging.getLogger(__name__)


class TargetGraph:
    """The target graph represents a set of targets and their prerequisite relationships as a directed graph.

    Nodes are keyed by target name and edges point from a prerequisite to the target that depends on it. The
    graph is read-only once constructed. It does not need to be free of cycles or undeclared prerequisites at
    construction time; these configuration errors are reported by :meth:`resolve` for the closure of a goal,
    or by :meth:`validate` for the whole graph."""

    def __init__(self, targets: Iterable[Target], default: str | None = None) -> None:
        """Create a new target graph.

        :param targets: The targets, in declaration order. Declaration order breaks ties between targets that
            do not depend on each other when the graph is resolved.
        :param default: The name of the target to build when no goal is specified. If not set, the first
            declared target is the default goal.
        """

        self._targets: dict[str, Target] = {}
        for target in targets:
            if target.name in self._targets:
                raise DuplicateTargetError(target.name)
            self._targets[target.name] = target

        self._index = {name: idx for idx, name in enumerate(self._targets)}
        self._default = default

        # Nodes have the form {'data': Target}.
        self._digraph = DiGraph()
        for target in self._targets.values():
            self._digraph.add_node(target.name, data=target)
        for target in self._targets.values():
            for name in target.prerequisites:
                if name in self._targets:
                    self._digraph.add_edge(name, target.name)

        for target in self._targets.values():
            if not target.phony and not target.outputs:
                logger.warning(
                    "target '%s' declares no outputs and is not marked phony; it will run on every invocation",
                    target.name,
                )

    def __repr__(self) -> str:
        return f"TargetGraph({', '.join(self._targets)})"

    def __len__(self) -> int:
        return len(self._targets)

    def __iter__(self) -> Iterator[Target]:
        return iter(self._targets.values())

    def __contains__(self, name: object) -> bool:
        return name in self._targets

    # Internal API

    def _get_closure(self, goal: str) -> set[str]:
        """Internal. Return the names of *goal* and all targets it transitively depends on."""

        closure: set[str] = set()
        stack = [goal]
        while stack:
            name = stack.pop()
            if name in closure:
                continue
            closure.add(name)
            target = self._targets[name]
            for prerequisite in target.prerequisites:
                if prerequisite not in self._targets:
                    raise UnknownTargetError(prerequisite, referenced_by=target.name)
                stack.append(prerequisite)
        return closure

    def _check_acyclic(self, digraph: DiGraph) -> None:
        try:
            edges = find_cycle(digraph)
        except NetworkXNoCycle:
            return

        # Rotate the cycle to start with the earliest declared target.
        names = [u for u, _v in edges]
        start = min(range(len(names)), key=lambda idx: self._index[names[idx]])
        raise CycleError(names[start:] + names[:start])

    # Public API

    @property
    def default_goal(self) -> str:
        """The goal to build when the caller does not name one."""

        if self._default is not None:
            if self._default not in self._targets:
                raise UnknownTargetError(self._default)
            return self._default
        return not_none(next(iter(self._targets), None), "the target graph is empty")

    def get_target(self, name: str) -> Target:
        try:
            return self._targets[name]
        except KeyError:
            raise UnknownTargetError(name) from None

    def targets(self) -> list[Target]:
        """Returns all targets in declaration order."""

        return list(self._targets.values())

    def get_prerequisites(self, target: Target | str) -> list[Target]:
        """Returns the declared prerequisites of *target* in the order they were declared."""

        if isinstance(target, str):
            target = self.get_target(target)
        return [self.get_target(name) for name in target.prerequisites]

    def get_dependents(self, target: Target | str) -> list[Target]:
        """Returns the targets that directly depend on *target*, in declaration order."""

        name = target if isinstance(target, str) else target.name
        self.get_target(name)
        return [self.get_target(x) for x in sorted(self._digraph.successors(name), key=self._index.__getitem__)]

    def goals(self) -> list[Target]:
        """Returns the targets that no other target depends on, in declaration order."""

        return [t for t in self._targets.values() if self._digraph.out_degree(t.name) == 0]

    def resolve(self, goal: str) -> list[Target]:
        """Returns *goal* and everything it transitively depends on in the order they need to be processed.

        Every prerequisite precedes its dependents and *goal* comes last. Targets that do not depend on each
        other are ordered by declaration.

        :raises UnknownTargetError: If *goal* or any prerequisite in its closure is not declared.
        :raises CycleError: If the closure of *goal* contains a dependency cycle.
        """

        if goal not in self._targets:
            raise UnknownTargetError(goal)

        closure = self._get_closure(goal)
        subgraph = cast(DiGraph, self._digraph.subgraph(closure))
        self._check_acyclic(subgraph)

        names = lexicographical_topological_sort(subgraph, key=self._index.__getitem__)
        order = [self._targets[name] for name in names]
        logger.debug("resolved goal '%s' to %s", goal, " → ".join(t.name for t in order))
        return order

    def validate(self) -> None:
        """Check the whole graph for undeclared prerequisites, dependency cycles and an unknown default goal.

        :raises UnknownTargetError:
        :raises CycleError:
        """

        for target in self._targets.values():
            for name in target.prerequisites:
                if name not in self._targets:
                    raise UnknownTargetError(name, referenced_by=target.name)
        self._check_acyclic(self._digraph)
        if self._targets:
            self.default_goal
