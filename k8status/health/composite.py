"""Composite and no-op checkers."""

from __future__ import annotations

from collections.abc import Iterable

from k8status.context import CheckContext

from .probe import new_success_probe
from .reporter import Checker, Reporter


class CompositeChecker(Checker):
    """Runs a list of checkers as a whole under one name.

    Children run in order against the same reporter. A failing child never
    stops the ones after it.
    """

    def __init__(self, name: str, checkers: Iterable[Checker]) -> None:
        self._name = name
        self.checkers: tuple[Checker, ...] = tuple(checkers)

    def name(self) -> str:
        return self._name

    def check(self, ctx: CheckContext, reporter: Reporter) -> None:
        for checker in self.checkers:
            checker.check(ctx, reporter)


class NoopChecker(Checker):
    """Always reports success."""

    def __init__(self, name: str = "noop") -> None:
        self._name = name

    def name(self) -> str:
        return self._name

    def check(self, ctx: CheckContext, reporter: Reporter) -> None:
        reporter.add(new_success_probe(self._name))
