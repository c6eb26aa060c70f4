"""Reporter and Checker contracts.

A Reporter collects the probes produced during one run. A Checker performs
one health query and adds at least one probe to the reporter it is given.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator

from k8status.context import CheckContext

from .probe import Probe, ProbeStatus, ReporterStatus


class Reporter(ABC):
    """Obligation to report structured health probes."""

    @abstractmethod
    def add(self, probe: Probe) -> None:
        """Record a probe."""

    @abstractmethod
    def get_probes(self) -> list[Probe]:
        """All collected probes, in the order they were added."""

    @abstractmethod
    def num_probes(self) -> int:
        pass


class Probes(Reporter):
    """Append-only list of probes. Implements Reporter."""

    def __init__(self, probes: Iterable[Probe] = ()) -> None:
        self._probes: list[Probe] = list(probes)

    def add(self, probe: Probe) -> None:
        self._probes.append(probe)

    def get_probes(self) -> list[Probe]:
        return list(self._probes)

    def num_probes(self) -> int:
        return len(self._probes)

    def get_failed(self) -> list[Probe]:
        """All probes that reported an error."""
        return [p for p in self._probes if p.status == ProbeStatus.FAILED]

    def status(self) -> ReporterStatus:
        """Coarse status: degraded as soon as one probe failed."""
        for probe in self._probes:
            if probe.status == ProbeStatus.FAILED:
                return ReporterStatus.DEGRADED
        return ReporterStatus.RUNNING

    def __iter__(self) -> Iterator[Probe]:
        return iter(list(self._probes))

    def __len__(self) -> int:
        return len(self._probes)


def add_from(dst: Reporter, src: Reporter) -> None:
    """Copy every probe of ``src`` into ``dst``."""
    for probe in src.get_probes():
        dst.add(probe)


class Checker(ABC):
    """A named health check."""

    @abstractmethod
    def name(self) -> str:
        """Stable identifier used for display and for routing probes."""

    @abstractmethod
    def check(self, ctx: CheckContext, reporter: Reporter) -> None:
        """Run the check and record its outcome into ``reporter``.

        Implementations add at least one probe and never raise: every
        failure is recorded as a failed probe.
        """


class Checkers:
    """Ordered collection of checkers."""

    def __init__(self, checkers: Iterable[Checker] = ()) -> None:
        self.checkers: list[Checker] = list(checkers)

    def add_checker(self, checker: Checker) -> None:
        self.checkers.append(checker)

    def __iter__(self) -> Iterator[Checker]:
        return iter(self.checkers)

    def __len__(self) -> int:
        return len(self.checkers)
