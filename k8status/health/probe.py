"""Probe model: the outcome of a single check and the run-level summary."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ReporterStatus(str, Enum):
    """Coarse status over all probes of a reporter."""

    UNKNOWN = "unknown"
    RUNNING = "running"
    DEGRADED = "degraded"


class ProbeStatus(str, Enum):
    UNKNOWN = "unknown"
    RUNNING = "running"
    FAILED = "failed"
    TERMINATED = "terminated"


class ProbeSeverity(str, Enum):
    # Severity of a running probe
    NONE = "none"
    # Serious error that requires immediate attention
    CRITICAL = "critical"
    # Possibly transient condition that needs attention but is not critical
    WARNING = "warning"


NO_ERROR_DETAIL = ""


@dataclass(frozen=True)
class Probe:
    """Outcome of a single check."""

    checker: str
    status: ProbeStatus = ProbeStatus.UNKNOWN
    error: str = ""
    detail: str = ""
    code: str = ""
    severity: ProbeSeverity = ProbeSeverity.NONE
    checker_data: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "checker": self.checker,
            "detail": self.detail,
            "code": self.code,
            "status": self.status.value,
            "error": self.error,
            "checkerData": self.checker_data,
            "severity": self.severity.value,
        }


def new_probe_from_err(name: str, detail: str, err: BaseException | str | None) -> Probe:
    """Failed probe for checker ``name`` carrying the error's message."""
    return Probe(
        checker=name,
        status=ProbeStatus.FAILED,
        detail=detail,
        error=user_message(err),
    )


def new_success_probe(name: str, checker_data: Any = None) -> Probe:
    return Probe(checker=name, status=ProbeStatus.RUNNING, checker_data=checker_data)


def user_message(err: BaseException | str | None) -> str:
    """User-facing part of an error."""
    if err is None:
        return ""
    return str(err)


# ── Accessors tolerant of a missing probe ────────────────────────────────────


def get_status(probe: Probe | None) -> ProbeStatus:
    return probe.status if probe is not None else ProbeStatus.UNKNOWN


def get_severity(probe: Probe | None) -> ProbeSeverity:
    return probe.severity if probe is not None else ProbeSeverity.NONE


def get_error(probe: Probe | None) -> str:
    return probe.error if probe is not None else ""


def get_checker_data(probe: Probe | None) -> Any:
    return probe.checker_data if probe is not None else None


# ── Run summary ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SingleFinalProbe:
    """One line of the run summary: human-readable description + payload."""

    description: str = ""
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"description": self.description, "data": self.data}


@dataclass
class FinalProbe:
    """Summary of one run.

    The designated config check is reported in ``config``; every other probe
    lands in ``errors`` or ``oks`` in execution order.
    """

    status: ProbeStatus = ProbeStatus.RUNNING
    config: SingleFinalProbe = field(default_factory=SingleFinalProbe)
    errors: list[SingleFinalProbe] = field(default_factory=list)
    oks: list[SingleFinalProbe] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "config": self.config.to_dict(),
            "errors": [e.to_dict() for e in self.errors],
            "oks": [o.to_dict() for o in self.oks],
        }
