"""Tests for Probe, FinalProbe and the Probes reporter."""

from __future__ import annotations

import dataclasses

import pytest

from k8status.health.probe import (
    FinalProbe,
    Probe,
    ProbeSeverity,
    ProbeStatus,
    ReporterStatus,
    SingleFinalProbe,
    get_checker_data,
    get_error,
    get_severity,
    get_status,
    new_probe_from_err,
    new_success_probe,
)
from k8status.health.reporter import Probes, add_from


# ── Probe ────────────────────────────────────────────────────────────────────


class TestProbe:
    def test_defaults(self) -> None:
        p = Probe(checker="etcd")
        assert p.status == ProbeStatus.UNKNOWN
        assert p.severity == ProbeSeverity.NONE
        assert p.error == ""
        assert p.checker_data is None

    def test_immutable(self) -> None:
        p = new_success_probe("etcd")
        with pytest.raises(dataclasses.FrozenInstanceError):
            p.status = ProbeStatus.FAILED  # type: ignore[misc]

    def test_from_err(self) -> None:
        p = new_probe_from_err("nodesstatus", "failed to query nodes", RuntimeError("boom"))
        assert p.status == ProbeStatus.FAILED
        assert p.detail == "failed to query nodes"
        assert p.error == "boom"

    def test_from_err_none(self) -> None:
        assert new_probe_from_err("x", "", None).error == ""

    def test_wire_fields(self) -> None:
        p = Probe(
            checker="etcd-healthz",
            status=ProbeStatus.FAILED,
            error="unexpected HTTP status: Service Unavailable",
            code="503",
            checker_data={"k": "v"},
        )
        assert p.to_dict() == {
            "checker": "etcd-healthz",
            "detail": "",
            "code": "503",
            "status": "failed",
            "error": "unexpected HTTP status: Service Unavailable",
            "checkerData": {"k": "v"},
            "severity": "none",
        }

    def test_accessors_tolerate_missing_probe(self) -> None:
        assert get_status(None) == ProbeStatus.UNKNOWN
        assert get_severity(None) == ProbeSeverity.NONE
        assert get_error(None) == ""
        assert get_checker_data(None) is None

    def test_accessors(self) -> None:
        p = Probe(checker="c", status=ProbeStatus.FAILED, severity=ProbeSeverity.WARNING, error="e", checker_data=[1])
        assert get_status(p) == ProbeStatus.FAILED
        assert get_severity(p) == ProbeSeverity.WARNING
        assert get_error(p) == "e"
        assert get_checker_data(p) == [1]


# ── FinalProbe ───────────────────────────────────────────────────────────────


class TestFinalProbe:
    def test_empty_report(self) -> None:
        assert FinalProbe().to_dict() == {
            "status": "running",
            "config": {"description": "", "data": None},
            "errors": [],
            "oks": [],
        }

    def test_entries(self) -> None:
        final = FinalProbe(
            status=ProbeStatus.FAILED,
            config=SingleFinalProbe("Check cluster-config: OK", {"a": "b"}),
            errors=[SingleFinalProbe("Check etcd: component not healthy: etcd")],
            oks=[SingleFinalProbe("Check scheduler: OK", [])],
        )
        data = final.to_dict()
        assert data["status"] == "failed"
        assert data["config"] == {"description": "Check cluster-config: OK", "data": {"a": "b"}}
        assert data["errors"] == [{"description": "Check etcd: component not healthy: etcd", "data": None}]
        assert data["oks"] == [{"description": "Check scheduler: OK", "data": []}]


# ── Probes reporter ──────────────────────────────────────────────────────────


class TestProbes:
    def test_keeps_insertion_order(self) -> None:
        r = Probes()
        for name in ("c", "a", "b", "a"):
            r.add(new_success_probe(name))
        assert [p.checker for p in r.get_probes()] == ["c", "a", "b", "a"]
        assert r.num_probes() == 4

    def test_get_probes_is_a_copy(self) -> None:
        r = Probes()
        r.add(new_success_probe("a"))
        r.get_probes().clear()
        assert r.num_probes() == 1

    def test_get_failed_preserves_order(self) -> None:
        r = Probes()
        r.add(new_probe_from_err("a", "", "x"))
        r.add(new_success_probe("b"))
        r.add(new_probe_from_err("c", "", "y"))
        r.add(Probe(checker="d", status=ProbeStatus.TERMINATED))
        assert [p.checker for p in r.get_failed()] == ["a", "c"]

    def test_status_running(self) -> None:
        r = Probes([new_success_probe("a"), new_success_probe("b")])
        assert r.status() == ReporterStatus.RUNNING

    def test_status_degraded(self) -> None:
        r = Probes([new_success_probe("a"), new_probe_from_err("b", "", "down")])
        assert r.status() == ReporterStatus.DEGRADED

    def test_empty_is_running(self) -> None:
        assert Probes().status() == ReporterStatus.RUNNING

    def test_add_from(self) -> None:
        src = Probes([new_success_probe("a"), new_probe_from_err("b", "", "x")])
        dst = Probes([new_success_probe("z")])
        add_from(dst, src)
        assert [p.checker for p in dst] == ["z", "a", "b"]
        assert len(src) == 2
