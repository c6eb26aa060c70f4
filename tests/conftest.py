"""Shared test fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from k8status.context import CheckContext
from k8status.health.reporter import Probes
from k8status.kube.client import KubeError
from k8status.kube.models import ComponentStatusList, ConfigMap, NodeList


def make_node(name: str, ready: str | None = "True", reason: str = "", message: str = "") -> dict[str, Any]:
    """Node API object; ``ready=None`` leaves out the Ready condition."""
    conditions = [{"type": "MemoryPressure", "status": "False", "reason": "KubeletHasSufficientMemory"}]
    if ready is not None:
        conditions.append({"type": "Ready", "status": ready, "reason": reason, "message": message})
    return {"metadata": {"name": name}, "status": {"conditions": conditions}}


def make_component(name: str, *conditions: tuple[str, str]) -> dict[str, Any]:
    return {
        "metadata": {"name": name, "labels": {"component": name.split("-")[0]}},
        "conditions": [{"type": t, "status": s, "message": "ok"} for t, s in conditions],
    }


class FakeKubeClient:
    """In-memory stand-in for KubeClient; records the queries it receives."""

    def __init__(
        self,
        components: list[dict[str, Any]] | None = None,
        nodes: list[dict[str, Any]] | None = None,
        config_maps: dict[tuple[str, str], dict[str, str]] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.components = components or []
        self.nodes = nodes or []
        self.config_maps = config_maps or {}
        self.error = error
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def list_component_statuses(self, ctx: CheckContext, label_selector: str = "") -> ComponentStatusList:
        self.calls.append(("componentstatuses", {"label_selector": label_selector}))
        ctx.raise_if_done()
        if self.error:
            raise self.error
        return ComponentStatusList.model_validate({"items": self.components})

    def list_nodes(self, ctx: CheckContext, label_selector: str = "", field_selector: str = "") -> NodeList:
        self.calls.append(("nodes", {"label_selector": label_selector, "field_selector": field_selector}))
        ctx.raise_if_done()
        if self.error:
            raise self.error
        items = self.nodes
        if field_selector.startswith("metadata.name="):
            wanted = field_selector.split("=", 1)[1]
            items = [n for n in items if n["metadata"]["name"] == wanted]
        return NodeList.model_validate({"items": items})

    def get_config_map(self, ctx: CheckContext, namespace: str, name: str) -> ConfigMap:
        self.calls.append(("configmap", {"namespace": namespace, "name": name}))
        ctx.raise_if_done()
        if self.error:
            raise self.error
        if (namespace, name) not in self.config_maps:
            raise KubeError(404, f'configmaps "{name}" not found')
        return ConfigMap.model_validate({
            "metadata": {"name": name, "namespace": namespace},
            "data": self.config_maps[(namespace, name)],
        })


@pytest.fixture
def ctx() -> CheckContext:
    return CheckContext.background()


@pytest.fixture
def reporter() -> Probes:
    return Probes()


@pytest.fixture
def healthy_cluster() -> FakeKubeClient:
    """Three ready nodes, healthy control plane, config map present."""
    return FakeKubeClient(
        components=[
            make_component("etcd-0", ("Healthy", "True")),
            make_component("scheduler", ("Healthy", "True")),
            make_component("controller-manager", ("Healthy", "True")),
        ],
        nodes=[make_node("node-1"), make_node("node-2"), make_node("node-3")],
        config_maps={("kube-system", "cluster-config"): {"region": "eu-west-1"}},
    )
