"""Checkers backed by the Kubernetes API.

A KubeChecker pairs a name with a KubeQuery. The query talks to the API and
either returns the checker data of a healthy result or raises; the checker
turns that into a probe.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from k8status.context import CheckContext, ContextError
from k8status.kube.client import KubeClient, KubeError, KubeUnreachableError
from k8status.kube.models import COMPONENT_HEALTHY, CONDITION_TRUE

from .probe import NO_ERROR_DETAIL, new_probe_from_err, new_success_probe
from .reporter import Checker, Reporter

logger = logging.getLogger(__name__)

# Failures a query may raise; anything in here becomes a failed probe.
QUERY_ERRORS = (KubeError, KubeUnreachableError, ContextError, httpx.HTTPError, ValueError)


class ComponentNotFoundError(ValueError):
    pass


class ComponentUnhealthyError(ValueError):
    pass


class KubeQuery(ABC):
    """One query against the Kubernetes API."""

    @abstractmethod
    def run(self, ctx: CheckContext, client: KubeClient) -> Any:
        """Return the checker data of a healthy result, raise otherwise."""


class ComponentStatusQuery(KubeQuery):
    """Health of a control plane component from its component statuses."""

    def __init__(self, component: str) -> None:
        self.component = component

    def run(self, ctx: CheckContext, client: KubeClient) -> list[dict[str, Any]]:
        res = client.list_component_statuses(ctx, label_selector=f"component={self.component}")

        healthy = True
        conditions: list[dict[str, Any]] = []
        for item in res.items:
            if self.component not in item.metadata.name:
                continue
            for condition in item.conditions:
                conditions.append(condition.model_dump())
                if condition.type != COMPONENT_HEALTHY or condition.status != CONDITION_TRUE:
                    healthy = False

        if not conditions:
            raise ComponentNotFoundError(f"component not found: {self.component}")
        if not healthy:
            raise ComponentUnhealthyError(f"component not healthy: {self.component}")
        return conditions


class ConfigMapQuery(KubeQuery):
    """Fetches one config map; its data is the checker data."""

    def __init__(self, namespace: str, name: str) -> None:
        self.namespace = namespace
        self.name = name

    def run(self, ctx: CheckContext, client: KubeClient) -> dict[str, str]:
        return client.get_config_map(ctx, self.namespace, self.name).data


class KubeChecker(Checker):
    """Runs a KubeQuery and reports its outcome."""

    def __init__(self, name: str, query: KubeQuery, client: KubeClient) -> None:
        self._name = name
        self.query = query
        self.client = client

    def name(self) -> str:
        return self._name

    def check(self, ctx: CheckContext, reporter: Reporter) -> None:
        try:
            data = self.query.run(ctx, self.client)
        except QUERY_ERRORS as e:
            logger.debug("Check %s failed: %s", self._name, e)
            reporter.add(new_probe_from_err(self._name, NO_ERROR_DETAIL, e))
            return
        reporter.add(new_success_probe(self._name, checker_data=data))


# ── Constructors ─────────────────────────────────────────────────────────────


def component_server_health(client: KubeClient, component: str) -> KubeChecker:
    return KubeChecker(component, ComponentStatusQuery(component), client)


def kube_etcd_health(client: KubeClient) -> KubeChecker:
    return component_server_health(client, "etcd")


def kube_scheduler_health(client: KubeClient) -> KubeChecker:
    return component_server_health(client, "scheduler")


def kube_controller_manager_health(client: KubeClient) -> KubeChecker:
    return component_server_health(client, "controller-manager")


def kube_cluster_config(client: KubeClient, namespace: str, name: str) -> KubeChecker:
    """Config map check; named after the config map so the runner can route it."""
    return KubeChecker(name, ConfigMapQuery(namespace, name), client)
