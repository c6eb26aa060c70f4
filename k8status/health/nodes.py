"""Node readiness checks: cluster-wide threshold and single node."""

from __future__ import annotations

import logging

from k8status.context import CheckContext
from k8status.kube.client import KubeClient
from k8status.kube.models import CONDITION_TRUE, NODE_READY, NodeCondition, NodeList

from .kube import QUERY_ERRORS
from .probe import Probe, ProbeSeverity, ProbeStatus, new_probe_from_err, new_success_probe
from .reporter import Checker, Reporter

logger = logging.getLogger(__name__)

# Identifies the checker that detects whether a single node is not ready
NODE_STATUS_CHECKER_ID = "nodestatus"
# Identifies the checker that validates node availability in a cluster
NODES_STATUS_CHECKER_ID = "nodesstatus"


class NodesQueryError(Exception):
    pass


class KubeNodeLister:
    """Lists nodes through the Kubernetes API."""

    def __init__(self, client: KubeClient) -> None:
        self.client = client

    def nodes(self, ctx: CheckContext, label_selector: str = "", field_selector: str = "") -> NodeList:
        try:
            return self.client.list_nodes(ctx, label_selector=label_selector, field_selector=field_selector)
        except QUERY_ERRORS as e:
            raise NodesQueryError(f"failed to query nodes: {e}") from e


class NodesStatusChecker(Checker):
    """Fails when fewer than ``nodes_ready_threshold`` nodes are Ready."""

    def __init__(self, lister: KubeNodeLister, nodes_ready_threshold: int) -> None:
        self.lister = lister
        self.nodes_ready_threshold = nodes_ready_threshold

    def name(self) -> str:
        return NODES_STATUS_CHECKER_ID

    def check(self, ctx: CheckContext, reporter: Reporter) -> None:
        try:
            nodes = self.lister.nodes(ctx)
        except NodesQueryError as e:
            reporter.add(new_probe_from_err(self.name(), "failed to query nodes", e))
            return

        nodes_ready = 0
        for node in nodes.items:
            ready = node.condition(NODE_READY)
            if ready is not None and ready.status == CONDITION_TRUE:
                nodes_ready += 1

        if nodes_ready < self.nodes_ready_threshold:
            reporter.add(Probe(
                checker=self.name(),
                status=ProbeStatus.FAILED,
                error=f"Not enough ready nodes: {nodes_ready} (threshold {self.nodes_ready_threshold})",
            ))
            return
        reporter.add(new_success_probe(self.name()))


class NodeStatusChecker(Checker):
    """Validates availability of a single node, selected by exact name."""

    def __init__(self, lister: KubeNodeLister, node_name: str) -> None:
        self.lister = lister
        self.node_name = node_name

    def name(self) -> str:
        return NODE_STATUS_CHECKER_ID

    def check(self, ctx: CheckContext, reporter: Reporter) -> None:
        try:
            nodes = self.lister.nodes(ctx, field_selector=f"metadata.name={self.node_name}")
        except NodesQueryError as e:
            reporter.add(new_probe_from_err(self.name(), str(e), e))
            return

        if not nodes.items:
            reporter.add(new_probe_from_err(self.name(), "", f'node "{self.node_name}" not found'))
            return
        if len(nodes.items) > 1:
            reporter.add(new_probe_from_err(
                self.name(), "",
                f'expected exactly one node named "{self.node_name}", found {len(nodes.items)}',
            ))
            return

        ready = nodes.items[0].condition(NODE_READY)
        if ready is None or ready.status == CONDITION_TRUE:
            reporter.add(new_success_probe(self.name()))
            return

        logger.warning("Node %s is not ready: %s", self.node_name, format_condition(ready))
        reporter.add(Probe(
            checker=self.name(),
            status=ProbeStatus.FAILED,
            severity=ProbeSeverity.WARNING,
            detail=format_condition(ready),
            error="Node is not ready",
        ))


def format_condition(condition: NodeCondition) -> str:
    if condition.message:
        return f"{condition.reason} ({condition.message})"
    return condition.reason


def nodes_status_health(client: KubeClient, nodes_ready_threshold: int) -> NodesStatusChecker:
    return NodesStatusChecker(KubeNodeLister(client), nodes_ready_threshold)


def node_status_health(client: KubeClient, node_name: str) -> NodeStatusChecker:
    return NodeStatusChecker(KubeNodeLister(client), node_name)
