"""Pydantic models for the Kubernetes API objects the checkers read.

Only the fields in use are declared; everything else in the API payload is
ignored.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

CONDITION_TRUE = "True"
CONDITION_FALSE = "False"

COMPONENT_HEALTHY = "Healthy"
NODE_READY = "Ready"


class ObjectMeta(BaseModel):
    name: str = ""
    namespace: str = ""
    labels: dict[str, str] = Field(default_factory=dict)


# ── Component statuses ───────────────────────────────────────────────────────


class ComponentCondition(BaseModel):
    type: str
    status: str
    message: str = ""
    error: str = ""


class ComponentStatus(BaseModel):
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    conditions: list[ComponentCondition] = Field(default_factory=list)


class ComponentStatusList(BaseModel):
    items: list[ComponentStatus] = Field(default_factory=list)


# ── Nodes ────────────────────────────────────────────────────────────────────


class NodeCondition(BaseModel):
    type: str
    status: str
    reason: str = ""
    message: str = ""
    lastHeartbeatTime: str | None = None
    lastTransitionTime: str | None = None


class NodeStatus(BaseModel):
    conditions: list[NodeCondition] = Field(default_factory=list)


class Node(BaseModel):
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    status: NodeStatus = Field(default_factory=NodeStatus)

    def condition(self, condition_type: str) -> NodeCondition | None:
        return next((c for c in self.status.conditions if c.type == condition_type), None)


class NodeList(BaseModel):
    items: list[Node] = Field(default_factory=list)


# ── Config maps ──────────────────────────────────────────────────────────────


class ConfigMap(BaseModel):
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    data: dict[str, str] = Field(default_factory=dict)
