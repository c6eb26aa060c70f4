"""httpx-based client for the Kubernetes core/v1 API.

Covers the three queries the checkers need. All methods return typed models
or raise KubeUnreachableError / KubeError / ContextError.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from k8status.context import CheckContext
from k8status.kube.config import KubeConnection
from k8status.kube.models import ComponentStatusList, ConfigMap, NodeList

logger = logging.getLogger(__name__)

COMPONENT_STATUS_LIST_LIMIT = 100


class KubeUnreachableError(Exception):
    """Raised when the API server cannot be reached."""


class KubeError(Exception):
    """Raised when the API server answers with an error status."""

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Kubernetes API error {status_code}: {detail}")

    @property
    def not_found(self) -> bool:
        return self.status_code == httpx.codes.NOT_FOUND


def _error_detail(resp: httpx.Response) -> str:
    """The `message` of a Status object, or the raw body."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return resp.text


class KubeClient:
    """Synchronous client for the Kubernetes API server.

    Safe to share between concurrent runs. Requests have no timeout of their
    own unless ``timeout`` is given; the caller's context deadline bounds them.
    """

    def __init__(
        self,
        connection: KubeConnection,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._conn = connection
        self._timeout = timeout
        self._client = httpx.Client(
            base_url=connection.server,
            verify=connection.ssl_context(),
            transport=transport,
        )

    @property
    def _headers(self) -> dict[str, str]:
        h = {"Accept": "application/json"}
        token = self._conn.bearer_token()
        if token:
            h["Authorization"] = f"Bearer {token}"
        return h

    def _get(self, ctx: CheckContext, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        """Perform a GET request against the API server."""
        ctx.raise_if_done()
        params = {k: v for k, v in (params or {}).items() if v not in ("", None)}
        try:
            resp = self._client.get(
                path,
                headers=self._headers,
                params=params,
                timeout=ctx.timeout(self._timeout),
            )
        except httpx.TimeoutException:
            raise KubeUnreachableError("Kubernetes API request timed out")
        except httpx.TransportError as e:
            raise KubeUnreachableError(f"Kubernetes API is unreachable: {e}") from e

        if resp.status_code >= 400:
            raise KubeError(resp.status_code, _error_detail(resp))
        return resp

    # ── Queries ──────────────────────────────────────────────────────────

    def list_component_statuses(self, ctx: CheckContext, label_selector: str = "") -> ComponentStatusList:
        """GET /api/v1/componentstatuses"""
        resp = self._get(
            ctx,
            "/api/v1/componentstatuses",
            params={"labelSelector": label_selector, "limit": COMPONENT_STATUS_LIST_LIMIT},
        )
        return ComponentStatusList.model_validate(resp.json())

    def list_nodes(
        self, ctx: CheckContext, label_selector: str = "", field_selector: str = "",
    ) -> NodeList:
        """GET /api/v1/nodes"""
        resp = self._get(
            ctx,
            "/api/v1/nodes",
            params={"labelSelector": label_selector, "fieldSelector": field_selector},
        )
        return NodeList.model_validate(resp.json())

    def get_config_map(self, ctx: CheckContext, namespace: str, name: str) -> ConfigMap:
        """GET /api/v1/namespaces/{namespace}/configmaps/{name}"""
        resp = self._get(ctx, f"/api/v1/namespaces/{namespace}/configmaps/{name}")
        return ConfigMap.model_validate(resp.json())

    def close(self) -> None:
        self._client.close()
