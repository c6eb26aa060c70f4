"""Kubernetes connection settings: in-cluster service account or kubeconfig file."""

from __future__ import annotations

import atexit
import base64
import logging
import os
import ssl
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

SERVICE_ACCOUNT_DIR = Path("/var/run/secrets/kubernetes.io/serviceaccount")
DEFAULT_KUBECONFIG = Path.home() / ".kube" / "config"


class KubeConfigError(Exception):
    """No usable Kubernetes connection configuration."""


@dataclass
class KubeConnection:
    """Where the API server is and how to authenticate to it."""

    server: str
    token: str = ""
    token_file: str = ""  # re-read on every request, service account tokens rotate
    ca_file: str = ""
    ca_data: str = ""  # PEM
    cert_file: str = ""
    key_file: str = ""
    insecure_skip_verify: bool = False

    def bearer_token(self) -> str:
        if self.token:
            return self.token
        if self.token_file:
            try:
                return Path(self.token_file).read_text(encoding="utf-8").strip()
            except OSError as e:
                logger.warning("Cannot read token file %s: %s", self.token_file, e)
        return ""

    def ssl_context(self) -> ssl.SSLContext:
        try:
            ssl_ctx = ssl.create_default_context(
                cafile=self.ca_file or None,
                cadata=self.ca_data or None,
            )
            if self.cert_file and self.key_file:
                ssl_ctx.load_cert_chain(certfile=self.cert_file, keyfile=self.key_file)
        except (OSError, ssl.SSLError) as e:
            raise KubeConfigError(f"failed to load Kubernetes TLS material: {e}") from e
        if self.insecure_skip_verify:
            ssl_ctx.check_hostname = False
            ssl_ctx.verify_mode = ssl.CERT_NONE
        return ssl_ctx


def in_cluster(sa_dir: Path = SERVICE_ACCOUNT_DIR) -> KubeConnection:
    """Connection from the pod's service account."""
    host = os.environ.get("KUBERNETES_SERVICE_HOST", "")
    port = os.environ.get("KUBERNETES_SERVICE_PORT", "")
    if not host or not port:
        raise KubeConfigError(
            "unable to load in-cluster configuration, "
            "KUBERNETES_SERVICE_HOST and KUBERNETES_SERVICE_PORT must be defined"
        )
    token_file = sa_dir / "token"
    if not token_file.exists():
        raise KubeConfigError(f"service account token not found: {token_file}")

    if ":" in host:  # IPv6
        host = f"[{host}]"
    ca_file = sa_dir / "ca.crt"
    return KubeConnection(
        server=f"https://{host}:{port}",
        token_file=str(token_file),
        ca_file=str(ca_file) if ca_file.exists() else "",
    )


def from_kubeconfig(path: Path) -> KubeConnection:
    """Connection for the current context of a kubeconfig file."""
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise KubeConfigError(f"failed to read kubeconfig {path}: {e}") from e

    current = raw.get("current-context", "")
    context = _named(raw.get("contexts"), current, "context")
    cluster = _named(raw.get("clusters"), context.get("cluster", ""), "cluster")
    user = _named(raw.get("users"), context.get("user", ""), "user", required=False)

    server = cluster.get("server", "")
    if not server:
        raise KubeConfigError(f"cluster {context.get('cluster')!r} has no server")

    base = path.parent
    conn = KubeConnection(
        server=server.rstrip("/"),
        insecure_skip_verify=bool(cluster.get("insecure-skip-tls-verify", False)),
        token=user.get("token", ""),
        token_file=_resolve(base, user.get("tokenFile", "")),
        ca_file=_resolve(base, cluster.get("certificate-authority", "")),
        cert_file=_resolve(base, user.get("client-certificate", "")),
        key_file=_resolve(base, user.get("client-key", "")),
    )
    if cluster.get("certificate-authority-data"):
        conn.ca_data = _b64(cluster["certificate-authority-data"]).decode()
    if user.get("client-certificate-data"):
        conn.cert_file = _materialize(_b64(user["client-certificate-data"]), ".crt")
    if user.get("client-key-data"):
        conn.key_file = _materialize(_b64(user["client-key-data"]), ".key")
    return conn


def load_connection(kubeconfig: str = "") -> KubeConnection:
    """In-cluster configuration when available, the kubeconfig file otherwise."""
    if os.environ.get("KUBERNETES_SERVICE_HOST") and not kubeconfig:
        return in_cluster()

    path = Path(kubeconfig or os.environ.get("KUBECONFIG", "") or DEFAULT_KUBECONFIG)
    logger.info("Not running in-cluster, using kubeconfig %s", path)
    return from_kubeconfig(path.expanduser())


def _named(entries: Any, name: str, kind: str, required: bool = True) -> dict[str, Any]:
    for entry in entries or []:
        if entry.get("name") == name:
            return entry.get(kind) or {}
    if required:
        raise KubeConfigError(f"kubeconfig has no {kind} named {name!r}")
    return {}


def _resolve(base: Path, value: str) -> str:
    if not value:
        return ""
    p = Path(value).expanduser()
    return str(p if p.is_absolute() else base / p)


def _b64(value: str) -> bytes:
    try:
        return base64.b64decode(value)
    except ValueError as e:
        raise KubeConfigError(f"invalid base64 data in kubeconfig: {e}") from e


_credentials_dir: tempfile.TemporaryDirectory[str] | None = None


def _credentials_path() -> str:
    """Private directory for inline credentials, removed at interpreter exit."""
    global _credentials_dir
    if _credentials_dir is None:
        _credentials_dir = tempfile.TemporaryDirectory(prefix="k8status-")
        atexit.register(_credentials_dir.cleanup)
    return _credentials_dir.name


def _materialize(data: bytes, suffix: str) -> str:
    """Write inline credentials to a private file; ssl only loads chains from files."""
    fd, name = tempfile.mkstemp(dir=_credentials_path(), suffix=suffix)
    with os.fdopen(fd, "wb") as f:
        f.write(data)
    return name
