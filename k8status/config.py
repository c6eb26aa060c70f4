from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from K8STATUS_* environment variables / .env file."""

    model_config = {
        "env_prefix": "K8STATUS_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    # HTTP server
    http_host: str = "0.0.0.0"
    http_port: int = 8080
    graceful_shutdown_timeout: int = 30  # seconds to drain in-flight requests
    graceful_shutdown_extra_sleep: int = 0  # seconds to answer "not ready" before draining

    # Logging
    debug: bool = False
    log_level: str = "INFO"

    # Kubernetes access (in-cluster service account when empty and available)
    kubeconfig: str = ""

    # Kubernetes nodes
    kube_nodes_ready_threshold: int = 1
    node_name: str = ""  # also check this single node when set

    # Control plane components reported through componentstatuses
    kube_components: list[str] = ["etcd", "scheduler", "controller-manager"]

    # Config checker
    config_checker_namespace: str = "default"
    config_checker_config_name: str = "cluster-config"

    # Plain "ok" liveness endpoints, name -> URL
    healthz_endpoints: dict[str, str] = {}

    # etcd health endpoints (JSON {"health": ...}), optionally over mutual TLS
    etcd_endpoints: list[str] = []
    etcd_ca_file: str = ""
    etcd_cert_file: str = ""
    etcd_key_file: str = ""
    etcd_insecure_skip_verify: bool = False

    # Deadline for one run served over /healthz
    check_timeout: float = 30.0

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level.upper()


settings = Settings()
