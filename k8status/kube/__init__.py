"""Kubernetes API access: connection loading, typed models, httpx client."""

from .client import KubeClient, KubeError, KubeUnreachableError
from .config import KubeConfigError, KubeConnection, load_connection
