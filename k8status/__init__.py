"""k8status: consolidated health verdict for a Kubernetes control plane."""

__version__ = "0.1.0"
