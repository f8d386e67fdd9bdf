"""
Cluster Client Module

Read-only cluster access for the buffer check, through the Kubernetes API
or the kubectl binary.
"""

from .base import ClusterClient, ClusterError, CommandError, OperationResult, ResultStatus
from .kubectl import KubectlClusterClient


def create_client(settings) -> ClusterClient:
    """
    Build the ClusterClient selected by ``settings.backend``.

    Raises:
        ClusterError: if the API backend cannot load a cluster configuration
    """
    if settings.backend == "kubectl":
        return KubectlClusterClient(
            binary=settings.kubectl_binary,
            timeout=settings.exec_timeout,
            kubeconfig=settings.kubeconfig,
        )

    # Lazy import to keep the kubectl backend usable without API config
    from .api import ApiClusterClient
    return ApiClusterClient(
        kubeconfig_path=settings.kubeconfig,
        exec_timeout=settings.exec_timeout,
    )


__all__ = [
    "ClusterClient",
    "ClusterError",
    "CommandError",
    "OperationResult",
    "ResultStatus",
    "KubectlClusterClient",
    "create_client",
]
