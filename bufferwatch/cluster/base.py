"""
Cluster Client Interface

Read-only operations the buffer check needs from the cluster control plane.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class ClusterError(RuntimeError):
    """Raised when a cluster query or remote command fails."""


class CommandError(ClusterError):
    """A remote command exited non-zero; ``stdout`` keeps whatever it printed."""

    def __init__(self, message: str, stdout: str = ""):
        super().__init__(message)
        self.stdout = stdout


class ResultStatus(Enum):
    """Operation result status"""
    SUCCESS = "success"
    ERROR = "error"
    TIMEOUT = "timeout"


@dataclass
class OperationResult:
    """Command execution result"""
    status: ResultStatus
    stdout: str = ""
    stderr: str = ""
    return_code: int = 0
    duration_ms: int = 0
    command: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == ResultStatus.SUCCESS


class ClusterClient(ABC):
    """
    Read-only cluster queries used by the buffer check.

    All methods raise ClusterError on failure; callers decide whether a
    failure is fatal or falls back to a default.
    """

    @abstractmethod
    def list_pod_names(self, namespace: str, label_selector: str) -> List[str]:
        """Return the names of pods matching the selector, in listing order."""
        ...

    @abstractmethod
    def get_pod_node(self, namespace: str, pod_name: str) -> str:
        """Return the name of the node the pod is scheduled on."""
        ...

    @abstractmethod
    def get_node_labels(self, node_name: str) -> Dict[str, str]:
        ...

    @abstractmethod
    def get_node_metadata(self, node_name: str) -> Dict[str, Any]:
        """Return the node metadata as a plain dict (labels, annotations, ...)."""
        ...

    @abstractmethod
    def exec_in_pod(
        self,
        namespace: str,
        pod_name: str,
        command: List[str],
        container: Optional[str] = None,
    ) -> str:
        """Run a command inside the pod and return its standard output."""
        ...
