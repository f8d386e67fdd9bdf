"""
Buffer Health Data Models

Defines data structures for per-pod buffer snapshots and fleet summaries.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Severity(Enum):
    """Traffic-light severity derived from the oldest buffer file age."""
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


class NodeType(Enum):
    """Coarse classification of the node hosting a pod."""
    COMPUTE = "compute"
    INFRA = "infra"
    MASTER = "master"
    UNKNOWN = "unknown"


DEFAULT_YELLOW_AGE_SECONDS = 60
DEFAULT_RED_AGE_SECONDS = 300


def classify_severity(
    age_seconds: int,
    yellow_after: int = DEFAULT_YELLOW_AGE_SECONDS,
    red_after: int = DEFAULT_RED_AGE_SECONDS,
) -> Severity:
    """
    Map the age of the oldest buffer file to a severity bucket.

    Examples:
        >>> classify_severity(59)
        <Severity.GREEN: 'green'>
        >>> classify_severity(300)
        <Severity.RED: 'red'>
    """
    if age_seconds >= red_after:
        return Severity.RED
    if age_seconds >= yellow_after:
        return Severity.YELLOW
    return Severity.GREEN


@dataclass(frozen=True)
class BufferFile:
    """One record of the remote buffer listing."""
    size: int
    mtime: float


@dataclass(frozen=True)
class BufferStats:
    """
    Reduced buffer statistics for one pod.

    Attributes:
        total_bytes: Sum of all buffer file sizes
        oldest_age: Age in seconds of the oldest buffer file (0 if none)
        newest_age: Age in seconds of the newest buffer file (0 if none)
        file_count: Number of buffer files seen
        ok: False when the remote listing failed or was incomplete
    """
    total_bytes: int = 0
    oldest_age: int = 0
    newest_age: int = 0
    file_count: int = 0
    ok: bool = True


@dataclass(frozen=True)
class PodSnapshot:
    """
    Point-in-time buffer state of one log forwarder pod.

    Attributes:
        pod_name: Pod name
        node_name: Node the pod runs on (``unknown-<pod>`` if unresolved)
        node_type: Node classification
        total_bytes: Total size of pending buffer files
        oldest_age: Age of the oldest buffer file in seconds
        newest_age: Age of the newest buffer file in seconds
        severity: Severity derived from ``oldest_age``
        file_count: Number of buffer files
        fallbacks: Lookups that failed and were replaced by defaults
    """
    pod_name: str
    node_name: str
    node_type: NodeType
    total_bytes: int
    oldest_age: int
    newest_age: int
    severity: Severity
    file_count: int = 0
    fallbacks: Tuple[str, ...] = ()

    @property
    def degraded(self) -> bool:
        """True if any value in this snapshot is a fallback."""
        return bool(self.fallbacks)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "pod": self.pod_name,
            "node": self.node_name,
            "node_type": self.node_type.value,
            "status": self.severity.value,
            "total_bytes": self.total_bytes,
            "oldest_age": self.oldest_age,
            "newest_age": self.newest_age,
            "file_count": self.file_count,
            "fallbacks": list(self.fallbacks),
        }


@dataclass
class FleetSummary:
    """
    Fleet-wide buffer statistics for one run.

    Attributes:
        timestamp: Time the summary was built
        pod_count: Number of pods listed
        count_by_severity: Pods per severity bucket
        total_bytes: Sum of all pod buffer sizes
        max_bytes_pod: Pod with the largest buffer (first seen on ties)
        min_bytes_pod: Pod with the smallest buffer (first seen on ties)
        oldest_age_pod: Pod with the oldest buffer file (first seen on ties)
        newest_age_pod: Pod with the newest buffer file (first seen on ties)
    """
    timestamp: datetime
    pod_count: int
    count_by_severity: Dict[Severity, int] = field(default_factory=dict)
    total_bytes: int = 0
    max_bytes_pod: Optional[PodSnapshot] = None
    min_bytes_pod: Optional[PodSnapshot] = None
    oldest_age_pod: Optional[PodSnapshot] = None
    newest_age_pod: Optional[PodSnapshot] = None

    @property
    def average_bytes(self) -> int:
        """Average buffer size per pod (integer division)."""
        if self.pod_count == 0:
            return 0
        return self.total_bytes // self.pod_count

    @property
    def red_count(self) -> int:
        return self.count_by_severity.get(Severity.RED, 0)

    @property
    def yellow_count(self) -> int:
        return self.count_by_severity.get(Severity.YELLOW, 0)

    @property
    def green_count(self) -> int:
        return self.count_by_severity.get(Severity.GREEN, 0)

    @property
    def oldest_age(self) -> int:
        return self.oldest_age_pod.oldest_age if self.oldest_age_pod else 0

    @property
    def max_bytes(self) -> int:
        return self.max_bytes_pod.total_bytes if self.max_bytes_pod else 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        def _ref(pod: Optional[PodSnapshot]) -> Optional[Dict[str, str]]:
            if pod is None:
                return None
            return {"pod": pod.pod_name, "node": pod.node_name}

        return {
            "timestamp": self.timestamp.isoformat(),
            "pods": self.pod_count,
            "red": self.red_count,
            "yellow": self.yellow_count,
            "green": self.green_count,
            "oldest_age": self.oldest_age,
            "total_bytes": self.total_bytes,
            "max_bytes": self.max_bytes,
            "average_bytes": self.average_bytes,
            "oldest_age_pod": _ref(self.oldest_age_pod),
            "newest_age_pod": _ref(self.newest_age_pod),
            "max_bytes_pod": _ref(self.max_bytes_pod),
            "min_bytes_pod": _ref(self.min_bytes_pod),
        }
