"""
Fleet Aggregator

Folds pod snapshots into fleet-wide statistics. The accumulator is an
immutable value: ``add`` returns a new accumulator.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from functools import reduce
from typing import Dict, Iterable, Optional

from .models import FleetSummary, PodSnapshot, Severity


@dataclass(frozen=True)
class FleetAccumulator:
    """
    Running fleet statistics.

    Ties keep the earlier pod: replacements only happen on strictly
    greater (or smaller) values.
    """
    pod_count: int = 0
    total_bytes: int = 0
    count_by_severity: Dict[Severity, int] = field(
        default_factory=lambda: {severity: 0 for severity in Severity}
    )
    max_bytes_pod: Optional[PodSnapshot] = None
    min_bytes_pod: Optional[PodSnapshot] = None
    oldest_age_pod: Optional[PodSnapshot] = None
    newest_age_pod: Optional[PodSnapshot] = None

    def add(self, pod: PodSnapshot) -> "FleetAccumulator":
        counts = dict(self.count_by_severity)
        counts[pod.severity] = counts.get(pod.severity, 0) + 1

        max_bytes_pod = self.max_bytes_pod
        if max_bytes_pod is None or pod.total_bytes > max_bytes_pod.total_bytes:
            max_bytes_pod = pod

        min_bytes_pod = self.min_bytes_pod
        if min_bytes_pod is None or pod.total_bytes < min_bytes_pod.total_bytes:
            min_bytes_pod = pod

        oldest_age_pod = self.oldest_age_pod
        if oldest_age_pod is None or pod.oldest_age > oldest_age_pod.oldest_age:
            oldest_age_pod = pod

        newest_age_pod = self.newest_age_pod
        if newest_age_pod is None or pod.newest_age < newest_age_pod.newest_age:
            newest_age_pod = pod

        return replace(
            self,
            pod_count=self.pod_count + 1,
            total_bytes=self.total_bytes + pod.total_bytes,
            count_by_severity=counts,
            max_bytes_pod=max_bytes_pod,
            min_bytes_pod=min_bytes_pod,
            oldest_age_pod=oldest_age_pod,
            newest_age_pod=newest_age_pod,
        )

    def summarize(self, timestamp: datetime) -> FleetSummary:
        return FleetSummary(
            timestamp=timestamp,
            pod_count=self.pod_count,
            count_by_severity=dict(self.count_by_severity),
            total_bytes=self.total_bytes,
            max_bytes_pod=self.max_bytes_pod,
            min_bytes_pod=self.min_bytes_pod,
            oldest_age_pod=self.oldest_age_pod,
            newest_age_pod=self.newest_age_pod,
        )


def aggregate(pods: Iterable[PodSnapshot], timestamp: datetime) -> FleetSummary:
    """Fold a sequence of snapshots into a FleetSummary."""
    return reduce(lambda acc, pod: acc.add(pod), pods, FleetAccumulator()).summarize(timestamp)
