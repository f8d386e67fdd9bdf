"""
Report Rendering

Fixed-width text tables and JSON rendering of buffer snapshots and the
fleet summary.
"""

import json
from typing import Any, Iterable, List, Sequence, Tuple

from .models import FleetSummary, PodSnapshot

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

POD_COLUMNS: Sequence[Tuple[str, int]] = (
    ("STATUS", 8),
    ("OLDEST", 8),
    ("NEWEST", 8),
    ("SIZE", 12),
    ("POD", 45),
    ("NODETYPE", 9),
    ("NODE", 40),
)

SUMMARY_COLUMNS: Sequence[Tuple[str, int]] = (
    ("TIME", 20),
    ("PODS", 6),
    ("RED", 6),
    ("YELLOW", 7),
    ("GREEN", 6),
    ("OLDEST", 8),
    ("TOTAL_SIZE", 14),
    ("LARGEST", 12),
    ("AVERAGE", 12),
)


def fit(value: Any, width: int) -> str:
    """Truncate or pad a value to exactly ``width`` characters."""
    text = str(value)
    return text[:width].ljust(width)


def format_row(values: Iterable[Any], columns: Sequence[Tuple[str, int]]) -> str:
    cells = [fit(value, width) for value, (_, width) in zip(values, columns)]
    return " ".join(cells).rstrip()


def pod_header() -> str:
    return format_row([name for name, _ in POD_COLUMNS], POD_COLUMNS)


def pod_row(pod: PodSnapshot) -> str:
    return format_row(
        [
            pod.severity.value,
            pod.oldest_age,
            pod.newest_age,
            pod.total_bytes,
            pod.pod_name,
            pod.node_type.value,
            pod.node_name,
        ],
        POD_COLUMNS,
    )


def summary_header() -> str:
    return format_row([name for name, _ in SUMMARY_COLUMNS], SUMMARY_COLUMNS)


def summary_row(summary: FleetSummary) -> str:
    return format_row(
        [
            summary.timestamp.strftime(TIME_FORMAT),
            summary.pod_count,
            summary.red_count,
            summary.yellow_count,
            summary.green_count,
            summary.oldest_age,
            summary.total_bytes,
            summary.max_bytes,
            summary.average_bytes,
        ],
        SUMMARY_COLUMNS,
    )


def detail_lines(summary: FleetSummary) -> List[str]:
    """Lines naming the pods behind the oldest-age and largest-size values."""
    lines = []
    oldest = summary.oldest_age_pod
    if oldest is not None:
        lines.append(
            f"Oldest buffer file: {oldest.oldest_age}s in pod {oldest.pod_name} on node {oldest.node_name}"
        )
    largest = summary.max_bytes_pod
    if largest is not None:
        lines.append(
            f"Largest buffer: {largest.total_bytes} bytes in pod {largest.pod_name} on node {largest.node_name}"
        )
    return lines


def summary_lines(summary: FleetSummary) -> List[str]:
    """The SUMMARY block printed after all pods were processed."""
    return [
        "",
        "SUMMARY",
        "",
        summary_header(),
        summary_row(summary),
        *detail_lines(summary),
    ]


def render_json(summary: FleetSummary, pods: Sequence[PodSnapshot]) -> str:
    return json.dumps(
        {
            "summary": summary.to_dict(),
            "pods": [pod.to_dict() for pod in pods],
        },
        indent=2,
    )
