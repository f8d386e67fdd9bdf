"""
Buffer Health Checker

Walks every log forwarder pod once, in listing order, and reports buffer
backlog per pod and for the whole fleet.
"""

import logging
import time
from datetime import datetime
from typing import Callable, List, Optional, Tuple

import click

from . import report
from .aggregator import FleetAccumulator
from .classifier import NodeClassifier
from .cluster import ClusterClient, ClusterError
from .config import Settings
from .inspector import BufferInspector
from .models import FleetSummary, NodeType, PodSnapshot, classify_severity

logger = logging.getLogger(__name__)

EXIT_OK = 0


def _stderr(message: str) -> None:
    click.echo(message, err=True)


class BufferHealthChecker:
    """
    Log forwarder buffer health check.

    Per-pod lookups that fail fall back to defaults (placeholder node,
    unknown node type, empty buffer) and are recorded on the snapshot.
    Only a failure to list the pods is raised.

    Example:
        checker = BufferHealthChecker(client, Settings.from_env())
        exit_code = checker.run()
    """

    def __init__(
        self,
        client: ClusterClient,
        settings: Optional[Settings] = None,
        classifier: Optional[NodeClassifier] = None,
        inspector: Optional[BufferInspector] = None,
        out: Callable[[str], None] = click.echo,
        err: Callable[[str], None] = _stderr,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.client = client
        self.settings = settings or Settings()
        self.classifier = classifier or NodeClassifier(
            client, type_label=self.settings.node_type_label
        )
        self.inspector = inspector or BufferInspector(
            client,
            buffer_dir=self.settings.buffer_dir,
            pattern=self.settings.buffer_file_pattern,
            container=self.settings.container,
        )
        self.out = out
        self.err = err
        self.now = now

    def resolve_node(self, pod_name: str) -> Optional[str]:
        """Node the pod runs on, or None if it cannot be resolved."""
        try:
            return self.client.get_pod_node(self.settings.namespace, pod_name)
        except ClusterError as e:
            logger.warning(f"Could not resolve node for pod {pod_name}: {e}")
            return None

    def snapshot(self, pod_name: str) -> PodSnapshot:
        """Build the snapshot for one pod; never raises for per-pod failures."""
        fallbacks = []

        node_name = self.resolve_node(pod_name)
        if node_name is None:
            node_name = f"unknown-{pod_name}"
            node_type = NodeType.UNKNOWN
            fallbacks.extend(["node", "node_type"])
        else:
            node_type = self.classifier.classify(node_name)
            if node_type == NodeType.UNKNOWN:
                fallbacks.append("node_type")

        stats = self.inspector.inspect(self.settings.namespace, pod_name)
        if not stats.ok:
            fallbacks.append("buffer")

        return PodSnapshot(
            pod_name=pod_name,
            node_name=node_name,
            node_type=node_type,
            total_bytes=stats.total_bytes,
            oldest_age=stats.oldest_age,
            newest_age=stats.newest_age,
            severity=classify_severity(
                stats.oldest_age,
                yellow_after=self.settings.yellow_after,
                red_after=self.settings.red_after,
            ),
            file_count=stats.file_count,
            fallbacks=tuple(fallbacks),
        )

    def collect(self, pod_names: List[str]) -> Tuple[FleetSummary, List[PodSnapshot]]:
        """
        Inspect every pod in order and fold the results.

        Per-pod rows are written as each pod completes when per-pod output
        is enabled in text mode.
        """
        stream_rows = self.settings.per_pod and self.settings.output_format == "text"
        if stream_rows:
            self.out(report.pod_header())

        accumulator = FleetAccumulator()
        snapshots = []
        for pod_name in pod_names:
            start_time = time.time()
            pod = self.snapshot(pod_name)
            logger.debug(
                f"Inspected {pod_name} in {(time.time() - start_time) * 1000:.0f}ms: "
                f"{pod.severity.value}, {pod.total_bytes} bytes, fallbacks={list(pod.fallbacks)}"
            )
            accumulator = accumulator.add(pod)
            snapshots.append(pod)
            if stream_rows:
                self.out(report.pod_row(pod))

        return accumulator.summarize(self.now()), snapshots

    def run(self) -> int:
        """
        Run the check and write the report.

        Returns:
            Process exit code

        Raises:
            ClusterError: if the pod listing itself fails
        """
        namespace = self.settings.namespace
        selector = self.settings.label_selector

        pod_names = self.client.list_pod_names(namespace, selector)
        if not pod_names:
            self.err(f"No pods found in namespace {namespace} matching {selector}")
            return EXIT_OK

        logger.info(f"Checking buffers of {len(pod_names)} pods in {namespace}")
        summary, snapshots = self.collect(pod_names)

        degraded = sum(1 for pod in snapshots if pod.degraded)
        if degraded:
            logger.warning(f"{degraded} of {len(snapshots)} pods reported with fallback values")

        if self.settings.output_format == "json":
            self.out(report.render_json(summary, snapshots))
            return EXIT_OK

        for line in report.summary_lines(summary):
            self.out(line)

        return EXIT_OK
