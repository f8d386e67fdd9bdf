"""
Pod Buffer Inspector

Lists the buffer files inside a log forwarder pod and reduces them to
total size and oldest/newest file age.
"""

import logging
import time
from typing import Callable, Iterable, List, Optional, Tuple

from .cluster import ClusterClient, ClusterError, CommandError
from .models import BufferFile, BufferStats

logger = logging.getLogger(__name__)


def build_listing_command(buffer_dir: str, pattern: str) -> List[str]:
    """One ``find`` call printing ``<size> <mtime>`` per regular buffer file."""
    return [
        "find", buffer_dir,
        "-type", "f",
        "-name", pattern,
        "-printf", "%s %T@\\n",
    ]


def parse_buffer_listing(text: str) -> List[BufferFile]:
    """
    Parse ``<size> <epoch seconds[.fraction]>`` lines.

    Blank and malformed lines are skipped.

    Examples:
        >>> parse_buffer_listing("5432 1700000000.25\\n")
        [BufferFile(size=5432, mtime=1700000000.25)]
    """
    records = []
    for line in text.splitlines():
        parts = line.split()
        if not parts:
            continue
        if len(parts) != 2:
            logger.debug(f"Skipping malformed buffer listing line: {line!r}")
            continue
        try:
            size = int(parts[0])
            mtime = float(parts[1])
        except ValueError:
            logger.debug(f"Skipping malformed buffer listing line: {line!r}")
            continue
        if size < 0:
            logger.debug(f"Skipping negative size in buffer listing: {line!r}")
            continue
        records.append(BufferFile(size=size, mtime=mtime))
    return records


def reduce_buffer_files(
    records: Iterable[BufferFile],
) -> Tuple[int, Optional[float], Optional[float], int]:
    """
    Reduce buffer files in one pass.

    Returns:
        (total size, oldest mtime, newest mtime, file count); both mtimes
        are None when there are no files.
    """
    total = 0
    oldest = None
    newest = None
    count = 0
    for record in records:
        total += record.size
        count += 1
        if oldest is None or record.mtime < oldest:
            oldest = record.mtime
        if newest is None or record.mtime > newest:
            newest = record.mtime
    return total, oldest, newest, count


def age_seconds(now: float, mtime: Optional[float]) -> int:
    """Whole-second age of a file, 0 when absent or in the future."""
    if mtime is None:
        return 0
    return max(0, int(now) - int(mtime))


class BufferInspector:
    """
    Inspects the on-disk buffer queue of log forwarder pods.

    A failed remote listing is not raised: it is logged and reported as
    an empty buffer with ``ok=False``. When the listing command fails after
    printing some files (an unreadable subdirectory, say), those files are
    still counted and the result is marked ``ok=False``.

    Example:
        inspector = BufferInspector(client, buffer_dir="/var/lib/fluentd")
        stats = inspector.inspect("openshift-logging", "fluentd-x7k2p")
    """

    def __init__(
        self,
        client: ClusterClient,
        buffer_dir: str = "/var/lib/fluentd",
        pattern: str = "*.log",
        container: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.buffer_dir = buffer_dir
        self.pattern = pattern
        self.container = container
        self.clock = clock

    @property
    def command(self) -> List[str]:
        return build_listing_command(self.buffer_dir, self.pattern)

    def inspect(self, namespace: str, pod_name: str) -> BufferStats:
        """
        Inspect one pod's buffer directory.

        Args:
            namespace: Pod namespace
            pod_name: Pod name

        Returns:
            BufferStats with sizes and ages relative to the start of this call
        """
        now = self.clock()

        complete = True
        try:
            output = self.client.exec_in_pod(
                namespace, pod_name, self.command, container=self.container
            )
        except CommandError as e:
            if not e.stdout.strip():
                logger.warning(f"Buffer listing failed for {namespace}/{pod_name}, reporting empty buffer: {e}")
                return BufferStats(ok=False)
            logger.warning(f"Buffer listing for {namespace}/{pod_name} is incomplete: {e}")
            output = e.stdout
            complete = False
        except ClusterError as e:
            logger.warning(f"Buffer listing failed for {namespace}/{pod_name}, reporting empty buffer: {e}")
            return BufferStats(ok=False)

        total, oldest, newest, count = reduce_buffer_files(parse_buffer_listing(output))

        return BufferStats(
            total_bytes=total,
            oldest_age=age_seconds(now, oldest),
            newest_age=age_seconds(now, newest),
            file_count=count,
            ok=complete,
        )
