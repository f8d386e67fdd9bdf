"""
bufferwatch - kubectl backend.

Calls the kubectl (or oc) binary through subprocess, reusing whatever
context the binary is already logged into.
"""

import json
import logging
import subprocess
import time
from typing import Any, Dict, List, Optional

from .base import ClusterClient, ClusterError, CommandError, OperationResult, ResultStatus

logger = logging.getLogger(__name__)


def kubectl_run(
    args: List[str],
    binary: str = "kubectl",
    timeout: int = 30,
    kubeconfig: Optional[str] = None,
) -> OperationResult:
    """Run a kubectl command and wrap the outcome in an OperationResult."""
    cmd = [binary]
    if kubeconfig:
        cmd.append(f"--kubeconfig={kubeconfig}")
    cmd.extend(args)
    command_str = " ".join(cmd)
    start_time = time.time()

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return OperationResult(
            status=ResultStatus.TIMEOUT,
            command=command_str,
            duration_ms=int((time.time() - start_time) * 1000),
            error=f"Command timeout after {timeout}s",
        )
    except OSError as e:
        return OperationResult(
            status=ResultStatus.ERROR,
            command=command_str,
            duration_ms=int((time.time() - start_time) * 1000),
            error=str(e),
        )

    duration_ms = int((time.time() - start_time) * 1000)
    logger.debug(f"{command_str} -> rc={result.returncode} in {duration_ms}ms")

    return OperationResult(
        status=ResultStatus.SUCCESS if result.returncode == 0 else ResultStatus.ERROR,
        stdout=result.stdout,
        stderr=result.stderr,
        return_code=result.returncode,
        duration_ms=duration_ms,
        command=command_str,
        error=(result.stderr.strip() or None) if result.returncode != 0 else None,
    )


class KubectlClusterClient(ClusterClient):
    """ClusterClient backed by the kubectl command line."""

    def __init__(
        self,
        binary: str = "kubectl",
        timeout: int = 30,
        kubeconfig: Optional[str] = None,
    ):
        self.binary = binary
        self.timeout = timeout
        self.kubeconfig = kubeconfig

    def _run(self, args: List[str]) -> str:
        result = kubectl_run(args, binary=self.binary, timeout=self.timeout, kubeconfig=self.kubeconfig)
        if not result.ok:
            raise ClusterError(f"{result.command} failed: {result.error or result.status.value}")
        return result.stdout

    def _json(self, args: List[str]) -> Dict[str, Any]:
        output = self._run(args + ["-o", "json"])
        try:
            return json.loads(output)
        except json.JSONDecodeError as e:
            raise ClusterError(f"Invalid JSON from {self.binary} {' '.join(args)}: {e}")

    def list_pod_names(self, namespace: str, label_selector: str) -> List[str]:
        data = self._json(["get", "pods", "-n", namespace, "-l", label_selector])
        return [
            item.get("metadata", {}).get("name", "")
            for item in data.get("items", [])
            if item.get("metadata", {}).get("name")
        ]

    def get_pod_node(self, namespace: str, pod_name: str) -> str:
        data = self._json(["get", "pod", pod_name, "-n", namespace])
        node_name = data.get("spec", {}).get("nodeName")
        if not node_name:
            raise ClusterError(f"Pod {namespace}/{pod_name} is not scheduled on a node")
        return node_name

    def get_node_metadata(self, node_name: str) -> Dict[str, Any]:
        return self._json(["get", "node", node_name]).get("metadata", {})

    def get_node_labels(self, node_name: str) -> Dict[str, str]:
        return self.get_node_metadata(node_name).get("labels") or {}

    def exec_in_pod(
        self,
        namespace: str,
        pod_name: str,
        command: List[str],
        container: Optional[str] = None,
    ) -> str:
        args = ["exec", pod_name, "-n", namespace]
        if container:
            args.extend(["-c", container])
        args.append("--")
        args.extend(command)

        result = kubectl_run(args, binary=self.binary, timeout=self.timeout, kubeconfig=self.kubeconfig)
        if result.status == ResultStatus.ERROR and result.return_code != 0:
            raise CommandError(
                f"{result.command} failed: {result.error or result.status.value}",
                stdout=result.stdout or "",
            )
        if not result.ok:
            raise ClusterError(f"{result.command} failed: {result.error or result.status.value}")
        return result.stdout
