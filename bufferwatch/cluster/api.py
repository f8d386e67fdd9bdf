"""
bufferwatch - Kubernetes API backend.

ClusterClient implementation on top of the official kubernetes Python client.
"""

import logging
from typing import Any, Dict, List, Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.stream import stream

from .base import ClusterClient, ClusterError, CommandError

logger = logging.getLogger(__name__)


class ApiClusterClient(ClusterClient):
    """ClusterClient talking to the API server through CoreV1Api."""

    def __init__(
        self,
        kubeconfig_path: Optional[str] = None,
        exec_timeout: int = 30,
        core_v1: Optional[client.CoreV1Api] = None,
    ):
        """
        Initialize Kubernetes client.

        Args:
            kubeconfig_path: Explicit kubeconfig file (default discovery if None)
            exec_timeout: Seconds to wait for a remote command to finish
            core_v1: Preconfigured CoreV1Api (skips config loading)

        Raises:
            ClusterError: if no usable cluster configuration is found
        """
        self.exec_timeout = exec_timeout

        if core_v1 is None:
            try:
                if kubeconfig_path:
                    config.load_kube_config(config_file=kubeconfig_path)
                else:
                    # Try in-cluster config first, fall back to kubeconfig
                    try:
                        config.load_incluster_config()
                    except config.ConfigException:
                        config.load_kube_config()
            except Exception as e:
                raise ClusterError(f"Failed to load Kubernetes config: {e}") from e
            core_v1 = client.CoreV1Api()

        self.core_v1 = core_v1

    def list_pod_names(self, namespace: str, label_selector: str) -> List[str]:
        try:
            pods = self.core_v1.list_namespaced_pod(
                namespace=namespace,
                label_selector=label_selector,
            )
        except ApiException as e:
            raise ClusterError(f"Failed to list pods in {namespace}: {e.reason}") from e
        except Exception as e:
            raise ClusterError(f"Cluster unreachable while listing pods in {namespace}: {e}") from e

        return [pod.metadata.name for pod in pods.items if pod.metadata and pod.metadata.name]

    def get_pod_node(self, namespace: str, pod_name: str) -> str:
        try:
            pod = self.core_v1.read_namespaced_pod(name=pod_name, namespace=namespace)
        except ApiException as e:
            raise ClusterError(f"Failed to read pod {namespace}/{pod_name}: {e.reason}") from e
        except Exception as e:
            raise ClusterError(f"Cluster unreachable while reading pod {namespace}/{pod_name}: {e}") from e

        node_name = pod.spec.node_name if pod.spec else None
        if not node_name:
            raise ClusterError(f"Pod {namespace}/{pod_name} is not scheduled on a node")
        return node_name

    def get_node_metadata(self, node_name: str) -> Dict[str, Any]:
        try:
            node = self.core_v1.read_node(name=node_name)
        except ApiException as e:
            raise ClusterError(f"Failed to read node {node_name}: {e.reason}") from e
        except Exception as e:
            raise ClusterError(f"Cluster unreachable while reading node {node_name}: {e}") from e

        metadata = node.metadata
        if metadata is None:
            return {}
        return {
            "name": metadata.name,
            "labels": dict(metadata.labels or {}),
            "annotations": dict(metadata.annotations or {}),
        }

    def get_node_labels(self, node_name: str) -> Dict[str, str]:
        return self.get_node_metadata(node_name).get("labels", {})

    def exec_in_pod(
        self,
        namespace: str,
        pod_name: str,
        command: List[str],
        container: Optional[str] = None,
    ) -> str:
        kwargs: Dict[str, Any] = {
            "command": command,
            "stderr": True,
            "stdin": False,
            "stdout": True,
            "tty": False,
            "_preload_content": False,
        }
        if container:
            kwargs["container"] = container

        try:
            resp = stream(
                self.core_v1.connect_get_namespaced_pod_exec,
                pod_name,
                namespace,
                **kwargs,
            )
        except ApiException as e:
            raise ClusterError(f"Failed to exec in pod {namespace}/{pod_name}: {e.reason}") from e
        except Exception as e:
            raise ClusterError(f"Cluster unreachable while starting exec in pod {namespace}/{pod_name}: {e}") from e

        try:
            resp.run_forever(timeout=self.exec_timeout)
            # Still open means the timeout expired; reading now would block
            if resp.is_open():
                raise ClusterError(
                    f"Command in pod {namespace}/{pod_name} did not finish within {self.exec_timeout}s"
                )
            stdout = resp.read_stdout(timeout=0)
            stderr = resp.read_stderr(timeout=0)
            return_code = resp.returncode
        except ClusterError:
            raise
        except Exception as e:
            raise ClusterError(f"Exec in pod {namespace}/{pod_name} failed: {e}") from e
        finally:
            resp.close()

        if return_code is None:
            raise ClusterError(f"Command in pod {namespace}/{pod_name} returned no exit status")
        if return_code != 0:
            raise CommandError(
                f"Command in pod {namespace}/{pod_name} exited with {return_code}: {stderr.strip()}",
                stdout=stdout,
            )
        return stdout
