"""
Tests for bufferwatch/cluster/api.py — Kubernetes API backend
"""

from types import SimpleNamespace

import pytest
from unittest.mock import MagicMock, Mock, patch

from kubernetes.client.rest import ApiException
from kubernetes.config import ConfigException
from urllib3.exceptions import MaxRetryError

from bufferwatch.cluster import ClusterError, CommandError
from bufferwatch.cluster.api import ApiClusterClient


def pod(name, node_name=None):
    return SimpleNamespace(
        metadata=SimpleNamespace(name=name),
        spec=SimpleNamespace(node_name=node_name),
    )


@pytest.fixture
def core_v1():
    return Mock()


@pytest.fixture
def api(core_v1):
    return ApiClusterClient(core_v1=core_v1, exec_timeout=12)


class TestConfigLoading:

    def test_incluster_first(self):
        with patch("bufferwatch.cluster.api.config.load_incluster_config") as incluster, \
                patch("bufferwatch.cluster.api.config.load_kube_config") as kube, \
                patch("bufferwatch.cluster.api.client.CoreV1Api") as core:
            ApiClusterClient()
        incluster.assert_called_once()
        kube.assert_not_called()
        core.assert_called_once()

    def test_falls_back_to_kubeconfig(self):
        with patch("bufferwatch.cluster.api.config.load_incluster_config",
                   side_effect=ConfigException("not in cluster")), \
                patch("bufferwatch.cluster.api.config.load_kube_config") as kube, \
                patch("bufferwatch.cluster.api.client.CoreV1Api"):
            ApiClusterClient()
        kube.assert_called_once_with()

    def test_explicit_kubeconfig(self):
        with patch("bufferwatch.cluster.api.config.load_kube_config") as kube, \
                patch("bufferwatch.cluster.api.client.CoreV1Api"):
            ApiClusterClient(kubeconfig_path="/tmp/kubeconfig")
        kube.assert_called_once_with(config_file="/tmp/kubeconfig")

    def test_no_config_raises(self):
        with patch("bufferwatch.cluster.api.config.load_incluster_config",
                   side_effect=ConfigException("not in cluster")), \
                patch("bufferwatch.cluster.api.config.load_kube_config",
                      side_effect=ConfigException("no kubeconfig")):
            with pytest.raises(ClusterError, match="Failed to load Kubernetes config"):
                ApiClusterClient()


class TestQueries:

    def test_list_pod_names(self, api, core_v1):
        core_v1.list_namespaced_pod.return_value = SimpleNamespace(
            items=[pod("fluentd-a"), pod("fluentd-b")]
        )
        assert api.list_pod_names("openshift-logging", "component=fluentd") == ["fluentd-a", "fluentd-b"]
        core_v1.list_namespaced_pod.assert_called_once_with(
            namespace="openshift-logging", label_selector="component=fluentd",
        )

    def test_list_pod_names_api_error(self, api, core_v1):
        core_v1.list_namespaced_pod.side_effect = ApiException(status=403, reason="Forbidden")
        with pytest.raises(ClusterError, match="Forbidden"):
            api.list_pod_names("openshift-logging", "component=fluentd")

    def test_list_pod_names_unreachable(self, api, core_v1):
        core_v1.list_namespaced_pod.side_effect = ConnectionRefusedError("connection refused")
        with pytest.raises(ClusterError, match="unreachable"):
            api.list_pod_names("openshift-logging", "component=fluentd")

    def test_get_pod_node(self, api, core_v1):
        core_v1.read_namespaced_pod.return_value = pod("fluentd-a", node_name="compute-1")
        assert api.get_pod_node("openshift-logging", "fluentd-a") == "compute-1"

    def test_get_pod_node_unscheduled(self, api, core_v1):
        core_v1.read_namespaced_pod.return_value = pod("fluentd-a")
        with pytest.raises(ClusterError, match="not scheduled"):
            api.get_pod_node("openshift-logging", "fluentd-a")

    def test_get_pod_node_not_found(self, api, core_v1):
        core_v1.read_namespaced_pod.side_effect = ApiException(status=404, reason="Not Found")
        with pytest.raises(ClusterError, match="Not Found"):
            api.get_pod_node("openshift-logging", "fluentd-a")

    def test_node_metadata(self, api, core_v1):
        core_v1.read_node.return_value = SimpleNamespace(metadata=SimpleNamespace(
            name="master-0",
            labels={"node-role.kubernetes.io/master": ""},
            annotations=None,
        ))
        assert api.get_node_metadata("master-0") == {
            "name": "master-0",
            "labels": {"node-role.kubernetes.io/master": ""},
            "annotations": {},
        }
        assert api.get_node_labels("master-0") == {"node-role.kubernetes.io/master": ""}

    def test_node_error(self, api, core_v1):
        core_v1.read_node.side_effect = ApiException(status=404, reason="Not Found")
        with pytest.raises(ClusterError):
            api.get_node_labels("gone")

    def test_get_pod_node_transport_error(self, api, core_v1):
        core_v1.read_namespaced_pod.side_effect = MaxRetryError(None, "/api/v1/pods", "connection reset")
        with pytest.raises(ClusterError, match="unreachable"):
            api.get_pod_node("openshift-logging", "fluentd-a")

    def test_node_metadata_transport_error(self, api, core_v1):
        core_v1.read_node.side_effect = MaxRetryError(None, "/api/v1/nodes", "read timed out")
        with pytest.raises(ClusterError, match="unreachable"):
            api.get_node_metadata("compute-1")


class TestExecInPod:

    def ws_response(self, stdout="", stderr="", returncode=0, still_open=False):
        resp = MagicMock()
        resp.is_open.return_value = still_open
        resp.read_stdout.return_value = stdout
        resp.read_stderr.return_value = stderr
        resp.returncode = returncode
        return resp

    def test_returns_stdout(self, api, core_v1):
        resp = self.ws_response(stdout="100 1700000000.0\n")
        with patch("bufferwatch.cluster.api.stream", return_value=resp) as mock_stream:
            output = api.exec_in_pod("ns", "fluentd-a", ["find", "/var/lib/fluentd"], container="fluentd")

        assert output == "100 1700000000.0\n"
        args, kwargs = mock_stream.call_args
        assert args == (core_v1.connect_get_namespaced_pod_exec, "fluentd-a", "ns")
        assert kwargs["command"] == ["find", "/var/lib/fluentd"]
        assert kwargs["container"] == "fluentd"
        assert kwargs["tty"] is False
        resp.run_forever.assert_called_once_with(timeout=12)
        resp.close.assert_called_once()

    def test_no_container_kwarg_by_default(self, api):
        resp = self.ws_response()
        with patch("bufferwatch.cluster.api.stream", return_value=resp) as mock_stream:
            api.exec_in_pod("ns", "fluentd-a", ["true"])
        assert "container" not in mock_stream.call_args[1]

    def test_nonzero_exit_raises(self, api):
        resp = self.ws_response(stderr="find: '/var/lib/fluentd': No such file or directory", returncode=1)
        with patch("bufferwatch.cluster.api.stream", return_value=resp):
            with pytest.raises(ClusterError, match="exited with 1"):
                api.exec_in_pod("ns", "fluentd-a", ["find", "/var/lib/fluentd"])
        resp.close.assert_called_once()

    def test_nonzero_exit_keeps_partial_output(self, api):
        resp = self.ws_response(
            stdout="100 1700000000.0\n",
            stderr="find: '/var/lib/fluentd/locked': Permission denied",
            returncode=1,
        )
        with patch("bufferwatch.cluster.api.stream", return_value=resp):
            with pytest.raises(CommandError) as excinfo:
                api.exec_in_pod("ns", "fluentd-a", ["find", "/var/lib/fluentd"])
        assert excinfo.value.stdout == "100 1700000000.0\n"
        assert "Permission denied" in str(excinfo.value)

    def test_reads_without_blocking(self, api):
        resp = self.ws_response(stdout="1 1700000000.0\n")
        with patch("bufferwatch.cluster.api.stream", return_value=resp):
            api.exec_in_pod("ns", "fluentd-a", ["true"])
        resp.read_stdout.assert_called_once_with(timeout=0)
        resp.read_stderr.assert_called_once_with(timeout=0)

    def test_unfinished_command_raises_without_reading(self, api):
        resp = self.ws_response(returncode=None, still_open=True)
        resp.read_stdout.side_effect = AssertionError("read on an open exec stream blocks")
        resp.read_stderr.side_effect = AssertionError("read on an open exec stream blocks")
        with patch("bufferwatch.cluster.api.stream", return_value=resp):
            with pytest.raises(ClusterError, match="did not finish within 12s"):
                api.exec_in_pod("ns", "fluentd-a", ["sleep", "100"])
        resp.read_stdout.assert_not_called()
        resp.close.assert_called_once()

    def test_missing_exit_status_raises(self, api):
        resp = self.ws_response(returncode=None)
        with patch("bufferwatch.cluster.api.stream", return_value=resp):
            with pytest.raises(ClusterError, match="no exit status"):
                api.exec_in_pod("ns", "fluentd-a", ["true"])

    def test_stream_transport_error(self, api):
        resp = self.ws_response()
        resp.run_forever.side_effect = ConnectionResetError("connection reset by peer")
        with patch("bufferwatch.cluster.api.stream", return_value=resp):
            with pytest.raises(ClusterError, match="connection reset by peer"):
                api.exec_in_pod("ns", "fluentd-a", ["true"])
        resp.close.assert_called_once()

    def test_exec_connect_transport_error(self, api):
        error = MaxRetryError(None, "/api/v1/namespaces/ns/pods/fluentd-a/exec", "connection refused")
        with patch("bufferwatch.cluster.api.stream", side_effect=error):
            with pytest.raises(ClusterError, match="unreachable"):
                api.exec_in_pod("ns", "fluentd-a", ["true"])

    def test_exec_api_error(self, api):
        with patch("bufferwatch.cluster.api.stream", side_effect=ApiException(status=500, reason="Internal")):
            with pytest.raises(ClusterError, match="Internal"):
                api.exec_in_pod("ns", "fluentd-a", ["true"])
