"""
Tests for the bufferwatch CLI
"""

import pytest
from unittest.mock import Mock, patch
from click.testing import CliRunner

from bufferwatch.cli import cli
from bufferwatch.cluster import ClusterClient, ClusterError, KubectlClusterClient, create_client
from bufferwatch.config import Settings


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def client():
    client = Mock(spec=ClusterClient)
    client.list_pod_names.return_value = ["fluentd-a"]
    client.get_pod_node.return_value = "compute-1"
    client.get_node_labels.return_value = {"type": "compute"}
    client.exec_in_pod.return_value = ""
    return client


class TestHelp:

    @pytest.mark.parametrize("args", [["--help"], ["-h"], ["anything"], ["a", "b"]])
    def test_any_argument_prints_help(self, runner, args):
        with patch("bufferwatch.cli.create_client") as factory:
            result = runner.invoke(cli, args)
        assert result.exit_code == 0
        assert "Usage:" in result.output
        assert "PER_POD" in result.output
        factory.assert_not_called()


class TestRun:

    def test_summary_report(self, runner, client):
        with patch("bufferwatch.cli.create_client", return_value=client):
            result = runner.invoke(cli, [], env={"LOGGING_NAMESPACE": "logging"})
        assert result.exit_code == 0
        assert "SUMMARY" in result.output
        assert "TOTAL_SIZE" in result.output
        assert "STATUS" not in result.output
        client.list_pod_names.assert_called_once_with("logging", "component=fluentd")

    def test_per_pod_table(self, runner, client):
        with patch("bufferwatch.cli.create_client", return_value=client):
            result = runner.invoke(cli, [], env={"PER_POD": "true"})
        assert result.exit_code == 0
        assert "STATUS" in result.output
        assert "fluentd-a" in result.output

    def test_no_pods_is_not_a_failure(self, runner, client):
        client.list_pod_names.return_value = []
        with patch("bufferwatch.cli.create_client", return_value=client):
            result = runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "No pods found" in result.output
        assert "SUMMARY" not in result.output

    def test_cluster_unreachable_exits_nonzero(self, runner, client):
        client.list_pod_names.side_effect = ClusterError("connection refused")
        with patch("bufferwatch.cli.create_client", return_value=client):
            result = runner.invoke(cli, [])
        assert result.exit_code == 1
        assert "Error: connection refused" in result.output
        assert "SUMMARY" not in result.output

    def test_client_setup_failure_exits_nonzero(self, runner):
        with patch("bufferwatch.cli.create_client", side_effect=ClusterError("Failed to load Kubernetes config")):
            result = runner.invoke(cli, [])
        assert result.exit_code == 1
        assert "Failed to load Kubernetes config" in result.output

    def test_invalid_config_exits_nonzero(self, runner):
        with patch("bufferwatch.cli.create_client") as factory:
            result = runner.invoke(cli, [], env={"OUTPUT_FORMAT": "xml"})
        assert result.exit_code == 1
        assert "OUTPUT_FORMAT" in result.output
        factory.assert_not_called()


class TestCreateClient:

    def test_kubectl_backend(self):
        client = create_client(Settings(backend="kubectl", kubectl_binary="oc", exec_timeout=9))
        assert isinstance(client, KubectlClusterClient)
        assert client.binary == "oc"
        assert client.timeout == 9

    def test_api_backend(self):
        with patch("bufferwatch.cluster.api.ApiClusterClient") as api_client:
            create_client(Settings(kubeconfig="/tmp/kubeconfig", exec_timeout=9))
        api_client.assert_called_once_with(kubeconfig_path="/tmp/kubeconfig", exec_timeout=9)
