"""
bufferwatch Configuration

Environment-driven configuration for the buffer health check.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .models import DEFAULT_RED_AGE_SECONDS, DEFAULT_YELLOW_AGE_SECONDS


class ConfigError(ValueError):
    """Raised when an environment setting cannot be used."""


# =============================================================================
# Cluster Configuration
# =============================================================================

DEFAULT_NAMESPACE = "openshift-logging"
DEFAULT_LABEL_SELECTOR = "component=fluentd"
DEFAULT_NODE_TYPE_LABEL = "type"

CLUSTER_BACKENDS = ("api", "kubectl")
DEFAULT_CLUSTER_BACKEND = "api"
DEFAULT_KUBECTL_BINARY = "kubectl"
DEFAULT_EXEC_TIMEOUT_SECONDS = 30


# =============================================================================
# Buffer Configuration
# =============================================================================

DEFAULT_BUFFER_DIR = "/var/lib/fluentd"
DEFAULT_BUFFER_FILE_PATTERN = "*.log"


# =============================================================================
# Output Configuration
# =============================================================================

OUTPUT_FORMATS = ("text", "json")
DEFAULT_OUTPUT_FORMAT = "text"
DEFAULT_LOG_LEVEL = "WARNING"

TRUE_VALUES = ("true", "1", "yes", "on")


def parse_bool(value: Optional[str]) -> bool:
    """Interpret a boolean-like environment string; unset means False."""
    if value is None:
        return False
    return value.strip().lower() in TRUE_VALUES


def _parse_int(name: str, value: Optional[str], default: int) -> int:
    if value is None or value.strip() == "":
        return default
    try:
        parsed = int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None
    if parsed < 0:
        raise ConfigError(f"{name} must not be negative, got {parsed}")
    return parsed


def _parse_choice(name: str, value: Optional[str], choices: tuple, default: str) -> str:
    if value is None or value.strip() == "":
        return default
    choice = value.strip().lower()
    if choice not in choices:
        raise ConfigError(f"{name} must be one of {', '.join(choices)}, got {value!r}")
    return choice


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings for one check.

    Attributes:
        namespace: Namespace holding the log forwarder pods
        label_selector: Label selector matching the log forwarder pods
        per_pod: Print the per-pod table
        buffer_dir: Buffer directory inside the forwarder container
        buffer_file_pattern: ``find -name`` pattern for buffer files
        container: Container to exec into (None = pod default)
        node_type_label: Node label holding the node type
        backend: Cluster client backend (api or kubectl)
        kubectl_binary: Binary used by the kubectl backend
        kubeconfig: Explicit kubeconfig path (None = default discovery)
        exec_timeout: Timeout in seconds for one remote listing
        yellow_after: Oldest-file age (seconds) at which a pod turns yellow
        red_after: Oldest-file age (seconds) at which a pod turns red
        output_format: text or json
        log_level: Logging level name
    """
    namespace: str = DEFAULT_NAMESPACE
    label_selector: str = DEFAULT_LABEL_SELECTOR
    per_pod: bool = False
    buffer_dir: str = DEFAULT_BUFFER_DIR
    buffer_file_pattern: str = DEFAULT_BUFFER_FILE_PATTERN
    container: Optional[str] = None
    node_type_label: str = DEFAULT_NODE_TYPE_LABEL
    backend: str = DEFAULT_CLUSTER_BACKEND
    kubectl_binary: str = DEFAULT_KUBECTL_BINARY
    kubeconfig: Optional[str] = None
    exec_timeout: int = DEFAULT_EXEC_TIMEOUT_SECONDS
    yellow_after: int = DEFAULT_YELLOW_AGE_SECONDS
    red_after: int = DEFAULT_RED_AGE_SECONDS
    output_format: str = DEFAULT_OUTPUT_FORMAT
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)

        Raises:
            ConfigError: if a value is malformed
        """
        env = os.environ if environ is None else environ

        yellow_after = _parse_int(
            "YELLOW_AGE_SECONDS", env.get("YELLOW_AGE_SECONDS"), DEFAULT_YELLOW_AGE_SECONDS
        )
        red_after = _parse_int(
            "RED_AGE_SECONDS", env.get("RED_AGE_SECONDS"), DEFAULT_RED_AGE_SECONDS
        )
        if red_after < yellow_after:
            raise ConfigError(
                f"RED_AGE_SECONDS ({red_after}) must not be below YELLOW_AGE_SECONDS ({yellow_after})"
            )

        return cls(
            namespace=env.get("LOGGING_NAMESPACE") or DEFAULT_NAMESPACE,
            label_selector=env.get("BUFFER_LABEL_SELECTOR") or DEFAULT_LABEL_SELECTOR,
            per_pod=parse_bool(env.get("PER_POD")),
            buffer_dir=env.get("BUFFER_DIR") or DEFAULT_BUFFER_DIR,
            buffer_file_pattern=env.get("BUFFER_FILE_PATTERN") or DEFAULT_BUFFER_FILE_PATTERN,
            container=env.get("BUFFER_CONTAINER") or None,
            node_type_label=env.get("NODE_TYPE_LABEL") or DEFAULT_NODE_TYPE_LABEL,
            backend=_parse_choice(
                "CLUSTER_BACKEND", env.get("CLUSTER_BACKEND"), CLUSTER_BACKENDS, DEFAULT_CLUSTER_BACKEND
            ),
            kubectl_binary=env.get("KUBECTL_BINARY") or DEFAULT_KUBECTL_BINARY,
            kubeconfig=env.get("KUBECONFIG_PATH") or None,
            exec_timeout=_parse_int(
                "EXEC_TIMEOUT_SECONDS", env.get("EXEC_TIMEOUT_SECONDS"), DEFAULT_EXEC_TIMEOUT_SECONDS
            ),
            yellow_after=yellow_after,
            red_after=red_after,
            output_format=_parse_choice(
                "OUTPUT_FORMAT", env.get("OUTPUT_FORMAT"), OUTPUT_FORMATS, DEFAULT_OUTPUT_FORMAT
            ),
            log_level=(env.get("LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
        )
