"""
Node Classifier

Derives a coarse node type (compute / infra / master) for human triage.
"""

import logging
import re
from typing import Any, Dict, Iterable, Optional

from .cluster import ClusterClient, ClusterError
from .models import NodeType

logger = logging.getLogger(__name__)


ROLE_KEY_PATTERN = re.compile(r"^node-role\.kubernetes\.io/([\w.-]+)$")

# Role tokens as they appear in labels, mapped to node types
ROLE_ALIASES = {
    "compute": NodeType.COMPUTE,
    "worker": NodeType.COMPUTE,
    "infra": NodeType.INFRA,
    "master": NodeType.MASTER,
    "control-plane": NodeType.MASTER,
}

# When a node carries several roles, the first match in this order wins
ROLE_PRIORITY = (NodeType.MASTER, NodeType.INFRA, NodeType.COMPUTE)


def node_type_from_token(token: Optional[str]) -> NodeType:
    """Map a label value or role token to a NodeType."""
    if not token:
        return NodeType.UNKNOWN
    return ROLE_ALIASES.get(token.strip().lower(), NodeType.UNKNOWN)


def role_from_metadata(metadata: Dict[str, Any]) -> NodeType:
    """
    Scan node labels, then annotations, for ``node-role.kubernetes.io/<role>``
    keys and return the highest priority role found.
    """
    found = set()
    for section in ("labels", "annotations"):
        for key in _keys(metadata.get(section)):
            match = ROLE_KEY_PATTERN.match(key)
            if match:
                found.add(node_type_from_token(match.group(1)))
        for node_type in ROLE_PRIORITY:
            if node_type in found:
                return node_type
    return NodeType.UNKNOWN


def _keys(mapping: Optional[Dict[str, Any]]) -> Iterable[str]:
    return mapping.keys() if mapping else ()


class NodeClassifier:
    """
    Classifies nodes by their type label, falling back to node-role labels.

    Lookup failures are never raised: they are logged and the node is
    reported as unknown. Results are memoised per node name.

    Example:
        classifier = NodeClassifier(client)
        classifier.classify("ip-10-0-1-12")  # NodeType.INFRA
    """

    def __init__(self, client: ClusterClient, type_label: str = "type"):
        self.client = client
        self.type_label = type_label
        self._cache: Dict[str, NodeType] = {}

    def classify(self, node_name: str) -> NodeType:
        if node_name not in self._cache:
            self._cache[node_name] = self._classify(node_name)
        return self._cache[node_name]

    def _classify(self, node_name: str) -> NodeType:
        try:
            labels = self.client.get_node_labels(node_name)
        except ClusterError as e:
            logger.debug(f"Node labels unavailable for {node_name}: {e}")
            labels = {}

        label_value = labels.get(self.type_label)
        if label_value:
            return node_type_from_token(label_value)

        try:
            metadata = self.client.get_node_metadata(node_name)
        except ClusterError as e:
            logger.debug(f"Node metadata unavailable for {node_name}: {e}")
            return NodeType.UNKNOWN

        return role_from_metadata(metadata)
