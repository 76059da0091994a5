import logging
from typing import List

from ...constants import HOSTNAME_DOMAIN, HOSTNAME_PREFIX, NODE_NAME
from ...errors import TopologyError
from ..domain.models import ClusterSpec, NodeIdentity
from .roles import classify

logger = logging.getLogger(__name__)


def node_name(index: int) -> str:
    return f"{HOSTNAME_PREFIX}{index}"


def hostname(index: int) -> str:
    return f"{node_name(index)}.{HOSTNAME_DOMAIN}"


def cluster_node_id(index: int) -> str:
    return f"{NODE_NAME}@{hostname(index)}"


def resolve(index: int, spec: ClusterSpec) -> NodeIdentity:
    """Map a 1-based node index onto its network identity.

    The mapping is deterministic: the same index always yields the same hostname,
    node id and host port, so re-running the generator is idempotent.

    Args:
        index (int): Node index, 1 <= index <= spec.total_nodes.
        spec (ClusterSpec): The cluster being generated.

    Returns:
        NodeIdentity: Hostname, cluster node id, host-exposed data-plane port and role.

    Raises:
        TopologyError: If the index is outside the cluster.
    """
    if not 1 <= index <= spec.total_nodes:
        raise TopologyError(f"Node index {index} is outside 1..{spec.total_nodes}")

    return NodeIdentity(
        index=index,
        name=node_name(index),
        hostname=hostname(index),
        cluster_node_id=cluster_node_id(index),
        data_plane_port=spec.base_port + index,
        role=classify(index, spec),
    )


def resolve_all(spec: ClusterSpec) -> List[NodeIdentity]:
    identities = [resolve(index, spec) for index in range(1, spec.total_nodes + 1)]
    logger.debug(f"Resolved {len(identities)} node identities: {[i.hostname for i in identities]}")
    return identities
