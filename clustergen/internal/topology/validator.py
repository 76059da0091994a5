import logging
from typing import Dict, Iterable, List, Sequence

from ...constants import RESERVED_PORTS
from ...errors import TopologyError
from ..domain.models import ClusterSpec, LoadBalancerConfig, NodeIdentity, PerNodeServiceConfig, ScrapeConfig

logger = logging.getLogger(__name__)


def validate_spec(spec: ClusterSpec) -> None:
    if spec.total_nodes < 1:
        raise TopologyError(f"Total node count must be at least 1, got {spec.total_nodes}")
    if not 1 <= spec.core_nodes <= spec.total_nodes:
        raise TopologyError(
            f"Core node count must be between 1 and the total node count ({spec.total_nodes}), "
            f"got {spec.core_nodes}"
        )


def _check_unique(identities: Sequence[NodeIdentity], attribute: str) -> None:
    seen: Dict[object, int] = {}
    for identity in identities:
        value = getattr(identity, attribute)
        if value in seen:
            raise TopologyError(
                f"Nodes {seen[value]} and {identity.index} resolve to the same {attribute} {value!r}"
            )
        seen[value] = identity.index


def _check_node_set(artifact: str, indices: Iterable[int], total_nodes: int) -> None:
    actual = sorted(indices)
    expected = list(range(1, total_nodes + 1))
    if actual == expected:
        return
    missing = sorted(set(expected) - set(actual))
    duplicated = sorted({i for i in actual if actual.count(i) > 1})
    unknown = sorted(set(actual) - set(expected))
    raise TopologyError(
        f"{artifact} does not cover nodes 1..{total_nodes} exactly "
        f"(missing={missing}, duplicated={duplicated}, unknown={unknown})"
    )


def validate(
    spec: ClusterSpec,
    identities: List[NodeIdentity],
    node_configs: List[PerNodeServiceConfig],
    lb_config: LoadBalancerConfig,
    scrape_config: ScrapeConfig,
) -> None:
    """Cross-check the emitted artifacts before anything is persisted.

    Raises:
        TopologyError: On the first inconsistency found.
    """
    validate_spec(spec)

    _check_node_set("Node identities", [i.index for i in identities], spec.total_nodes)
    for attribute in ("hostname", "cluster_node_id", "data_plane_port"):
        _check_unique(identities, attribute)

    reserved_by_port = {port: name for name, port in RESERVED_PORTS.items()}
    for identity in identities:
        port = identity.data_plane_port
        if not 1 <= port <= 65535:
            raise TopologyError(f"Data-plane port {port} of node {identity.hostname} is outside 1..65535")
        if port in reserved_by_port:
            raise TopologyError(
                f"Data-plane port {port} of node {identity.hostname} collides with the reserved "
                f"{reserved_by_port[port]} port"
            )

    _check_node_set("Service definition", [c.index for c in node_configs], spec.total_nodes)
    _check_node_set("Load balancer data-plane pool", lb_config.data_plane.node_indices(), spec.total_nodes)
    _check_node_set("Load balancer admin pool", lb_config.admin.node_indices(), spec.total_nodes)
    _check_node_set("Scrape config", scrape_config.node_indices(), spec.total_nodes)

    cookies = [backend.cookie for backend in lb_config.admin.backends]
    if len(set(cookies)) != len(cookies) or not all(cookies):
        raise TopologyError(f"Admin pool sticky cookies must be non-empty and distinct, got {cookies}")

    logger.info(
        f"Topology validated: {spec.total_nodes} nodes ({spec.core_nodes} core, "
        f"{spec.total_nodes - spec.core_nodes} replicant)"
    )
