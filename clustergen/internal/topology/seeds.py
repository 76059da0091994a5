from ..domain.models import ClusterSpec, SeedList
from .identity import cluster_node_id


def build_seeds(spec: ClusterSpec) -> SeedList:
    """Static discovery seeds: core node ids in ascending index order.

    Built once per run and handed to every node, core or replicant. The order is
    stable because some brokers pick the first reachable seed as coordinator.
    """
    return SeedList(members=tuple(cluster_node_id(index) for index in range(1, spec.core_nodes + 1)))
