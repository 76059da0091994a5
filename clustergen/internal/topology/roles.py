from ..domain.models import ClusterSpec, Role


def classify(index: int, spec: ClusterSpec) -> Role:
    """Nodes 1..core_nodes are core members, the rest are replicants."""
    if index <= spec.core_nodes:
        return Role.CORE
    return Role.REPLICANT
