import pytest

from clustergen.errors import TopologyError
from clustergen.internal.domain.models import ClusterSpec, Role
from clustergen.internal.topology.identity import resolve, resolve_all
from clustergen.internal.topology.roles import classify
from clustergen.internal.topology.seeds import build_seeds


def test_resolve_identity():
    spec = ClusterSpec(total_nodes=4, core_nodes=2, base_port=10000)
    identity = resolve(3, spec)

    assert identity.name == "n3"
    assert identity.hostname == "n3.local"
    assert identity.cluster_node_id == "node@n3.local"
    assert identity.data_plane_port == 10003
    assert identity.role == Role.REPLICANT


def test_resolve_is_deterministic():
    spec = ClusterSpec(total_nodes=5, core_nodes=3)
    assert resolve(2, spec) == resolve(2, spec)


@pytest.mark.parametrize("index", [0, 6, -1])
def test_resolve_rejects_index_outside_cluster(index):
    spec = ClusterSpec(total_nodes=5, core_nodes=3)
    with pytest.raises(TopologyError):
        resolve(index, spec)


@pytest.mark.parametrize("total,core", [(1, 1), (4, 2), (10, 3), (25, 25)])
def test_identities_are_unique(total, core):
    identities = resolve_all(ClusterSpec(total_nodes=total, core_nodes=core))

    assert [i.index for i in identities] == list(range(1, total + 1))
    for attribute in ("hostname", "cluster_node_id", "data_plane_port"):
        values = [getattr(i, attribute) for i in identities]
        assert len(set(values)) == total


def test_classify_boundary():
    spec = ClusterSpec(total_nodes=10, core_nodes=3)

    assert classify(1, spec) == Role.CORE
    assert classify(3, spec) == Role.CORE
    assert classify(4, spec) == Role.REPLICANT
    assert classify(10, spec) == Role.REPLICANT


def test_all_core_cluster_has_no_replicants():
    identities = resolve_all(ClusterSpec(total_nodes=3, core_nodes=3))
    assert all(i.role == Role.CORE for i in identities)


def test_seeds_are_core_nodes_in_index_order():
    seeds = build_seeds(ClusterSpec(total_nodes=10, core_nodes=3))

    assert seeds.members == ("node@n1.local", "node@n2.local", "node@n3.local")
    assert len(seeds) == 3
    assert seeds.joined() == "node@n1.local,node@n2.local,node@n3.local"


def test_seeds_are_stable_across_runs():
    spec = ClusterSpec(total_nodes=7, core_nodes=4)
    assert build_seeds(spec) == build_seeds(spec)


def test_seeds_are_not_clamped_to_total_nodes():
    seeds = build_seeds(ClusterSpec(total_nodes=3, core_nodes=5))
    assert len(seeds) == 5
