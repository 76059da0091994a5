import pytest

from clustergen.config import GeneratorConfig, load_config
from clustergen.errors import ConfigurationError
from clustergen.internal.domain.models import LoadBalanceStrategy


def test_defaults():
    config = load_config({})

    assert config == GeneratorConfig()
    assert config.log_level == "notice"
    assert config.total_nodes == 10
    assert config.core_nodes == 3
    assert config.lb_strategy == LoadBalanceStrategy.ROUNDROBIN
    assert config.compose_argv() == ["docker", "compose"]


def test_values_from_environment():
    config = load_config({
        "LOG_LEVEL": "Debug",
        "NODES": "4",
        "CORE_NODES": "2",
        "LB_STRATEGY": "leastconn",
        "BASE_PORT": "20000",
        "OUTPUT_DIR": "/srv/cluster",
    })

    assert config.log_level == "debug"
    assert config.lb_strategy == LoadBalanceStrategy.LEASTCONN
    spec = config.cluster_spec()
    assert (spec.total_nodes, spec.core_nodes, spec.base_port) == (4, 2, 20000)
    assert config.cert_path == "/srv/cluster/certs"
    assert config.release_path == "/srv/cluster/_build/broker/rel/broker"


def test_blank_values_use_defaults():
    assert load_config({"NODES": "  "}).total_nodes == 10


@pytest.mark.parametrize("environ", [
    {"NODES": "ten"},
    {"CORE_NODES": "3.5"},
    {"LB_STRATEGY": "fastest"},
    {"LOG_LEVEL": "verbose"},
])
def test_invalid_values(environ):
    with pytest.raises(ConfigurationError):
        load_config(environ)


def test_zero_core_nodes_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        load_config({"CORE_NODES": "0"}).cluster_spec()
