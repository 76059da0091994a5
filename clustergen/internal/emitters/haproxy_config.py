"""HAProxy configuration for the cluster load balancer.

The structured LoadBalancerConfig is built first so the topology validator can
inspect the pools; render() turns it into haproxy.cfg text afterwards.
"""
import logging
from typing import List

from ...constants import (
    DASHBOARD_PORT,
    DATA_PLANE_PORT,
    LB_DASHBOARD_PORT,
    LB_DATA_PLANE_PORT,
    LB_STATS_PORT,
)
from ..domain.models import (
    Backend,
    ClusterSpec,
    Listener,
    LoadBalancerConfig,
    NodeIdentity,
    StatsEndpoint,
)

logger = logging.getLogger(__name__)

PERSISTENT_CONNECTION_TIMEOUT = "3h"
STICKY_COOKIE = "SRVNAME"

GLOBAL_TEMPLATE = """\
global
    log stdout format raw local0 info
    maxconn 100000

defaults
    log global
    option dontlognull
    timeout connect 5s
    timeout client 60s
    timeout server 60s
"""

STATS_TEMPLATE = """
frontend stats
    mode http
    bind *:{bind_port}
    stats enable
    stats uri {uri}
    stats refresh {refresh}
"""

LISTENER_TEMPLATE = """
listen {name}
    bind *:{bind_port}
    mode {mode}
    balance {balance}
{directives}{server_lines}"""

SERVER_TEMPLATE = "    server {name} {address}:{port} check"


def _backends(identities: List[NodeIdentity], port: int, sticky: bool) -> List[Backend]:
    return [
        Backend(
            index=identity.index,
            name=identity.name,
            address=identity.hostname,
            port=port,
            cookie=identity.name if sticky else "",
        )
        for identity in identities
    ]


def emit(identities: List[NodeIdentity], spec: ClusterSpec) -> LoadBalancerConfig:
    """Build the data-plane pool, the sticky admin pool and the stats endpoint over every node."""
    data_plane = Listener(
        name="mqtt",
        bind_port=LB_DATA_PLANE_PORT,
        mode="tcp",
        balance=spec.lb_strategy.value,
        options=["clitcpka", "srvtcpka", "tcplog"],
        timeouts={
            "client": PERSISTENT_CONNECTION_TIMEOUT,
            "server": PERSISTENT_CONNECTION_TIMEOUT,
        },
        backends=_backends(identities, DATA_PLANE_PORT, sticky=False),
    )
    admin = Listener(
        name="dashboard",
        bind_port=LB_DASHBOARD_PORT,
        mode="http",
        balance="roundrobin",
        options=["httplog"],
        cookie=f"{STICKY_COOKIE} insert indirect nocache",
        backends=_backends(identities, DASHBOARD_PORT, sticky=True),
    )
    stats = StatsEndpoint(bind_port=LB_STATS_PORT)
    logger.debug(
        f"Load balancer pools: {len(data_plane.backends)} data-plane, {len(admin.backends)} admin "
        f"backends, balance={data_plane.balance}"
    )
    return LoadBalancerConfig(data_plane=data_plane, admin=admin, stats=stats)


def _render_listener(listener: Listener) -> str:
    directives = [f"    option {option}" for option in listener.options]
    directives += [f"    timeout {name} {value}" for name, value in listener.timeouts.items()]
    if listener.cookie:
        directives.append(f"    cookie {listener.cookie}")

    server_lines = []
    for backend in listener.backends:
        line = SERVER_TEMPLATE.format(name=backend.name, address=backend.address, port=backend.port)
        if backend.cookie:
            line = f"{line} cookie {backend.cookie}"
        server_lines.append(line)

    return LISTENER_TEMPLATE.format(
        name=listener.name,
        bind_port=listener.bind_port,
        mode=listener.mode,
        balance=listener.balance,
        directives="".join(f"{d}\n" for d in directives),
        server_lines="".join(f"{s}\n" for s in server_lines),
    )


def render(config: LoadBalancerConfig) -> str:
    parts = [
        GLOBAL_TEMPLATE,
        STATS_TEMPLATE.format(
            bind_port=config.stats.bind_port,
            uri=config.stats.uri,
            refresh=config.stats.refresh,
        ),
        _render_listener(config.data_plane),
        _render_listener(config.admin),
    ]
    return "".join(parts)
