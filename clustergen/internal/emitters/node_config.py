import logging
from typing import Any, Dict, List

from ...constants import (
    BROKER_CERT_DIR,
    BROKER_ENV_PREFIX,
    DATA_PLANE_PORT,
    DB_BACKEND,
    DISCOVERY_STRATEGY,
    ENV_FILE,
    NETWORK_NAME,
    NODE_CERT,
    NODE_KEY,
    ROOT_CA_CERT,
)
from ..domain.models import ClusterSpec, GeneratedSecrets, NodeIdentity, PerNodeServiceConfig, Role, SeedList

logger = logging.getLogger(__name__)


def _env(key: str) -> str:
    return f"{BROKER_ENV_PREFIX}{key}"


def emit(
    identity: NodeIdentity,
    seeds: SeedList,
    spec: ClusterSpec,
    log_level: str,
    secrets: GeneratedSecrets,
) -> PerNodeServiceConfig:
    """Build the service fragment for one node.

    Every node gets the same template; only the role decides whether the
    replicant override is added, so promoting or demoting a node only takes a
    change of the core node count.

    Args:
        identity (NodeIdentity): The node being emitted.
        seeds (SeedList): The run's shared seed list.
        spec (ClusterSpec): The cluster being generated.
        log_level (str): Broker console log level.
        secrets (GeneratedSecrets): Secrets generated for this run.

    Returns:
        PerNodeServiceConfig: Structured service fragment, serialised later by the compose emitter.
    """
    environment = {
        _env("NODE__NAME"): identity.cluster_node_id,
        _env("LOG__CONSOLE__LEVEL"): log_level,
        _env("CLUSTER__DISCOVERY_STRATEGY"): DISCOVERY_STRATEGY,
        _env("CLUSTER__STATIC__SEEDS"): f"[{seeds.joined()}]",
        _env("NODE__DB_BACKEND"): DB_BACKEND,
        _env("DASHBOARD__DEFAULT_PASSWORD"): secrets.dashboard_password,
        _env("RPC__DRIVER"): "ssl",
        _env("RPC__CERTFILE"): f"{BROKER_CERT_DIR}/{NODE_CERT}",
        _env("RPC__KEYFILE"): f"{BROKER_CERT_DIR}/{NODE_KEY}",
        _env("RPC__CACERTFILE"): f"{BROKER_CERT_DIR}/{ROOT_CA_CERT}",
    }
    if identity.role == Role.REPLICANT:
        environment[_env("NODE__DB_ROLE")] = Role.REPLICANT.value

    logger.debug(f"Emitted {identity.role.value} node config for {identity.hostname}")
    return PerNodeServiceConfig(
        index=identity.index,
        service_name=identity.name,
        container_name=identity.hostname,
        hostname=identity.hostname,
        role=identity.role,
        ports=[f"{identity.data_plane_port}:{DATA_PLANE_PORT}"],
        aliases=[identity.hostname],
        environment=environment,
    )


def emit_all(
    identities: List[NodeIdentity],
    seeds: SeedList,
    spec: ClusterSpec,
    log_level: str,
    secrets: GeneratedSecrets,
) -> List[PerNodeServiceConfig]:
    return [emit(identity, seeds, spec, log_level, secrets) for identity in identities]


def to_service(node_config: PerNodeServiceConfig, image_tag: str) -> Dict[str, Any]:
    """Compose service block for a node."""
    return {
        'image': image_tag,
        'build': {'context': '.', 'dockerfile': 'Dockerfile'},
        'container_name': node_config.container_name,
        'hostname': node_config.hostname,
        'ports': list(node_config.ports),
        'env_file': [ENV_FILE],
        'environment': dict(node_config.environment),
        'networks': {NETWORK_NAME: {'aliases': list(node_config.aliases)}},
        'restart': 'unless-stopped',
    }
