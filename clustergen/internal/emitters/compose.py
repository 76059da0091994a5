import logging
from typing import Any, Dict, List

import yaml
from pydantic import BaseModel, ConfigDict

from ...constants import (
    GRAFANA_DATASOURCE_FILE,
    GRAFANA_IMAGE,
    GRAFANA_PORT,
    HAPROXY_CONF_FILE,
    HAPROXY_IMAGE,
    NETWORK_NAME,
    PROMETHEUS_CONF_FILE,
    PROMETHEUS_IMAGE,
    PROMETHEUS_PORT,
)
from ..domain.models import GeneratedSecrets, LoadBalancerConfig, PerNodeServiceConfig
from . import node_config

logger = logging.getLogger(__name__)


class ServiceDefinition(BaseModel):
    """The compose document: one service per node plus load balancer and monitoring."""
    model_config = ConfigDict(frozen=True)

    services: Dict[str, Dict[str, Any]]
    networks: Dict[str, Dict[str, Any]]

    def to_document(self) -> Dict[str, Any]:
        return {'services': self.services, 'networks': self.networks}


def build_service_definition(
    node_configs: List[PerNodeServiceConfig],
    lb_config: LoadBalancerConfig,
    secrets: GeneratedSecrets,
    image_tag: str,
) -> ServiceDefinition:
    services: Dict[str, Dict[str, Any]] = {}
    for config in node_configs:
        services[config.service_name] = node_config.to_service(config, image_tag)
    node_services = [config.service_name for config in node_configs]

    lb_ports = [lb_config.data_plane.bind_port, lb_config.admin.bind_port, lb_config.stats.bind_port]
    services['haproxy'] = {
        'image': HAPROXY_IMAGE,
        'container_name': 'haproxy',
        'hostname': 'haproxy',
        'volumes': [f"./{HAPROXY_CONF_FILE}:/usr/local/etc/haproxy/haproxy.cfg:ro"],
        'ports': [f"{port}:{port}" for port in lb_ports],
        'networks': [NETWORK_NAME],
        'depends_on': list(node_services),
        'restart': 'unless-stopped',
    }
    services['prometheus'] = {
        'image': PROMETHEUS_IMAGE,
        'container_name': 'prometheus',
        'hostname': 'prometheus',
        'volumes': [f"./{PROMETHEUS_CONF_FILE}:/etc/prometheus/prometheus.yml:ro"],
        'ports': [f"{PROMETHEUS_PORT}:{PROMETHEUS_PORT}"],
        'networks': [NETWORK_NAME],
        'depends_on': list(node_services),
        'restart': 'unless-stopped',
    }
    services['grafana'] = {
        'image': GRAFANA_IMAGE,
        'container_name': 'grafana',
        'hostname': 'grafana',
        'environment': {
            'GF_SECURITY_ADMIN_USER': 'admin',
            'GF_SECURITY_ADMIN_PASSWORD': secrets.monitoring_password,
        },
        'volumes': [
            f"./{GRAFANA_DATASOURCE_FILE}:/etc/grafana/provisioning/datasources/datasource.yml:ro"
        ],
        'ports': [f"{GRAFANA_PORT}:{GRAFANA_PORT}"],
        'networks': [NETWORK_NAME],
        'depends_on': ['prometheus'],
        'restart': 'unless-stopped',
    }

    logger.debug(f"Service definition has {len(services)} services ({len(node_services)} broker nodes)")
    return ServiceDefinition(
        services=services,
        networks={NETWORK_NAME: {'driver': 'bridge'}},
    )


def render(definition: ServiceDefinition) -> str:
    return yaml.safe_dump(definition.to_document(), default_flow_style=False, sort_keys=False)
