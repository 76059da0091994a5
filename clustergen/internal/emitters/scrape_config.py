import logging
from typing import List

import yaml

from ...constants import METRICS_PATH, METRICS_PORT, PROMETHEUS_PORT, SCRAPE_INTERVAL, SCRAPE_JOB_NAME
from ..domain.models import NodeIdentity, ScrapeConfig, ScrapeTarget

logger = logging.getLogger(__name__)


def emit(identities: List[NodeIdentity]) -> ScrapeConfig:
    """One Prometheus target per node on the metrics port, all under a single job."""
    targets = [
        ScrapeTarget(index=identity.index, address=f"{identity.hostname}:{METRICS_PORT}")
        for identity in identities
    ]
    return ScrapeConfig(
        job_name=SCRAPE_JOB_NAME,
        scrape_interval=SCRAPE_INTERVAL,
        evaluation_interval=SCRAPE_INTERVAL,
        metrics_path=METRICS_PATH,
        targets=targets,
    )


def render(config: ScrapeConfig) -> str:
    document = {
        'global': {
            'scrape_interval': config.scrape_interval,
            'evaluation_interval': config.evaluation_interval,
        },
        'scrape_configs': [
            {
                'job_name': config.job_name,
                'metrics_path': config.metrics_path,
                'static_configs': [
                    {'targets': [target.address for target in config.targets]},
                ],
            }
        ],
    }
    return yaml.safe_dump(document, default_flow_style=False, sort_keys=False)


def render_grafana_datasource() -> str:
    """Grafana provisioning file that points the dashboard service at Prometheus."""
    document = {
        'apiVersion': 1,
        'datasources': [
            {
                'name': 'Prometheus',
                'type': 'prometheus',
                'access': 'proxy',
                'url': f"http://prometheus:{PROMETHEUS_PORT}",
                'isDefault': True,
            }
        ],
    }
    return yaml.safe_dump(document, default_flow_style=False, sort_keys=False)
