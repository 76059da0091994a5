"""End-to-end generation run.

Order of work: check the node counts, resolve identities and the shared seed list,
emit every artifact as structured data, validate the whole topology, render the
files in memory, make sure the certificate bundle exists, then write. Any failure
before the final step leaves the cluster definition files untouched.
"""
import logging
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from ..config import GeneratorConfig
from ..constants import (
    COMPOSE_FILE,
    DOCKERFILE,
    DOCKERIGNORE,
    ENV_FILE,
    GRAFANA_DATASOURCE_FILE,
    HAPROXY_CONF_FILE,
    OS_RELEASE_PATH,
    PROMETHEUS_CONF_FILE,
)
from .certs.provisioner import Runner, ensure_certificate
from .credentials import generate_secrets
from .domain.models import (
    CertificateBundle,
    ClusterSpec,
    GeneratedSecrets,
    LoadBalancerConfig,
    NodeIdentity,
    PerNodeServiceConfig,
    ScrapeConfig,
    SeedList,
)
from .emitters import build_context, compose, env_file, haproxy_config, node_config, scrape_config
from .emitters.compose import ServiceDefinition
from .storage.writer import write_artifacts
from .topology.identity import resolve_all
from .topology.seeds import build_seeds
from .topology.validator import validate, validate_spec

logger = logging.getLogger(__name__)


class ClusterArtifacts(BaseModel):
    """Structured artifacts of one run, before serialisation."""
    model_config = ConfigDict(frozen=True)

    spec: ClusterSpec
    identities: List[NodeIdentity]
    seeds: SeedList
    node_configs: List[PerNodeServiceConfig]
    lb_config: LoadBalancerConfig
    scrape_config: ScrapeConfig
    service_definition: ServiceDefinition
    secrets: GeneratedSecrets


class GenerationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    artifacts: ClusterArtifacts
    certificates: CertificateBundle
    files: Dict[str, str]
    written: List[str]

    @property
    def compose_yaml(self) -> str:
        return self.files[COMPOSE_FILE]


def build_artifacts(config: GeneratorConfig, secrets: Optional[GeneratedSecrets] = None) -> ClusterArtifacts:
    """Derive and validate every cluster artifact in memory. Nothing is written here.

    Raises:
        ConfigurationError: If the cluster parameters or the derived topology is invalid.
    """
    spec = config.cluster_spec()
    validate_spec(spec)

    identities = resolve_all(spec)
    seeds = build_seeds(spec)
    if secrets is None:
        secrets = generate_secrets()

    node_configs = node_config.emit_all(identities, seeds, spec, config.log_level, secrets)
    lb_config = haproxy_config.emit(identities, spec)
    scrapes = scrape_config.emit(identities)

    validate(spec, identities, node_configs, lb_config, scrapes)

    definition = compose.build_service_definition(node_configs, lb_config, secrets, config.image_tag)
    return ClusterArtifacts(
        spec=spec,
        identities=identities,
        seeds=seeds,
        node_configs=node_configs,
        lb_config=lb_config,
        scrape_config=scrapes,
        service_definition=definition,
        secrets=secrets,
    )


def render_files(
    artifacts: ClusterArtifacts,
    base_image: str,
    release_dir: str,
    cert_dir: str,
    environ: Mapping[str, str],
) -> Dict[str, str]:
    return {
        COMPOSE_FILE: compose.render(artifacts.service_definition),
        HAPROXY_CONF_FILE: haproxy_config.render(artifacts.lb_config),
        PROMETHEUS_CONF_FILE: scrape_config.render(artifacts.scrape_config),
        GRAFANA_DATASOURCE_FILE: scrape_config.render_grafana_datasource(),
        DOCKERFILE: build_context.render_dockerfile(base_image, release_dir, cert_dir),
        DOCKERIGNORE: build_context.render_dockerignore(),
        ENV_FILE: env_file.render(env_file.extract_broker_env(environ)),
    }


def generate(
    config: GeneratorConfig,
    environ: Mapping[str, str],
    runner: Optional[Runner] = None,
    os_release_path: str = OS_RELEASE_PATH,
) -> GenerationResult:
    """Run a full generation into config.output_dir.

    Args:
        config (GeneratorConfig): Resolved configuration.
        environ (Mapping[str, str]): Environment the broker env file is extracted from.
        runner (callable, optional): subprocess.run replacement for the certificate step.
        os_release_path (str, optional): os-release file used for base image detection.

    Returns:
        GenerationResult: The artifacts, certificate bundle and written files.

    Raises:
        ConfigurationError: Invalid configuration or topology; no file is written.
        ExternalToolError: Certificate creation failed; no cluster definition file is written.
        ArtifactWriteError: A file could not be staged; the previous files stay in place.
    """
    logger.info(
        f"Generating cluster: nodes={config.total_nodes} core={config.core_nodes} "
        f"strategy={config.lb_strategy.value} output={config.output_dir}"
    )
    artifacts = build_artifacts(config)

    release_dir = build_context.resolve_release_dir(config.release_path, config.output_dir)
    cert_dir = build_context.resolve_cert_dir(config.cert_path, config.output_dir)
    base_image = build_context.detect_base_image(os_release_path)

    files = render_files(artifacts, base_image, release_dir, cert_dir, environ)

    if runner is None:
        certificates = ensure_certificate(config.cert_path)
    else:
        certificates = ensure_certificate(config.cert_path, runner=runner)

    written = write_artifacts(config.output_dir, files)
    logger.info(f"Generated {len(written)} files for a {artifacts.spec.total_nodes}-node cluster")
    return GenerationResult(artifacts=artifacts, certificates=certificates, files=files, written=written)
