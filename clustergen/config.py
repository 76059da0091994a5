# clustergen/config.py
import logging
import os
import shlex
from typing import List, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from .constants import BROKER_LOG_LEVELS
from .errors import ConfigurationError
from .internal.domain.models import ClusterSpec, LoadBalanceStrategy

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

DEFAULTS = {
    'LOG_LEVEL': 'notice',
    'NODES': '10',
    'CORE_NODES': '3',
    'LB_STRATEGY': 'roundrobin',
    'BASE_PORT': '10000',
    'OUTPUT_DIR': '.',
    'RELEASE_DIR': '_build/broker/rel/broker',
    'CERT_DIR': 'certs',
    'IMAGE_TAG': 'broker-cluster:latest',
    'COMPOSE_PROJECT': 'broker-cluster',
    'COMPOSE_COMMAND': 'docker compose',
    'GENERATOR_LOG_LEVEL': 'INFO',
}


class GeneratorConfig(BaseModel):
    """
    Explicit configuration for one generation run.

    Populated once by load_config() and passed to every component; nothing
    downstream reads the process environment.
    """
    model_config = ConfigDict(frozen=True)

    log_level: str = DEFAULTS['LOG_LEVEL']
    total_nodes: int = int(DEFAULTS['NODES'])
    core_nodes: int = int(DEFAULTS['CORE_NODES'])
    lb_strategy: LoadBalanceStrategy = LoadBalanceStrategy.ROUNDROBIN
    base_port: int = int(DEFAULTS['BASE_PORT'])
    output_dir: str = DEFAULTS['OUTPUT_DIR']
    release_dir: str = DEFAULTS['RELEASE_DIR']
    cert_dir: str = DEFAULTS['CERT_DIR']
    image_tag: str = DEFAULTS['IMAGE_TAG']
    compose_project: str = DEFAULTS['COMPOSE_PROJECT']
    compose_command: str = DEFAULTS['COMPOSE_COMMAND']
    generator_log_level: str = DEFAULTS['GENERATOR_LOG_LEVEL']

    def cluster_spec(self) -> ClusterSpec:
        try:
            return ClusterSpec(
                total_nodes=self.total_nodes,
                core_nodes=self.core_nodes,
                lb_strategy=self.lb_strategy,
                base_port=self.base_port,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid cluster parameters: {e}") from e

    def output_path(self, *parts: str) -> str:
        return os.path.join(self.output_dir, *parts)

    @property
    def cert_path(self) -> str:
        """Certificate directory; relative values live inside the output directory."""
        if os.path.isabs(self.cert_dir):
            return self.cert_dir
        return self.output_path(self.cert_dir)

    @property
    def release_path(self) -> str:
        if os.path.isabs(self.release_dir):
            return self.release_dir
        return self.output_path(self.release_dir)

    def compose_argv(self) -> List[str]:
        return shlex.split(self.compose_command)


def _get(environ: Mapping[str, str], key: str) -> str:
    value = environ.get(key)
    if value is None or value.strip() == '':
        return DEFAULTS[key]
    return value.strip()


def _get_int(environ: Mapping[str, str], key: str) -> int:
    raw = _get(environ, key)
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from None


def load_config(environ: Optional[Mapping[str, str]] = None) -> GeneratorConfig:
    """Build the GeneratorConfig from an environment-style mapping, applying defaults for unset keys.

    Args:
        environ (Mapping[str, str], optional): Source of the settings. Defaults to os.environ.

    Returns:
        GeneratorConfig: The resolved configuration.

    Raises:
        ConfigurationError: If a value cannot be parsed or is not one of the accepted tokens.
    """
    if environ is None:
        environ = os.environ

    log_level = _get(environ, 'LOG_LEVEL').lower()
    if log_level not in BROKER_LOG_LEVELS:
        raise ConfigurationError(
            f"Invalid LOG_LEVEL {log_level!r}. Must be one of {list(BROKER_LOG_LEVELS)}"
        )

    strategy_raw = _get(environ, 'LB_STRATEGY').lower()
    try:
        lb_strategy = LoadBalanceStrategy(strategy_raw)
    except ValueError:
        valid = [s.value for s in LoadBalanceStrategy]
        raise ConfigurationError(f"Invalid LB_STRATEGY {strategy_raw!r}. Must be one of {valid}") from None

    config = GeneratorConfig(
        log_level=log_level,
        total_nodes=_get_int(environ, 'NODES'),
        core_nodes=_get_int(environ, 'CORE_NODES'),
        lb_strategy=lb_strategy,
        base_port=_get_int(environ, 'BASE_PORT'),
        output_dir=_get(environ, 'OUTPUT_DIR'),
        release_dir=_get(environ, 'RELEASE_DIR'),
        cert_dir=_get(environ, 'CERT_DIR'),
        image_tag=_get(environ, 'IMAGE_TAG'),
        compose_project=_get(environ, 'COMPOSE_PROJECT'),
        compose_command=_get(environ, 'COMPOSE_COMMAND'),
        generator_log_level=_get(environ, 'GENERATOR_LOG_LEVEL').upper(),
    )
    logger.debug(f"Loaded generator configuration: {config}")
    return config


def configure_logging(level_name: str = DEFAULTS['GENERATOR_LOG_LEVEL']) -> int:
    """Configure root logging on stderr. Unknown level names fall back to INFO."""
    numeric_level = getattr(logging, level_name.upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    logging.getLogger().setLevel(numeric_level)
    return numeric_level
