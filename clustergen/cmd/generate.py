"""clustergen command line entry point.

    clustergen                 generate the cluster files and print the compose definition
    clustergen up -d           generate, then run `docker compose -p <project> -f <file> up -d`

Configuration comes from the environment (and a local .env file); see
clustergen.config for the keys and their defaults.
"""
import logging
import os
import sys
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from clustergen.config import configure_logging, load_config
from clustergen.constants import COMPOSE_FILE
from clustergen.errors import ExternalToolError, GeneratorError
from clustergen.internal.pipeline import generate
from clustergen.internal.runtime.compose_cli import run_compose

logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None, environ: Optional[Mapping[str, str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    if environ is None:
        load_dotenv()
        environ = os.environ

    configure_logging(environ.get('GENERATOR_LOG_LEVEL') or 'INFO')

    try:
        config = load_config(environ)
        configure_logging(config.generator_log_level)
        result = generate(config, environ)
    except ExternalToolError as e:
        logger.error(f"Generation aborted: {e}")
        return e.returncode or 1
    except GeneratorError as e:
        logger.error(f"Generation aborted: {e}")
        return 1

    if not argv:
        sys.stdout.write(result.compose_yaml)
        sys.stdout.flush()
        return 0

    return run_compose(
        argv,
        compose_argv=config.compose_argv(),
        project=config.compose_project,
        compose_file=config.output_path(COMPOSE_FILE),
    )


if __name__ == '__main__':
    sys.exit(main())
