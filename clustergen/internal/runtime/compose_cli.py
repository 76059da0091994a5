import logging
import subprocess
from typing import Callable, List, Sequence

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]


def build_command(compose_argv: Sequence[str], project: str, compose_file: str, args: Sequence[str]) -> List[str]:
    return list(compose_argv) + ["-p", project, "-f", compose_file] + list(args)


def run_compose(
    args: Sequence[str],
    compose_argv: Sequence[str],
    project: str,
    compose_file: str,
    runner: Runner = subprocess.run,
) -> int:
    """Forward args verbatim to the container orchestration CLI and wait for it.

    Output goes straight to the caller's terminal. No timeout is applied.

    Returns:
        int: The CLI's exit status, or 127 if it cannot be started.
    """
    command = build_command(compose_argv, project, compose_file, args)
    logger.info(f"Running: {' '.join(command)}")
    try:
        process = runner(command, shell=False, check=False)
    except FileNotFoundError:
        logger.error(f"Container CLI {compose_argv[0]!r} not found. Install it or set COMPOSE_COMMAND.")
        return 127

    if process.returncode != 0:
        logger.error(f"Container CLI exited with status {process.returncode}")
    return process.returncode
