# clustergen/errors.py
from typing import List, Optional


class GeneratorError(Exception):
    """Base class for every failure that aborts a generation run."""


class ConfigurationError(GeneratorError):
    """Invalid input parameters or an unusable release/build directory."""


class TopologyError(ConfigurationError):
    """The derived cluster topology is inconsistent (raised by the validator)."""


class ExternalToolError(GeneratorError):
    """An external process (openssl, the container CLI) failed or could not be started."""

    def __init__(self, command: List[str], returncode: int, stderr: Optional[str] = None):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        message = f"Command '{' '.join(self.command)}' failed with exit code {returncode}"
        if self.stderr:
            message = f"{message}: {self.stderr}"
        super().__init__(message)


class ArtifactWriteError(GeneratorError):
    """Generated files could not be written to the output directory."""
