import re
from typing import Dict, Mapping

from ...constants import BROKER_ENV_PREFIX
from ...errors import ConfigurationError

CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def extract_broker_env(environ: Mapping[str, str], prefix: str = BROKER_ENV_PREFIX) -> Dict[str, str]:
    """Only the variables carrying the broker configuration prefix, sorted by name."""
    return {key: environ[key] for key in sorted(environ) if key.startswith(prefix)}


def quote(value: str) -> str:
    """Single-quote a value the way python-dotenv writes it, escaping backslashes and quotes."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def render(variables: Mapping[str, str]) -> str:
    """KEY='value' lines. Values are quoted so '#', quotes and '$' stay literal.

    Raises:
        ConfigurationError: If a value holds a newline or another control character,
            which would split it into several entries.
    """
    lines = []
    for key, value in variables.items():
        if CONTROL_CHARS.search(value):
            raise ConfigurationError(f"Environment variable {key} contains a control character")
        lines.append(f"{key}={quote(value)}\n")
    return "".join(lines)
