import base64
import logging
import secrets

from .domain.models import GeneratedSecrets

logger = logging.getLogger(__name__)

TOKEN_BYTES = 16


def _token() -> str:
    return base64.b64encode(secrets.token_bytes(TOKEN_BYTES)).decode("ascii")


def generate_secrets() -> GeneratedSecrets:
    """Fresh monitoring and dashboard passwords.

    They are not persisted on their own: every run rotates them and the newly
    written files become the only valid source of credentials.
    """
    generated = GeneratedSecrets(monitoring_password=_token(), dashboard_password=_token())
    logger.warning(
        "Generated new monitoring and dashboard passwords; credentials from previous runs are no longer valid"
    )
    return generated
