"""Container build recipe and build-context ignore list for the broker image."""
import logging
import os
import re

from dotenv import dotenv_values

from ...constants import (
    BROKER_CERT_DIR,
    BROKER_HOME,
    BROKER_START_COMMAND,
    DEFAULT_BASE_IMAGE,
    NODE_CERT,
    NODE_KEY,
    OS_RELEASE_PATH,
    ROOT_CA_CERT,
)
from ...errors import ConfigurationError

logger = logging.getLogger(__name__)

DOCKERIGNORE_PATTERNS = [
    ".git",
    "*.log",
    "_build/*/lib",
    "_build/*/plugins",
    "_build/*/rel/*/data",
    "_build/*/rel/*/log",
    "data/",
    "log/",
    "deps/",
    ".ci/",
]

# The root CA key stays on the build host.
IMAGE_CERT_FILES = (ROOT_CA_CERT, NODE_CERT, NODE_KEY)

DOCKERFILE_TEMPLATE = """\
FROM {base_image}

COPY {release_dir} {broker_home}
COPY {cert_files} {broker_cert_dir}/

WORKDIR {broker_home}
CMD [{command}]
"""

# os-release ID -> (image repository, number of VERSION_ID components kept, tag suffix)
BASE_IMAGE_MAP = {
    "ubuntu": ("ubuntu", 2, ""),
    "debian": ("debian", 1, "-slim"),
    "rocky": ("rockylinux", 1, ""),
    "almalinux": ("almalinux", 1, ""),
    "amzn": ("amazonlinux", 1, ""),
    "alpine": ("alpine", 2, ""),
}


def render_dockerignore() -> str:
    return "".join(f"{pattern}\n" for pattern in DOCKERIGNORE_PATTERNS)


def render_dockerfile(base_image: str, release_dir: str, cert_dir: str) -> str:
    """Build recipe copying the pre-built release, the CA certificate and the node key pair into the base image.

    Args:
        base_image (str): Image to build on, usually from detect_base_image().
        release_dir (str): Release directory relative to the build context.
        cert_dir (str): Certificate directory relative to the build context.
    """
    command = ", ".join(f'"{part}"' for part in BROKER_START_COMMAND)
    return DOCKERFILE_TEMPLATE.format(
        base_image=base_image,
        release_dir=release_dir,
        broker_home=BROKER_HOME,
        cert_files=" ".join(f"{cert_dir}/{name}" for name in IMAGE_CERT_FILES),
        broker_cert_dir=BROKER_CERT_DIR,
        command=command,
    )


def _context_relative(path: str, context_dir: str, what: str) -> str:
    relative = os.path.relpath(os.path.abspath(path), os.path.abspath(context_dir))
    if relative == os.pardir or relative.startswith(os.pardir + os.sep):
        raise ConfigurationError(
            f"{what} {path} is outside the build context {os.path.abspath(context_dir)}"
        )
    return relative.replace(os.sep, "/")


def resolve_release_dir(release_path: str, context_dir: str) -> str:
    """Check the pre-built release exists inside the build context and return its context-relative path.

    Raises:
        ConfigurationError: If the directory is missing or outside the build context.
    """
    if not os.path.isdir(release_path):
        raise ConfigurationError(
            f"Release directory {release_path} does not exist. Build the release first or set RELEASE_DIR."
        )
    return _context_relative(release_path, context_dir, "Release directory")


def resolve_cert_dir(cert_path: str, context_dir: str) -> str:
    return _context_relative(cert_path, context_dir, "Certificate directory")


def detect_base_image(os_release_path: str = OS_RELEASE_PATH) -> str:
    """Pick a base image matching the OS the release was built on.

    The mapping only avoids runtime library mismatches, so any failure to read
    or recognise the host OS falls back to DEFAULT_BASE_IMAGE.
    """
    if not os.path.isfile(os_release_path):
        logger.warning(f"{os_release_path} not found, using default base image {DEFAULT_BASE_IMAGE}")
        return DEFAULT_BASE_IMAGE

    try:
        release = dotenv_values(os_release_path)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read {os_release_path}: {e}. Using default base image {DEFAULT_BASE_IMAGE}")
        return DEFAULT_BASE_IMAGE

    os_id = (release.get("ID") or "").lower()
    version_id = release.get("VERSION_ID") or ""
    if os_id not in BASE_IMAGE_MAP or not re.match(r"^\d+(\.\d+)*$", version_id):
        logger.warning(
            f"No base image mapping for ID={os_id!r} VERSION_ID={version_id!r}, "
            f"using default base image {DEFAULT_BASE_IMAGE}"
        )
        return DEFAULT_BASE_IMAGE

    repository, components, suffix = BASE_IMAGE_MAP[os_id]
    tag = ".".join(version_id.split(".")[:components])
    base_image = f"{repository}:{tag}{suffix}"
    logger.info(f"Detected base image {base_image} from {os_release_path}")
    return base_image
