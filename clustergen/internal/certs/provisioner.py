"""Create-if-absent TLS bundle for the cluster backplane.

The idempotency key is the existence of the leaf certificate (node.pem): when it
is present the directory is left untouched, otherwise the whole chain is
generated with the openssl CLI.
"""
import logging
import os
import subprocess
from typing import Callable, List

from ...constants import (
    BACKPLANE_HOSTNAME,
    NODE_CERT,
    NODE_CSR,
    NODE_KEY,
    ROOT_CA_CERT,
    ROOT_CA_KEY,
)
from ...errors import ExternalToolError
from ..domain.models import CertificateBundle

logger = logging.getLogger(__name__)

OPENSSL = "openssl"
KEY_BITS = 2048
VALIDITY_DAYS = 3650
ROOT_SUBJECT = "/CN=broker-cluster-root-ca"
NODE_EXTFILE = "node.ext"

Runner = Callable[..., subprocess.CompletedProcess]


def leaf_certificate_path(directory: str) -> str:
    return os.path.join(directory, NODE_CERT)


def _bundle(directory: str, created: bool) -> CertificateBundle:
    return CertificateBundle(
        directory=directory,
        root_ca_key=os.path.join(directory, ROOT_CA_KEY),
        root_ca_cert=os.path.join(directory, ROOT_CA_CERT),
        node_key=os.path.join(directory, NODE_KEY),
        node_cert=leaf_certificate_path(directory),
        created=created,
    )


def _run_openssl(args: List[str], directory: str, runner: Runner) -> None:
    command = [OPENSSL] + args
    logger.info(f"Running: {' '.join(command)}")
    try:
        process = runner(command, shell=False, check=False, capture_output=True, text=True, cwd=directory)
    except FileNotFoundError:
        logger.error(f"{OPENSSL} command not found. Install OpenSSL or provide the certificate bundle in {directory}.")
        raise ExternalToolError(command, 127, f"{OPENSSL}: command not found") from None

    if process.returncode != 0:
        logger.error(f"{OPENSSL} failed. STDOUT: {(process.stdout or '').strip()}, STDERR: {(process.stderr or '').strip()}")
        raise ExternalToolError(command, process.returncode, process.stderr)


def ensure_certificate(directory: str, runner: Runner = subprocess.run) -> CertificateBundle:
    """Return the certificate bundle in directory, creating it if the leaf certificate is missing.

    Args:
        directory (str): Bundle location; created if needed.
        runner (callable, optional): subprocess.run-compatible callable used to invoke openssl.

    Returns:
        CertificateBundle: Paths of the root CA key/cert and node key/cert.

    Raises:
        ExternalToolError: If openssl is missing or any step exits non-zero.
    """
    if os.path.exists(leaf_certificate_path(directory)):
        logger.info(f"Reusing existing certificate bundle in {directory}")
        return _bundle(directory, created=False)

    if not os.path.exists(directory):
        logger.info(f"Creating certificate directory: {directory}")
        os.makedirs(directory, exist_ok=True)

    with open(os.path.join(directory, NODE_EXTFILE), 'w') as f:
        f.write(f"subjectAltName=DNS:{BACKPLANE_HOSTNAME}\n")

    _run_openssl(
        ["req", "-x509", "-new", "-nodes", "-newkey", f"rsa:{KEY_BITS}",
         "-keyout", ROOT_CA_KEY, "-out", ROOT_CA_CERT,
         "-days", str(VALIDITY_DAYS), "-subj", ROOT_SUBJECT],
        directory, runner,
    )
    _run_openssl(["genrsa", "-out", NODE_KEY, str(KEY_BITS)], directory, runner)
    _run_openssl(
        ["req", "-new", "-key", NODE_KEY, "-out", NODE_CSR,
         "-subj", f"/CN={BACKPLANE_HOSTNAME}",
         "-addext", f"subjectAltName=DNS:{BACKPLANE_HOSTNAME}"],
        directory, runner,
    )
    _run_openssl(
        ["x509", "-req", "-in", NODE_CSR, "-CA", ROOT_CA_CERT, "-CAkey", ROOT_CA_KEY,
         "-CAcreateserial", "-out", NODE_CERT, "-days", str(VALIDITY_DAYS),
         "-extfile", NODE_EXTFILE],
        directory, runner,
    )

    logger.info(f"Created certificate bundle in {directory} (SAN DNS:{BACKPLANE_HOSTNAME})")
    return _bundle(directory, created=True)
