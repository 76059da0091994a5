import os

import pytest

from clustergen.errors import ExternalToolError
from clustergen.internal.certs.provisioner import ensure_certificate

from .conftest import FakeOpenSSL


def test_creates_bundle_when_leaf_missing(tmp_path, fake_openssl):
    directory = str(tmp_path / "certs")
    bundle = ensure_certificate(directory, runner=fake_openssl)

    assert bundle.created
    for path in (bundle.root_ca_key, bundle.root_ca_cert, bundle.node_key, bundle.node_cert):
        assert os.path.exists(path)
    assert all(call[0] == "openssl" for call in fake_openssl.calls)
    csr_call = fake_openssl.calls[2]
    assert "subjectAltName=DNS:backplane" in csr_call
    with open(os.path.join(directory, "node.ext")) as f:
        assert f.read() == "subjectAltName=DNS:backplane\n"


def test_existing_leaf_certificate_is_reused(tmp_path, fake_openssl):
    directory = tmp_path / "certs"
    directory.mkdir()
    (directory / "node.pem").write_bytes(b"existing leaf")

    bundle = ensure_certificate(str(directory), runner=fake_openssl)

    assert not bundle.created
    assert fake_openssl.calls == []
    assert (directory / "node.pem").read_bytes() == b"existing leaf"


def test_openssl_failure_is_fatal(tmp_path):
    runner = FakeOpenSSL(fail_on="genrsa", returncode=3)

    with pytest.raises(ExternalToolError) as excinfo:
        ensure_certificate(str(tmp_path / "certs"), runner=runner)

    assert excinfo.value.returncode == 3
    assert "unable to load key" in str(excinfo.value)
    assert not (tmp_path / "certs" / "node.pem").exists()


def test_missing_openssl_binary(tmp_path):
    def runner(command, **kwargs):
        raise FileNotFoundError(command[0])

    with pytest.raises(ExternalToolError) as excinfo:
        ensure_certificate(str(tmp_path / "certs"), runner=runner)
    assert excinfo.value.returncode == 127
