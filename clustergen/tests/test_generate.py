import os
import subprocess

import pytest
import yaml

from clustergen.cmd import generate as generate_cmd
from clustergen.constants import COMPOSE_FILE
from clustergen.errors import ArtifactWriteError, ConfigurationError, ExternalToolError
from clustergen.internal.domain.models import Role
from clustergen.internal.pipeline import generate
from clustergen.internal.runtime.compose_cli import run_compose

from .conftest import FakeOpenSSL

GENERATED = [
    "docker-compose.yml",
    "haproxy.cfg",
    "prometheus.yml",
    "grafana-datasource.yml",
    "Dockerfile",
    ".dockerignore",
    "broker.env",
]


def test_four_node_cluster(make_config, output_dir, fake_openssl, os_release):
    config = make_config(NODES=4, CORE_NODES=2)
    environ = {"BROKER_LISTENERS__SSL__DEFAULT__ENABLE": "false", "HOME": "/root"}

    result = generate(config, environ, runner=fake_openssl, os_release_path=os_release)
    artifacts = result.artifacts

    assert [(i.hostname, i.role) for i in artifacts.identities] == [
        ("n1.local", Role.CORE),
        ("n2.local", Role.CORE),
        ("n3.local", Role.REPLICANT),
        ("n4.local", Role.REPLICANT),
    ]
    assert artifacts.seeds.members == ("node@n1.local", "node@n2.local")
    assert len(artifacts.lb_config.data_plane.backends) == 4
    assert len({b.cookie for b in artifacts.lb_config.admin.backends}) == 4
    assert len(artifacts.scrape_config.targets) == 4

    for name in GENERATED:
        assert (output_dir / name).exists(), name
    compose_doc = yaml.safe_load((output_dir / "docker-compose.yml").read_text())
    assert compose_doc == yaml.safe_load(result.compose_yaml)
    assert (output_dir / "broker.env").read_text() == "BROKER_LISTENERS__SSL__DEFAULT__ENABLE='false'\n"
    dockerfile = (output_dir / "Dockerfile").read_text()
    assert dockerfile.startswith("FROM ubuntu:22.04\n")
    assert "COPY _build/broker/rel/broker /opt/broker\n" in dockerfile
    assert result.certificates.created


def test_invalid_spec_writes_nothing(make_config, output_dir, fake_openssl, os_release):
    config = make_config(NODES=3, CORE_NODES=5)

    with pytest.raises(ConfigurationError):
        generate(config, {}, runner=fake_openssl, os_release_path=os_release)

    assert fake_openssl.calls == []
    for name in GENERATED:
        assert not (output_dir / name).exists()
    assert not (output_dir / "certs").exists()


def test_missing_release_dir_writes_nothing(make_config, output_dir, fake_openssl, os_release):
    config = make_config(RELEASE_DIR="_build/other/rel/other")

    with pytest.raises(ConfigurationError, match="RELEASE_DIR"):
        generate(config, {}, runner=fake_openssl, os_release_path=os_release)
    assert not (output_dir / COMPOSE_FILE).exists()


def test_certificate_failure_leaves_cluster_files_untouched(make_config, output_dir, os_release):
    (output_dir / COMPOSE_FILE).write_text("previous run\n")
    config = make_config(NODES=2, CORE_NODES=1)

    with pytest.raises(ExternalToolError):
        generate(config, {}, runner=FakeOpenSSL(fail_on="x509"), os_release_path=os_release)

    assert (output_dir / COMPOSE_FILE).read_text() == "previous run\n"


def test_write_failure_leaves_cluster_files_untouched(make_config, output_dir, fake_openssl, os_release):
    (output_dir / COMPOSE_FILE).write_text("previous run\n")
    (output_dir / "Dockerfile").mkdir()
    config = make_config(NODES=2, CORE_NODES=1)

    with pytest.raises(ArtifactWriteError):
        generate(config, {}, runner=fake_openssl, os_release_path=os_release)

    assert (output_dir / COMPOSE_FILE).read_text() == "previous run\n"
    assert not (output_dir / "haproxy.cfg").exists()
    assert list(output_dir.glob("*.tmp")) == []


def test_rerun_keeps_certificates_and_regenerates_the_rest(make_config, output_dir, fake_openssl, os_release):
    config = make_config(NODES=3, CORE_NODES=3)
    first = generate(config, {}, runner=fake_openssl, os_release_path=os_release)
    cert_files = ["ca.key", "ca.pem", "node.key", "node.pem"]
    before = {name: (output_dir / "certs" / name).read_bytes() for name in cert_files}
    calls_after_first_run = len(fake_openssl.calls)

    second = generate(config, {}, runner=fake_openssl, os_release_path=os_release)

    assert not second.certificates.created
    assert len(fake_openssl.calls) == calls_after_first_run
    assert {name: (output_dir / "certs" / name).read_bytes() for name in cert_files} == before
    # secrets rotate on every run
    assert first.artifacts.secrets != second.artifacts.secrets
    # topology does not
    assert first.files["haproxy.cfg"] == second.files["haproxy.cfg"]
    assert first.files["prometheus.yml"] == second.files["prometheus.yml"]


def test_run_compose_forwards_arguments_verbatim():
    calls = []

    def runner(command, **kwargs):
        calls.append(command)
        return subprocess.CompletedProcess(command, 4)

    status = run_compose(["up", "-d"], ["docker", "compose"], "demo", "/tmp/docker-compose.yml", runner=runner)

    assert status == 4
    assert calls == [["docker", "compose", "-p", "demo", "-f", "/tmp/docker-compose.yml", "up", "-d"]]


def test_run_compose_missing_binary():
    def runner(command, **kwargs):
        raise FileNotFoundError(command[0])

    assert run_compose(["ps"], ["podman-compose"], "demo", "compose.yml", runner=runner) == 127


@pytest.fixture
def cli_environ(output_dir, monkeypatch, fake_openssl, os_release):
    real_generate = generate_cmd.generate

    def fake_generate(config, environ):
        return real_generate(config, environ, runner=fake_openssl, os_release_path=os_release)

    monkeypatch.setattr(generate_cmd, "generate", fake_generate)
    return {"OUTPUT_DIR": str(output_dir), "NODES": "4", "CORE_NODES": "2"}


def test_cli_without_arguments_prints_compose(cli_environ, capsys):
    assert generate_cmd.main([], environ=cli_environ) == 0

    document = yaml.safe_load(capsys.readouterr().out)
    assert list(document["services"]) == ["n1", "n2", "n3", "n4", "haproxy", "prometheus", "grafana"]


def test_cli_forwards_arguments(cli_environ, monkeypatch, output_dir):
    forwarded = {}

    def fake_run_compose(args, compose_argv, project, compose_file):
        forwarded.update(args=args, compose_argv=compose_argv, project=project, compose_file=compose_file)
        return 2

    monkeypatch.setattr(generate_cmd, "run_compose", fake_run_compose)

    assert generate_cmd.main(["up", "-d", "--build"], environ=cli_environ) == 2
    assert forwarded == {
        "args": ["up", "-d", "--build"],
        "compose_argv": ["docker", "compose"],
        "project": "broker-cluster",
        "compose_file": os.path.join(str(output_dir), "docker-compose.yml"),
    }


def test_cli_rejects_invalid_topology(cli_environ, output_dir, capsys):
    cli_environ.update(NODES="3", CORE_NODES="5")

    assert generate_cmd.main([], environ=cli_environ) == 1
    assert capsys.readouterr().out == ""
    assert not (output_dir / COMPOSE_FILE).exists()


def test_cli_returns_certificate_tool_exit_code(cli_environ, monkeypatch, output_dir, os_release, capsys):
    failing_openssl = FakeOpenSSL(fail_on="genrsa", returncode=3)

    def failing_generate(config, environ):
        return generate(config, environ, runner=failing_openssl, os_release_path=os_release)

    monkeypatch.setattr(generate_cmd, "generate", failing_generate)

    assert generate_cmd.main([], environ=cli_environ) == 3
    assert capsys.readouterr().out == ""
    assert not (output_dir / COMPOSE_FILE).exists()


def test_cli_reports_write_failure(cli_environ, output_dir, capsys):
    (output_dir / "prometheus.yml").mkdir()

    assert generate_cmd.main([], environ=cli_environ) == 1
    assert capsys.readouterr().out == ""
