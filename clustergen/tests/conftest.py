import os
import subprocess

import pytest

from clustergen.config import load_config


class FakeOpenSSL:
    """Stands in for subprocess.run: records calls and writes the files openssl would produce."""

    def __init__(self, fail_on=None, returncode=1):
        self.calls = []
        self.fail_on = fail_on
        self.returncode = returncode

    def __call__(self, command, **kwargs):
        self.calls.append(command)
        if self.fail_on and self.fail_on in command:
            return subprocess.CompletedProcess(command, self.returncode, "", "unable to load key")
        cwd = kwargs.get('cwd') or '.'
        for flag in ('-out', '-keyout'):
            if flag in command:
                name = command[command.index(flag) + 1]
                with open(os.path.join(cwd, name), 'w') as f:
                    f.write(f"generated {name}\n")
        return subprocess.CompletedProcess(command, 0, "", "")


@pytest.fixture
def fake_openssl():
    return FakeOpenSSL()


@pytest.fixture
def output_dir(tmp_path):
    os.makedirs(tmp_path / "_build" / "broker" / "rel" / "broker" / "bin")
    return tmp_path


@pytest.fixture
def os_release(tmp_path):
    path = tmp_path / "os-release"
    path.write_text('NAME="Ubuntu"\nID=ubuntu\nVERSION_ID="22.04"\n')
    return str(path)


@pytest.fixture
def make_config(output_dir):
    def _make(**overrides):
        environ = {'OUTPUT_DIR': str(output_dir)}
        environ.update({key: str(value) for key, value in overrides.items()})
        return load_config(environ)
    return _make
