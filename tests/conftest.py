"""
Pytest configuration and fixtures.

No test touches the real /etc/ufw, runs ufw or spawns sudo: the service gets a
temporary applications directory, a recording fake runner and a fake
privilege context.
"""
import logging
import subprocess
import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch

from ufwprofile.api.v1.endpoints.profiles import get_ufw_service
from ufwprofile.core.config import Settings
from ufwprofile.main import app
from ufwprofile.services.ufw_service import UfwService
from ufwprofile.utils.rootcheck import PrivilegeContext

SUDO = "/usr/bin/sudo"


class FakeRunner:
    """
    Stand-in for subprocess.run.

    Each queued response is either an exception to raise or a
    (returncode, stdout, stderr) tuple. With nothing queued, calls succeed
    with empty output.
    """

    def __init__(self, *responses):
        self.calls = []
        self.responses = list(responses)

    def __call__(self, args, **kwargs):
        self.calls.append(list(args))
        response = self.responses.pop(0) if self.responses else (0, b"", b"")
        if isinstance(response, BaseException):
            raise response
        code, out, err = response
        return subprocess.CompletedProcess(args, code, out, err)


class FakeSpawn:
    """Stand-in for the elevation helper; records commands, returns a fixed code."""

    def __init__(self, returncode=0, error=None):
        self.commands = []
        self.returncode = returncode
        self.error = error

    def __call__(self, command):
        self.commands.append(list(command))
        if self.error is not None:
            raise self.error
        return self.returncode


def make_context(uid=1000, euid=1000, spawn=None, argv=None, environ=None, setuid=None):
    """Build a PrivilegeContext with fake identity primitives."""
    return PrivilegeContext(
        sudo_binary=SUDO,
        getuid=lambda: uid,
        geteuid=lambda: euid,
        setuid=setuid or (lambda value: None),
        spawn=spawn or FakeSpawn(),
        argv=argv if argv is not None else ["ufwprofile", "apply", "MyApp"],
        environ=environ if environ is not None else {},
        executable="/usr/bin/python3",
    )


@pytest.fixture
def applications_dir(tmp_path):
    """Temporary stand-in for /etc/ufw/applications.d."""
    directory = tmp_path / "applications.d"
    directory.mkdir()
    return directory


@pytest.fixture
def test_settings(applications_dir):
    """Settings pointing at the temporary applications directory."""
    return Settings(
        _env_file=None,
        APPLICATIONS_DIR=str(applications_dir),
        UFW_BINARY="ufw",
        SUDO_BINARY=SUDO,
        API_KEY=None,
    )


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def user_context():
    """Context of an unprivileged user."""
    return make_context(uid=1000, euid=1000)


@pytest.fixture
def root_context():
    return make_context(uid=0, euid=0)


@pytest.fixture
def service(test_settings, user_context, fake_runner):
    return UfwService(settings=test_settings, context=user_context, runner=fake_runner)


@pytest.fixture(scope="function", autouse=True)
def disable_api_key():
    """Disable API key authentication for all tests."""
    with patch("ufwprofile.core.config.settings.API_KEY", None):
        yield


@pytest.fixture(scope="function")
def client(service):
    """
    Create a test client whose profile endpoints use the fake service.
    """
    app.dependency_overrides[get_ufw_service] = lambda: service

    yield TestClient(app)

    # Clean up: clear dependency overrides after test
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client_with_auth(service):
    """
    Create a test client with API key authentication enabled.

    Sets API_KEY="test-key" for testing authentication.
    """
    app.dependency_overrides[get_ufw_service] = lambda: service

    with patch("ufwprofile.core.config.settings.API_KEY", "test-key"):
        yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def restore_root_logging():
    """The CLI reconfigures the root logger; put the original handlers back."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
