"""
Tests for the command line interface.
"""
import pytest

from conftest import SUDO, FakeRunner, FakeSpawn, make_context
from ufwprofile.cli import EXIT_FAILURE, EXIT_OK, EXIT_USAGE, main
from ufwprofile.core.config import BACKTRACE_ENV_VAR

PROFILE_ARGS = [
    "App Name",
    "--title", "Title",
    "--description", "Description",
    "--port", "80",
    "--port", "81:82/tcp",
    "-p", "84/udp",
]


@pytest.fixture
def run_cli(test_settings, user_context, fake_runner):
    def _run(*argv, context=None, runner=None):
        return main(
            list(argv),
            settings=test_settings,
            context=context or user_context,
            runner=runner or fake_runner,
        )
    return _run


def test_render_prints_profile(run_cli, capsys, applications_dir):
    assert run_cli("render", *PROFILE_ARGS) == EXIT_OK

    out = capsys.readouterr().out
    assert out == (
        "[AppName]\n"
        "title=Title\n"
        "description=Description\n"
        "ports=80|81:82/tcp|84/udp\n"
    )
    assert list(applications_dir.iterdir()) == []


def test_render_bad_port_is_usage_error(run_cli, capsys):
    assert run_cli("render", "App", "--port", "eighty") == EXIT_USAGE
    assert "error: Bad port 'eighty'" in capsys.readouterr().err


def test_render_bad_protocol_is_usage_error(run_cli, capsys):
    assert run_cli("render", "App", "--port", "80/icmp") == EXIT_USAGE
    assert "Bad protocol 'icmp'" in capsys.readouterr().err


def test_strict_ranges_flag(run_cli):
    assert run_cli("--strict-ranges", "render", "App", "--port", "80") == EXIT_USAGE
    assert run_cli("--strict-ranges", "render", "App", "--port", "80:81") == EXIT_OK


def test_write_creates_file(run_cli, capsys, applications_dir):
    assert run_cli("write", *PROFILE_ARGS) == EXIT_OK

    path = applications_dir / "ufw-AppName"
    assert capsys.readouterr().out.strip() == str(path)
    assert path.read_text().startswith("[AppName]\n")


def test_applications_dir_override(run_cli, tmp_path):
    other = tmp_path / "other"
    other.mkdir()

    assert run_cli("--applications-dir", str(other), "write", "App", "-p", "22/tcp") == EXIT_OK
    assert (other / "ufw-App").exists()


def test_apply_allows_profile(run_cli, fake_runner, capsys):
    fake_runner.responses = [(0, b"Rule added", b"")]

    assert run_cli("apply", *PROFILE_ARGS) == EXIT_OK

    assert fake_runner.calls == [["ufw", "allow", "AppName"]]
    assert capsys.readouterr().out == "Rule added\n"


def test_apply_deny_with_sudo(run_cli, fake_runner):
    assert run_cli("apply", "App", "-p", "22/tcp", "--deny", "--sudo") == EXIT_OK
    assert fake_runner.calls == [[SUDO, "ufw", "deny", "App"]]


def test_apply_tool_missing_fails(run_cli, capsys):
    runner = FakeRunner(FileNotFoundError(2, "No such file or directory: 'ufw'"))

    assert run_cli("apply", "App", "-p", "22", runner=runner) == EXIT_FAILURE
    assert "error: invoke failed" in capsys.readouterr().err


def test_apply_escalate_as_user_reexecutes(run_cli, fake_runner):
    spawn = FakeSpawn(returncode=0)
    context = make_context(spawn=spawn, argv=["ufwprofile", "apply", "App", "--escalate"])

    assert run_cli("apply", "App", "-p", "22", "--escalate", context=context) == EXIT_OK

    assert spawn.commands[0][0] == SUDO
    assert spawn.commands[0][-3:] == ["apply", "App", "--escalate"]
    # the child does the work
    assert fake_runner.calls == []


def test_apply_escalate_relays_configured_env_prefixes(test_settings, fake_runner):
    settings = test_settings.model_copy(update={"ESCALATION_ENV_PREFIXES": ["APP_"]})
    spawn = FakeSpawn(returncode=0)
    context = make_context(
        spawn=spawn,
        environ={"APP_X": "1", "OTHER": "2"},
        argv=["ufwprofile", "apply", "App", "--escalate"],
    )

    code = main(
        ["apply", "App", "-p", "22", "--escalate"],
        settings=settings,
        context=context,
        runner=fake_runner,
    )

    assert code == EXIT_OK
    assert spawn.commands[0][:2] == [SUDO, "APP_X=1"]
    assert "OTHER=2" not in spawn.commands[0]


def test_apply_escalate_child_failure(run_cli):
    context = make_context(spawn=FakeSpawn(returncode=1))
    assert run_cli("apply", "App", "-p", "22", "--escalate", context=context) == EXIT_FAILURE


def test_apply_escalate_as_root_runs_directly(run_cli, root_context, fake_runner):
    assert run_cli("apply", "App", "-p", "22", "--escalate", context=root_context) == EXIT_OK
    assert fake_runner.calls == [["ufw", "allow", "App"]]


def test_check_reports_state(run_cli, capsys):
    assert run_cli("check") == EXIT_OK

    out = capsys.readouterr().out
    assert "running as: user" in out
    assert "writable: yes" in out


def test_check_without_ufw_fails(run_cli, capsys):
    runner = FakeRunner(FileNotFoundError(2, "No such file or directory: 'ufw'"))

    assert run_cli("check", runner=runner) == EXIT_FAILURE
    assert "writable: no" in capsys.readouterr().out


def test_backtrace_toggle_prints_traceback(run_cli, capsys, monkeypatch):
    monkeypatch.setenv(BACKTRACE_ENV_VAR, "1")

    assert run_cli("render", "App", "--port", "bad") == EXIT_USAGE
    assert "Traceback" in capsys.readouterr().err


def test_no_traceback_by_default(run_cli, capsys, monkeypatch):
    monkeypatch.delenv(BACKTRACE_ENV_VAR, raising=False)

    assert run_cli("render", "App", "--port", "bad") == EXIT_USAGE
    assert "Traceback" not in capsys.readouterr().err
