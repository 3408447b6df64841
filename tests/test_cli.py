import pytest

from dktop import __version__
from dktop.backend import BackendError
from dktop.cli import main
from dktop.config import ConfigManager


@pytest.fixture
def env(mocker):
    """Patch Docker, config and logging so no command touches the host."""
    backend_cls = mocker.patch("dktop.cli.DockerBackend")
    config_cls = mocker.patch("dktop.cli.ConfigManager")
    setup = mocker.patch("dktop.cli.setup_logging")
    return backend_cls, config_cls, setup


def test_version(capsys):
    assert main(["version"]) == 0
    assert capsys.readouterr().out.strip() == f"dktop version {__version__}"


def test_help(capsys):
    assert main(["help"]) == 0
    out = capsys.readouterr().out
    assert "Usage:" in out
    assert "Config:" in out


def test_unknown_command(capsys):
    assert main(["bogus"]) == 1
    out = capsys.readouterr().out
    assert "Unknown command: bogus" in out
    assert "Usage:" in out


def test_extra_arguments_are_rejected(capsys):
    assert main(["version", "--verbose"]) == 1
    assert "Unknown command: --verbose" in capsys.readouterr().out


@pytest.mark.parametrize("flag", ["-h", "--help"])
def test_flags_are_not_commands(capsys, flag):
    assert main([flag]) == 1
    assert f"Unknown command: {flag}" in capsys.readouterr().out


def test_run_starts_dashboard(env, mocker):
    backend_cls, config_cls, setup = env
    run = mocker.patch("dktop.app.run")

    assert main([]) == 0
    backend_cls.return_value.ping.assert_called_once()
    run.assert_called_once_with(backend_cls.return_value, config_cls.return_value)
    setup.assert_called_once()


def test_logging_follows_config(env, mocker, tmp_path):
    _, config_cls, setup = env
    config = ConfigManager(tmp_path / "config.yaml")
    config.config.logging.level = "debug"
    config.config.logging.file_path = str(tmp_path / "dktop.log")
    config_cls.return_value = config
    mocker.patch("dktop.app.run")

    assert main(["run"]) == 0
    level, path = setup.call_args.args[:2]
    assert level == "DEBUG"
    assert path == str(tmp_path / "dktop.log")


def test_run_without_docker(env, mocker, capsys):
    backend_cls, _, _ = env
    backend_cls.return_value.ping.side_effect = BackendError("connection refused")
    run = mocker.patch("dktop.app.run")

    assert main(["run"]) == 1
    run.assert_not_called()
    err = capsys.readouterr().err
    assert "Error connecting to Docker: connection refused" in err


def test_unwritable_log_file_is_a_warning(env, mocker, capsys):
    _, _, setup = env
    setup.side_effect = PermissionError("denied")
    mocker.patch("dktop.app.run")

    assert main(["run"]) == 0
    assert "could not open log file" in capsys.readouterr().err


def test_daemon_stops_on_interrupt(env, mocker, capsys):
    backend_cls, config_cls, _ = env
    daemon_cls = mocker.patch("dktop.daemon.AutostartDaemon")
    attach = mocker.patch("dktop.daemon.attach_console_handler")
    daemon_cls.return_value.run.side_effect = KeyboardInterrupt

    assert main(["daemon"]) == 0
    daemon_cls.assert_called_once_with(backend_cls.return_value, config_cls.return_value)
    daemon_cls.return_value.stop.assert_called_once()
    attach.assert_called_once()
    assert "Starting dktop daemon..." in capsys.readouterr().out


def test_daemon_without_docker(env, mocker):
    backend_cls, _, _ = env
    backend_cls.return_value.ping.side_effect = BackendError("no socket")
    daemon_cls = mocker.patch("dktop.daemon.AutostartDaemon")

    assert main(["daemon"]) == 1
    daemon_cls.assert_not_called()
