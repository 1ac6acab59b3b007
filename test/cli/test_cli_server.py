import os
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from jetty_server_manager.__main__ import cli
from jetty_server_manager.config.server_config import load_server_model, save_server_model
from jetty_server_manager.core.models import ExecutableResult
from jetty_server_manager.error import ServerNotRunningError
from jetty_server_manager.instances import get_settings_instance


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def mock_ensure_executable():
    with patch(
        "jetty_server_manager.core.lifecycle.core_executable.ensure_executable"
    ) as mock:
        mock.side_effect = lambda path, **kwargs: ExecutableResult(path=path)
        yield mock


@pytest.fixture
def servers_dir():
    return get_settings_instance().get("paths.servers")


@pytest.fixture
def stored_server(servers_dir, armed_server_model):
    save_server_model(servers_dir, armed_server_model)
    return armed_server_model


def test_configure_writes_server_file(runner, servers_dir):
    result = runner.invoke(
        cli,
        [
            "server",
            "configure",
            "-s",
            "alpha",
            "--home",
            "/srv/jetty",
            "--scratch",
            "/srv/jetty/scratch",
            "-c",
            "/srv/jetty/etc/jetty.xml",
            "-c",
            "/srv/jetty/etc/jetty-ssl.xml",
            "--stop-port",
            "8079",
            "--stop-key",
            "k",
        ],
    )

    assert result.exit_code == 0, result.output
    model = load_server_model(servers_dir, "alpha")
    assert model.active_config_file_paths == (
        "/srv/jetty/etc/jetty.xml",
        "/srv/jetty/etc/jetty-ssl.xml",
    )
    assert model.stop_port == 8079


def test_configure_rejects_bad_port(runner):
    result = runner.invoke(
        cli, ["server", "configure", "-s", "alpha", "--home", "/h", "--stop-port", "100000"]
    )

    assert result.exit_code != 0
    assert "Stop port" in result.output


@patch("jetty_server_manager.cli.server.questionary")
def test_configure_interactive(mock_questionary, runner, servers_dir):
    mock_questionary.path.return_value.ask.side_effect = [
        "/srv/jetty",
        "/srv/jetty/scratch",
        "/srv/jetty/etc/jetty.xml",
        "",
    ]
    mock_questionary.text.return_value.ask.return_value = "8079"
    mock_questionary.password.return_value.ask.return_value = "secret"

    result = runner.invoke(cli, ["server", "configure", "-s", "beta"])

    assert result.exit_code == 0, result.output
    model = load_server_model(servers_dir, "beta")
    assert model.home_directory == "/srv/jetty"
    assert model.active_config_file_paths == ("/srv/jetty/etc/jetty.xml",)
    assert model.stop_key == "secret"


def test_command_start_prints_environment(runner, stored_server):
    result = runner.invoke(cli, ["server", "command", "start", "-s", "test_server"])

    assert result.exit_code == 0, result.output
    assert "JETTY_HOME=/srv/jetty" in result.output
    assert "JETTY_OPTS=-DSTOP.PORT=0 -jar start.jar" in result.output


def test_command_stop_does_not_modify_stored_model(runner, stored_server, servers_dir):
    result = runner.invoke(cli, ["server", "command", "stop", "-s", "test_server"])

    assert result.exit_code == 0, result.output
    assert "JETTY_OPTS=-DSTOP.PORT=8079 -DSTOP.KEY=secret -jar start.jar --stop" in result.output
    assert load_server_model(servers_dir, "test_server").stop_port == 8079


def test_command_unknown_server(runner):
    result = runner.invoke(cli, ["server", "command", "start", "-s", "ghost"])

    assert result.exit_code != 0
    assert "Failed to build start command" in result.output


@patch("jetty_server_manager.cli.server.ServerLifecycleController.start", return_value=99)
def test_start(mock_start, runner, stored_server, servers_dir):
    result = runner.invoke(cli, ["server", "start", "-s", "test_server"])

    assert result.exit_code == 0, result.output
    assert "PID: 99" in result.output
    assert mock_start.call_args[0][0].endswith("test_server.pid")


@patch("jetty_server_manager.cli.server.ServerLifecycleController.stop")
def test_stop_with_override(mock_stop, runner, stored_server):
    with patch(
        "jetty_server_manager.cli.server.ServerLifecycleController.arm_stop_port"
    ) as mock_arm:
        result = runner.invoke(
            cli, ["server", "stop", "-s", "test_server", "--port", "9000", "--key", "k"]
        )

    assert result.exit_code == 0, result.output
    mock_arm.assert_called_once_with(9000, "k")
    assert mock_stop.call_args[1]["timeout"] == 30


@patch(
    "jetty_server_manager.cli.server.ServerLifecycleController.stop",
    side_effect=ServerNotRunningError("Server 'test_server' is not running."),
)
def test_stop_not_running(mock_stop, runner, stored_server):
    result = runner.invoke(cli, ["server", "stop", "-s", "test_server"])

    assert result.exit_code != 0
    assert "is not running" in result.output


def test_status_stopped(runner, stored_server):
    result = runner.invoke(cli, ["server", "status", "-s", "test_server"])

    assert result.exit_code == 0, result.output
    assert "STOPPED" in result.output


def test_version_option(runner):
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "Jetty Server Manager" in result.output


@patch("jetty_server_manager.core.lifecycle.core_process.terminate_process_by_pid")
@patch("jetty_server_manager.core.lifecycle.core_process.wait_for_exit", return_value=True)
@patch("jetty_server_manager.core.lifecycle.core_process.run_command", return_value=0)
@patch("jetty_server_manager.core.lifecycle.core_process.is_process_running", return_value=True)
def test_stored_stop_port_is_used_once(
    mock_running, mock_run, mock_wait, mock_terminate, runner, stored_server, servers_dir
):
    pid_file = os.path.join(servers_dir, "test_server.pid")

    with open(pid_file, "w") as f:
        f.write("42")
    first = runner.invoke(cli, ["server", "stop", "-s", "test_server"])

    assert first.exit_code == 0, first.output
    assert mock_run.call_count == 1
    assert mock_run.call_args[0][1]["JETTY_OPTS"].endswith("--stop")
    mock_terminate.assert_not_called()
    assert load_server_model(servers_dir, "test_server").stop_port == 0

    with open(pid_file, "w") as f:
        f.write("42")
    second = runner.invoke(cli, ["server", "stop", "-s", "test_server"])

    assert second.exit_code == 0, second.output
    assert mock_run.call_count == 1
    mock_terminate.assert_called_once_with(42)


@patch("jetty_server_manager.core.lifecycle.core_process.terminate_process_by_pid")
@patch("jetty_server_manager.core.lifecycle.core_process.wait_for_exit", return_value=True)
@patch("jetty_server_manager.core.lifecycle.core_process.run_command", return_value=0)
@patch("jetty_server_manager.core.lifecycle.core_process.is_process_running", return_value=True)
def test_stop_port_override_is_not_saved(
    mock_running, mock_run, mock_wait, mock_terminate, runner, servers_dir, server_model
):
    save_server_model(servers_dir, server_model)
    with open(os.path.join(servers_dir, "test_server.pid"), "w") as f:
        f.write("42")

    result = runner.invoke(
        cli, ["server", "stop", "-s", "test_server", "--port", "9000", "--key", "k"]
    )

    assert result.exit_code == 0, result.output
    assert mock_run.call_args[0][1]["JETTY_OPTS"].startswith("-DSTOP.PORT=9000 ")
    assert load_server_model(servers_dir, "test_server") == server_model
