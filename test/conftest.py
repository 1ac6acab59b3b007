import os
import sys

import pytest

# Add the src directory to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../src")))

from jetty_server_manager import instances
from jetty_server_manager.core.models import ServerModel


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """
    Points the data directory and the appdirs config directory at temporary
    locations so no test touches the real user configuration.
    """
    test_data_dir = tmp_path / "test_data"
    test_data_dir.mkdir()
    test_config_dir = tmp_path / "test_config"
    test_config_dir.mkdir()

    monkeypatch.setattr(
        "appdirs.user_config_dir", lambda *args, **kwargs: str(test_config_dir)
    )
    monkeypatch.setenv("JETTY_SERVER_MANAGER_DATA_DIR", str(test_data_dir))
    instances.reset_settings_instance()

    yield test_data_dir

    instances.reset_settings_instance()


@pytest.fixture
def server_model():
    """A fully configured model with the stop-port protocol disabled."""
    return ServerModel(
        name="test_server",
        home_directory="/srv/jetty",
        scratch_directory="/srv/jetty/scratch",
        active_config_file_paths=(
            "/srv/jetty/etc/jetty.xml",
            "/srv/jetty/etc/jetty-plus.xml",
        ),
        stop_port=0,
        stop_key="secret",
    )


@pytest.fixture
def armed_server_model(server_model):
    """The same model with a stop port armed."""
    return server_model.with_stop_port(8079)
