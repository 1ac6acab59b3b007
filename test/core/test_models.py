import dataclasses

import pytest

from jetty_server_manager.core.models import (
    EnvironmentVariable,
    LaunchSpec,
    ServerModel,
    validate_stop_port,
)
from jetty_server_manager.error import ConfigurationError, StopPortError, UserInputError


def test_model_is_immutable(server_model):
    with pytest.raises(dataclasses.FrozenInstanceError):
        server_model.stop_port = 1


def test_config_paths_are_stored_as_tuple():
    model = ServerModel(active_config_file_paths=["a.xml", "b.xml"])

    assert model.active_config_file_paths == ("a.xml", "b.xml")


def test_with_stop_port_cleared(armed_server_model):
    cleared = armed_server_model.with_stop_port_cleared()

    assert cleared.stop_port == 0
    assert armed_server_model.stop_port == 8079
    assert cleared.stop_key == armed_server_model.stop_key


def test_with_stop_port_keeps_key_unless_given(server_model):
    assert server_model.with_stop_port(9000).stop_key == "secret"
    assert server_model.with_stop_port(9000, "other").stop_key == "other"


@pytest.mark.parametrize("port", [-1, 100000, 123456, True, 1.5, "8079", None])
def test_invalid_stop_ports_are_rejected(port):
    with pytest.raises(StopPortError) as excinfo:
        ServerModel(stop_port=port)

    assert isinstance(excinfo.value, UserInputError)
    assert excinfo.value.port == port


@pytest.mark.parametrize("port", [0, 1, 65535, 70000, 99999])
def test_valid_stop_ports(port):
    assert validate_stop_port(port) == port


def test_validated_home_directory_raises_when_missing():
    with pytest.raises(ConfigurationError):
        ServerModel(name="x").validated_home_directory()


def test_from_dict_round_trip(server_model):
    assert ServerModel.from_dict(server_model.to_dict()) == server_model


def test_from_dict_defaults():
    model = ServerModel.from_dict({"home_directory": "/srv/jetty"})

    assert model.name == "default"
    assert model.stop_port == 0
    assert model.stop_key == ""
    assert model.active_config_file_paths == ()


def test_from_dict_accepts_numeric_string_port():
    assert ServerModel.from_dict({"stop_port": "8079"}).stop_port == 8079


def test_from_dict_rejects_non_numeric_port():
    with pytest.raises(StopPortError):
        ServerModel.from_dict({"stop_port": "eighty"})


def test_from_dict_rejects_string_config_paths():
    with pytest.raises(ConfigurationError):
        ServerModel.from_dict({"active_config_file_paths": "/etc/jetty.xml"})


def test_launch_spec_environment_dict_last_wins(server_model):
    spec = LaunchSpec(
        command=("/bin/jetty.sh",),
        environment=(
            EnvironmentVariable("A", "1"),
            EnvironmentVariable("A", "2"),
            EnvironmentVariable("B", "3"),
        ),
        model=server_model,
    )

    assert spec.environment_dict() == {"A": "2", "B": "3"}
