"""
Unit tests for the Docker SDK adapter, using a mocked docker client.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests
from docker.errors import APIError, DockerException, ImageNotFound, NotFound

from bot_orchestrator.config import OrchestratorConfig
from bot_orchestrator.core.runtime_client import RuntimeClient, is_conflict
from bot_orchestrator.errors import InstanceNotFound, RuntimeUnavailable


def _api_error(status_code: int, message: str = "error") -> APIError:
    return APIError(message, response=MagicMock(status_code=status_code))


@pytest.fixture
def docker_client():
    return MagicMock()


@pytest.fixture
def client(docker_client) -> RuntimeClient:
    return RuntimeClient(OrchestratorConfig(), client=docker_client)


def test_is_conflict():
    assert is_conflict(_api_error(409))
    assert is_conflict(APIError("volume bot-data-b1 already exists"))
    assert not is_conflict(_api_error(500))


def test_missing_container_raises_instance_not_found(client, docker_client):
    docker_client.containers.get.side_effect = NotFound("No such container: abc")

    with pytest.raises(InstanceNotFound) as exc_info:
        client.start("abc")
    assert exc_info.value.instance_id == "abc"
    assert client.find_container("abc") is None


def test_engine_errors_become_runtime_unavailable(client, docker_client):
    docker_client.containers.get.return_value.stop.side_effect = _api_error(500, "server error")
    with pytest.raises(RuntimeUnavailable):
        client.stop("abc", timeout=10)


def test_transport_errors_become_runtime_unavailable(client, docker_client):
    docker_client.containers.list.side_effect = requests.exceptions.ConnectionError("refused")
    with pytest.raises(RuntimeUnavailable):
        client.list_labelled("bot-dashboard")


def test_create_network_conflict_is_not_an_error(client, docker_client):
    docker_client.networks.create.side_effect = _api_error(409, "network with name bots-network already exists")
    assert client.create_network("bots-network") is False


def test_create_network_other_errors_propagate(client, docker_client):
    docker_client.networks.create.side_effect = _api_error(500)
    with pytest.raises(RuntimeUnavailable):
        client.create_network("bots-network")


def test_network_exists_matches_exact_name(client, docker_client):
    similar = MagicMock()
    similar.name = "bots-network-old"
    docker_client.networks.list.return_value = [similar]
    assert client.network_exists("bots-network") is False

    exact = MagicMock()
    exact.name = "bots-network"
    docker_client.networks.list.return_value = [similar, exact]
    assert client.network_exists("bots-network") is True


def test_volume_helpers(client, docker_client):
    docker_client.volumes.get.side_effect = NotFound("no such volume")
    assert client.volume_exists("bot-data-b1") is False
    assert client.remove_volume("bot-data-b1") is False

    docker_client.volumes.create.side_effect = _api_error(409)
    assert client.create_volume("bot-data-b1") is False


def test_image_exists(client, docker_client):
    docker_client.images.get.side_effect = ImageNotFound("no such image")
    assert client.image_exists("node:18-alpine") is False


def test_create_container_passes_engine_options(client, docker_client):
    docker_client.containers.create.return_value.id = "c0ffee"

    instance_id = client.create_container(
        image="node:18-alpine",
        name="bot-b1",
        environment=["BOT_ID=b1"],
        labels={"bot-dashboard": "true"},
        restart_policy="unless-stopped",
        network="bots-network",
        binds=["bot-data-b1:/app/data"],
        mem_limit=536870912,
        memswap_limit=536870912,
    )

    assert instance_id == "c0ffee"
    kwargs = docker_client.containers.create.call_args.kwargs
    assert kwargs["restart_policy"] == {"Name": "unless-stopped"}
    assert kwargs["volumes"] == ["bot-data-b1:/app/data"]
    assert kwargs["network"] == "bots-network"
    assert kwargs["detach"] is True


def test_logs_are_decoded(client, docker_client):
    docker_client.containers.get.return_value.logs.return_value = b"hello\n\xffworld\n"

    text = client.logs("abc", tail=100)

    assert text.startswith("hello\n")
    assert "world" in text
    docker_client.containers.get.return_value.logs.assert_called_once_with(
        stdout=True, stderr=True, tail=100, timestamps=True
    )


def test_inspect_state(client, docker_client):
    docker_client.containers.get.return_value.attrs = {"State": {"Running": True, "ExitCode": 0}}
    assert client.inspect_state("abc") == {"Running": True, "ExitCode": 0}


def test_client_initialization_retries_then_fails():
    with patch("bot_orchestrator.core.runtime_client.docker.from_env",
               side_effect=DockerException("socket missing")) as from_env, \
            patch("bot_orchestrator.core.runtime_client.time.sleep") as sleep:
        with pytest.raises(RuntimeUnavailable):
            RuntimeClient(OrchestratorConfig())

    assert from_env.call_count == 3
    assert sleep.call_count == 2


def test_client_initialization_uses_configured_endpoint():
    with patch("bot_orchestrator.core.runtime_client.docker.DockerClient") as docker_cls:
        client = RuntimeClient(OrchestratorConfig(engine_url="tcp://docker:2375", engine_timeout=30))

    docker_cls.assert_called_once_with(base_url="tcp://docker:2375", timeout=30)
    assert client.client is docker_cls.return_value
    docker_cls.return_value.ping.assert_called_once()
