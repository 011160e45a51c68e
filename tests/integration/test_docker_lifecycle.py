"""
Integration tests against a real Docker engine.

Run with: pytest -m requires_docker
Persistence uses the in-memory store; only the container engine is real.
"""

import time
import uuid

import pytest

from bot_orchestrator.config import OrchestratorConfig
from bot_orchestrator.core.container_manager import BotContainerManager
from bot_orchestrator.core.models import BotStatus, RuntimeState
from bot_orchestrator.core.runtime_client import RuntimeClient
from bot_orchestrator.errors import RuntimeUnavailable
from bot_orchestrator.services.bot_service import BotService
from tests.fixtures.fakes import FakeStore

pytestmark = [pytest.mark.integration, pytest.mark.requires_docker, pytest.mark.slow]


@pytest.fixture
def docker_config() -> OrchestratorConfig:
    suffix = uuid.uuid4().hex[:8]
    return OrchestratorConfig(
        network_name=f"bots-network-test-{suffix}",
        image="alpine:3.19",
        command=["sh", "-c", "echo bot $BOT_ID up; sleep 300"],
        memory_limit_mb=64,
        stop_timeout=1,
        label_marker=f"bot-dashboard-test-{suffix}",
    )


@pytest.fixture
def docker_runtime(docker_config) -> RuntimeClient:
    try:
        return RuntimeClient(docker_config)
    except RuntimeUnavailable as e:
        pytest.skip(f"Docker not available: {e}")


@pytest.fixture
def docker_service(docker_config, docker_runtime):
    manager = BotContainerManager(docker_config, runtime=docker_runtime)
    service = BotService(FakeStore(), manager, docker_config)
    bot_id = f"it-{uuid.uuid4().hex[:8]}"
    service.create_bot(bot_id, "Integration Bot", "t0k3n", "it-user", auto_restart=False)

    yield service, bot_id

    # Cleanup
    client = docker_runtime.client
    for container in client.containers.list(all=True, filters={"label": [docker_config.label_marker]}):
        container.remove(force=True)
    for volume in client.volumes.list(filters={"label": [docker_config.label_marker]}):
        volume.remove(force=True)
    for network in client.networks.list(names=[docker_config.network_name]):
        network.remove()


def _wait_for_logs(service, bot_id, needle, timeout=15.0):
    deadline = time.time() + timeout
    logs = ""
    while time.time() < deadline:
        logs = service.bot_logs(bot_id)
        if needle in logs:
            break
        time.sleep(0.5)
    return logs


def test_full_lifecycle(docker_service, docker_runtime):
    service, bot_id = docker_service

    ref = service.deploy_bot(bot_id)
    assert ref.instance_name == f"bot-{bot_id}"
    assert service.bot_status(bot_id).status == BotStatus.RUNNING

    assert f"bot {bot_id} up" in _wait_for_logs(service, bot_id, f"bot {bot_id} up")

    stats = service.bot_stats(bot_id)
    assert 0 < stats.memory_limit_mib <= 64

    service.stop_bot(bot_id)
    report = service.bot_status(bot_id)
    assert report.status == BotStatus.STOPPED
    assert report.runtime.status == RuntimeState.STOPPED

    service.start_bot(bot_id)
    assert service.bot_status(bot_id).runtime.status == RuntimeState.RUNNING

    second = service.deploy_bot(bot_id)
    assert second.instance_id != ref.instance_id
    assert docker_runtime.find_container(ref.instance_id) is None

    result = service.delete_bot(bot_id)
    assert result.instance_removed is True
    assert docker_runtime.volume_exists(f"bot-data-{bot_id}")
