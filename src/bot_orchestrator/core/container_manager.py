from __future__ import annotations

from typing import Any, Dict, List, Optional

from bot_orchestrator.config import OrchestratorConfig
from bot_orchestrator.core.metrics import metrics_from_stats
from bot_orchestrator.core.models import (
    LogicalBot,
    ManagedInstance,
    MetricsView,
    ResourceNames,
    RuntimeRef,
    RuntimeState,
    StatusView,
)
from bot_orchestrator.core.naming import derive_names
from bot_orchestrator.core.provisioning import ResourceProvisioner
from bot_orchestrator.core.runtime_client import RuntimeClient
from bot_orchestrator.errors import InstanceNotFound, OrchestratorError, ProvisioningFailed
from bot_orchestrator.utils.logger import logger

DEFAULT_LOG_TAIL = 100

# Docker reports this for timestamps that were never set.
_ZERO_TIME = "0001-01-01T00:00:00Z"


def _timestamp(value: Optional[str]) -> Optional[str]:
    if not value or value == _ZERO_TIME:
        return None
    return value


class BotContainerManager:
    """
    Maps logical bots onto Docker containers.

    ``deploy`` derives names and provisions resources; every other operation
    is keyed by the engine-assigned instance id only.
    """

    LABEL_BOT_ID = "bot-id"
    LABEL_OWNER_ID = "owner-id"

    def __init__(
        self,
        config: Optional[OrchestratorConfig] = None,
        runtime: Optional[RuntimeClient] = None,
    ) -> None:
        logger.info("Initializing BotContainerManager")
        self.config = config or OrchestratorConfig.from_env()
        self.runtime = runtime or RuntimeClient(self.config)
        self.provisioner = ResourceProvisioner(self.runtime, self.config)

    # ---------- helpers ----------

    def _labels(self, bot: LogicalBot) -> Dict[str, str]:
        return {
            self.config.label_marker: "true",
            self.LABEL_BOT_ID: str(bot.bot_id),
            self.LABEL_OWNER_ID: str(bot.owner_id),
        }

    def _environment(self, bot: LogicalBot) -> List[str]:
        env = [
            f"SECRET_TOKEN={bot.secret.get_secret_value()}",
            f"BOT_ID={bot.bot_id}",
            f"BOT_NAME={bot.name}",
        ]
        env.extend(entry.as_env() for entry in bot.settings)
        return env

    def build_instance_spec(self, bot: LogicalBot, names: ResourceNames) -> Dict[str, Any]:
        memory = self.config.memory_limit_bytes
        return {
            "image": self.config.image,
            "command": self.config.command,
            "name": names.instance_name,
            "environment": self._environment(bot),
            "labels": self._labels(bot),
            "restart_policy": "unless-stopped" if bot.auto_restart else "no",
            "network": self.config.network_name,
            "binds": [f"{names.volume_name}:{self.config.data_path}"],
            "mem_limit": memory,
            "memswap_limit": memory,
        }

    def _replace_existing(self, instance_name: str) -> None:
        existing = self.runtime.find_container(instance_name)
        if existing is None:
            return

        logger.info(f"Replacing existing container {instance_name} ({existing.id}), status: {existing.status}")
        if self.config.graceful_replace and existing.status == "running":
            try:
                self.runtime.stop(existing.id, timeout=self.config.stop_timeout)
            except OrchestratorError as e:
                logger.warning(f"Graceful stop of {instance_name} failed, forcing removal: {e}")
        try:
            self.runtime.remove(existing.id, force=True)
        except InstanceNotFound:
            logger.debug(f"Container {instance_name} disappeared before removal")

    def _discard_unstarted(self, instance_id: str) -> None:
        try:
            self.runtime.remove(instance_id, force=True)
            logger.info(f"Cleaned up failed container {instance_id}")
        except OrchestratorError as e:
            logger.warning(f"Could not clean up failed container {instance_id}: {e}")

    # -------- public API --------

    def deploy(self, bot: LogicalBot) -> RuntimeRef:
        """
        Create and start a fresh container for ``bot``.

        Any existing container with the bot's derived name is replaced; the
        data volume is reused. Raises InvalidBotId for an unusable id before
        touching the engine, and ProvisioningFailed on any later failure, in
        which case no container is left bound to the bot's name.
        """
        names = derive_names(bot.bot_id)
        logger.info(f"Deploying bot {bot.bot_id} with image {self.config.image}")
        instance_id: Optional[str] = None
        try:
            self.provisioner.ensure_network()
            self.provisioner.ensure_image()
            self._replace_existing(names.instance_name)
            self.provisioner.ensure_volume(
                names.volume_name,
                labels={self.config.label_marker: "true", self.LABEL_BOT_ID: str(bot.bot_id)},
            )

            instance_id = self.runtime.create_container(**self.build_instance_spec(bot, names))
            logger.info(f"Container created: {instance_id} ({names.instance_name})")

            self.runtime.start(instance_id)
            logger.info(f"Container {instance_id} started for bot {bot.bot_id}")
        except OrchestratorError as e:
            logger.error(f"Failed to deploy bot {bot.bot_id}: {e}")
            if instance_id is not None:
                self._discard_unstarted(instance_id)
            raise ProvisioningFailed(str(e), bot_id=bot.bot_id) from e

        return RuntimeRef(instance_id=instance_id, instance_name=names.instance_name)

    def start(self, instance_id: str) -> None:
        logger.info(f"Starting container: {instance_id}")
        self.runtime.start(instance_id)

    def stop(self, instance_id: str) -> None:
        logger.info(f"Stopping container: {instance_id} (timeout: {self.config.stop_timeout}s)")
        self.runtime.stop(instance_id, timeout=self.config.stop_timeout)
        logger.info(f"Container {instance_id} stopped successfully")

    def restart(self, instance_id: str) -> None:
        logger.info(f"Restarting container: {instance_id} (timeout: {self.config.stop_timeout}s)")
        self.runtime.restart(instance_id, timeout=self.config.stop_timeout)

    def remove(self, instance_id: str) -> bool:
        """Force-remove a container, keeping its data volume. False if it was already gone."""
        logger.info(f"Removing container: {instance_id}")
        try:
            self.runtime.remove(instance_id, force=True)
        except InstanceNotFound:
            logger.warning(f"Container not found: {instance_id}")
            return False
        logger.info(f"Container {instance_id} removed successfully")
        return True

    def status(self, instance_id: str) -> StatusView:
        try:
            state = self.runtime.inspect_state(instance_id)
        except InstanceNotFound:
            return StatusView(status=RuntimeState.NOT_FOUND)

        exit_code = state.get("ExitCode")
        return StatusView(
            status=RuntimeState.RUNNING if state.get("Running") else RuntimeState.STOPPED,
            started_at=_timestamp(state.get("StartedAt")),
            finished_at=_timestamp(state.get("FinishedAt")),
            exit_code=int(exit_code) if exit_code is not None else None,
            last_error=state.get("Error") or None,
        )

    def logs(self, instance_id: str, tail: int = DEFAULT_LOG_TAIL) -> str:
        if not tail or tail <= 0:
            tail = DEFAULT_LOG_TAIL
        return self.runtime.logs(instance_id, tail=tail)

    def stats(self, instance_id: str) -> MetricsView:
        return metrics_from_stats(self.runtime.stats(instance_id))

    def remove_volume(self, bot_id: str) -> bool:
        return self.provisioner.remove_volume(derive_names(bot_id).volume_name)

    def list_managed(self) -> List[ManagedInstance]:
        out: List[ManagedInstance] = []
        for c in self.runtime.list_labelled(self.config.label_marker):
            labels = c.labels or {}
            out.append(ManagedInstance(
                instance_id=c.id,
                instance_name=c.name,
                bot_id=labels.get(self.LABEL_BOT_ID),
                owner_id=labels.get(self.LABEL_OWNER_ID),
                state=c.status,
            ))
        return out

    def ping(self) -> bool:
        return self.runtime.ping()


__all__ = ["BotContainerManager", "DEFAULT_LOG_TAIL"]
