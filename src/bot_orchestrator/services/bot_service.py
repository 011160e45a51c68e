"""
Bot lifecycle service.

Drives the logical status state machine on top of BotContainerManager and
the persistence collaborator:

    stopped --deploy--> deploying --ok--> running
    deploying --failure--> error
    running --stop--> stopped
    stopped|error --start--> running      (needs a deployed instance)
    * --restart--> running
    * --delete--> (record removed, data volume kept)
"""

from __future__ import annotations

import socket
from typing import Any, Dict, List, Mapping, Optional

from bot_orchestrator.config import OrchestratorConfig
from bot_orchestrator.core.container_manager import DEFAULT_LOG_TAIL, BotContainerManager
from bot_orchestrator.core.models import (
    BotStatus,
    DeleteResult,
    DeploymentRecord,
    LogicalBot,
    MetricsView,
    RuntimeRef,
    StatusReport,
    settings_from_mapping,
)
from bot_orchestrator.core.naming import validate_bot_id
from bot_orchestrator.core.reconciliation import reconcile
from bot_orchestrator.errors import (
    BotNotFound,
    Conflict,
    OrchestratorError,
    PreconditionFailed,
    ProvisioningFailed,
    RuntimeUnavailable,
)
from bot_orchestrator.storage.postgres_store import PostgresStore
from bot_orchestrator.utils.logger import logger

NOT_DEPLOYED_MESSAGE = "Bot not deployed yet. Deploy first."


class BotService:
    def __init__(self, store: PostgresStore, manager: BotContainerManager, config: Optional[OrchestratorConfig] = None) -> None:
        self.store = store
        self.manager = manager
        self.config = config or manager.config

    # --- helpers ---
    def record_event(self, bot: LogicalBot, event: str, status: BotStatus,
                      instance_id: Optional[str] = None, instance_name: Optional[str] = None) -> None:
        try:
            self.store.record_event({
                "bot_id": bot.bot_id,
                "instance_id": instance_id or bot.runtime_instance_id,
                "instance_name": instance_name or bot.runtime_instance_name,
                "host": socket.gethostname(),
                "status": BotStatus(status).value,
                "event": event,
            })
        except OrchestratorError as e:
            logger.warning(f"Failed to record {event} event for bot {bot.bot_id}: {e}")

    def _require_deployed(self, bot: LogicalBot) -> str:
        if not bot.runtime_instance_id:
            raise PreconditionFailed(NOT_DEPLOYED_MESSAGE, bot_id=bot.bot_id)
        return bot.runtime_instance_id

    # --- records ---
    def create_bot(
        self,
        bot_id: str,
        name: str,
        secret: str,
        owner_id: str,
        *,
        auto_restart: bool = True,
        description: Optional[str] = None,
        settings: Optional[Mapping[str, Any]] = None,
    ) -> LogicalBot:
        validate_bot_id(bot_id)
        bot = LogicalBot(
            bot_id=bot_id,
            name=name,
            secret=secret,
            owner_id=str(owner_id),
            auto_restart=auto_restart,
            description=description,
            settings=settings_from_mapping(settings),
            status=BotStatus.STOPPED,
        )
        created = self.store.create_bot(bot)
        logger.info(f"Bot {bot_id} created for owner {owner_id}")
        return created

    def get_bot(self, bot_id: str) -> LogicalBot:
        bot = self.store.get_bot(bot_id)
        if bot is None:
            raise BotNotFound(bot_id)
        return bot

    def list_bots(self, owner_id: Optional[str] = None) -> List[LogicalBot]:
        return self.store.list_bots(owner_id=owner_id)

    def update_settings(self, bot_id: str, settings: Mapping[str, Any]) -> LogicalBot:
        """Replace a bot's settings; they take effect at the next deploy."""
        self.get_bot(bot_id)
        entries = settings_from_mapping(settings)
        self.store.replace_settings(bot_id, entries)
        logger.info(f"Settings for bot {bot_id} replaced ({len(entries)} keys)")
        return self.get_bot(bot_id)

    def deployment_history(self, bot_id: str, limit: int = 50) -> List[DeploymentRecord]:
        self.get_bot(bot_id)
        return self.store.list_deployments(bot_id, limit=limit)

    # --- lifecycle ---
    def deploy_bot(self, bot_id: str, triggered_by: Optional[str] = None) -> RuntimeRef:
        bot = self.get_bot(bot_id)
        validate_bot_id(bot.bot_id)
        if not self.store.mark_deploying(bot_id, self.config.deploy_stale_seconds):
            raise Conflict(f"A deploy of bot '{bot_id}' is already in progress", bot_id=bot_id)

        try:
            ref = self.manager.deploy(bot)
        except OrchestratorError as e:
            self._deploy_failed(bot, triggered_by, e.message)
            raise
        except Exception as e:
            self._deploy_failed(bot, triggered_by, str(e))
            raise ProvisioningFailed(str(e), bot_id=bot_id) from e

        try:
            self.store.update_runtime(bot_id, ref.instance_id, ref.instance_name, BotStatus.RUNNING)
            self.store.append_deployment(DeploymentRecord(
                bot_id=bot_id,
                triggered_by=triggered_by,
                outcome="success",
                message="Bot deployed successfully",
            ))
        except OrchestratorError as e:
            logger.error(f"Bot {bot_id} started as {ref.instance_id} but could not be recorded: {e}")
            self._discard_deployed(ref)
            self._deploy_failed(bot, triggered_by, f"deployed instance could not be recorded: {e.message}")
            raise

        self.record_event(bot, "deploy", BotStatus.RUNNING, ref.instance_id, ref.instance_name)
        logger.info(f"Bot {bot_id} deployed as {ref.instance_name} ({ref.instance_id})")
        return ref

    def _discard_deployed(self, ref: RuntimeRef) -> None:
        try:
            self.manager.remove(ref.instance_id)
        except OrchestratorError as e:
            logger.warning(f"Could not remove unrecorded container {ref.instance_name} ({ref.instance_id}): {e}")

    def _deploy_failed(self, bot: LogicalBot, triggered_by: Optional[str], message: str) -> None:
        try:
            self.store.update_status(bot.bot_id, BotStatus.ERROR)
            self.store.append_deployment(DeploymentRecord(
                bot_id=bot.bot_id,
                triggered_by=triggered_by,
                outcome="failed",
                message=message or "deploy failed",
            ))
        except OrchestratorError as e:
            logger.error(f"Could not record failed deploy of bot {bot.bot_id}: {e}")

    def start_bot(self, bot_id: str) -> None:
        bot = self.get_bot(bot_id)
        instance_id = self._require_deployed(bot)
        self.manager.start(instance_id)
        self.store.update_status(bot_id, BotStatus.RUNNING)
        self.record_event(bot, "start", BotStatus.RUNNING)

    def stop_bot(self, bot_id: str) -> None:
        bot = self.get_bot(bot_id)
        instance_id = self._require_deployed(bot)
        self.manager.stop(instance_id)
        self.store.update_status(bot_id, BotStatus.STOPPED)
        self.record_event(bot, "stop", BotStatus.STOPPED)

    def restart_bot(self, bot_id: str) -> None:
        bot = self.get_bot(bot_id)
        instance_id = self._require_deployed(bot)
        self.manager.restart(instance_id)
        self.store.update_status(bot_id, BotStatus.RUNNING)
        self.record_event(bot, "restart", BotStatus.RUNNING)

    def delete_bot(self, bot_id: str, *, purge_volume: bool = False) -> DeleteResult:
        bot = self.get_bot(bot_id)
        result = DeleteResult(bot_id=bot_id)

        if bot.runtime_instance_id:
            try:
                result.instance_removed = self.manager.remove(bot.runtime_instance_id)
                self.record_event(bot, "remove", BotStatus.STOPPED)
            except OrchestratorError as e:
                logger.error(f"Error removing container {bot.runtime_instance_id} of bot {bot_id}: {e}")
                result.warning = f"container {bot.runtime_instance_id} was not removed: {e}"

        if purge_volume:
            try:
                result.volume_removed = self.manager.remove_volume(bot_id)
            except OrchestratorError as e:
                logger.error(f"Error removing data volume of bot {bot_id}: {e}")
                warning = f"data volume was not removed: {e}"
                result.warning = f"{result.warning}; {warning}" if result.warning else warning

        self.store.delete_bot(bot_id)
        logger.info(f"Bot {bot_id} deleted")
        return result

    # --- observation ---
    def bot_status(self, bot_id: str) -> StatusReport:
        bot = self.get_bot(bot_id)
        runtime = None
        if bot.runtime_instance_id:
            try:
                runtime = self.manager.status(bot.runtime_instance_id)
            except RuntimeUnavailable as e:
                logger.warning(f"Could not inspect container of bot {bot_id}: {e}")
        return reconcile(bot.status, bot.runtime_instance_id, runtime)

    def bot_logs(self, bot_id: str, tail: int = DEFAULT_LOG_TAIL) -> str:
        bot = self.get_bot(bot_id)
        return self.manager.logs(self._require_deployed(bot), tail=tail)

    def bot_stats(self, bot_id: str) -> MetricsView:
        bot = self.get_bot(bot_id)
        return self.manager.stats(self._require_deployed(bot))

    def list_events(self, bot_id: Optional[str] = None, limit: int = 100) -> List[Dict[str, Any]]:
        return self.store.list_events(bot_id=bot_id, limit=limit)


def build_service(config: Optional[OrchestratorConfig] = None) -> BotService:
    """Wire a BotService against PostgreSQL and the Docker engine from config."""
    config = config or OrchestratorConfig.from_env()
    store = PostgresStore(config.postgres_url)
    if store.enabled:
        logger.info("PostgreSQL store enabled")
    else:
        logger.warning("PostgreSQL store disabled - bot operations will fail until it is reachable")
    manager = BotContainerManager(config)
    return BotService(store, manager, config)


__all__ = ["BotService", "build_service", "NOT_DEPLOYED_MESSAGE"]
