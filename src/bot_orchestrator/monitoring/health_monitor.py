from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

from bot_orchestrator.config import OrchestratorConfig
from bot_orchestrator.core.models import BotStatus, LogicalBot, RuntimeState
from bot_orchestrator.core.reconciliation import reconcile
from bot_orchestrator.errors import OrchestratorError, RuntimeUnavailable
from bot_orchestrator.services.bot_service import BotService, build_service
from bot_orchestrator.utils.logger import logger

# Event recorded when the monitor persists a drifted status
DRIFT_EVENTS = {
    BotStatus.RUNNING: "start",
    BotStatus.STOPPED: "stop",
    BotStatus.ERROR: "error",
}


def _sample_bot(service: BotService, bot: LogicalBot) -> Optional[str]:
    """Reconcile one bot, persist drift and record metrics. Returns the new status on drift."""
    runtime = None
    if bot.runtime_instance_id:
        try:
            runtime = service.manager.status(bot.runtime_instance_id)
        except RuntimeUnavailable as e:
            logger.warning(f"Could not inspect container of bot {bot.bot_id}: {e}")

    report = reconcile(bot.status, bot.runtime_instance_id, runtime)
    drift: Optional[str] = None

    if report.drifted and bot.status != BotStatus.DEPLOYING:
        # the snapshot may be stale; only write over the row it was taken from
        written = service.store.update_status_if(
            bot.bot_id,
            report.status,
            expected_status=bot.status,
            expected_instance_id=bot.runtime_instance_id,
        )
        if written:
            logger.info(f"Bot {bot.bot_id} state changed: {bot.status.value} -> {report.status.value}")
            service.record_event(bot, DRIFT_EVENTS[report.status], report.status)
            drift = report.status.value
        else:
            logger.debug(f"Bot {bot.bot_id} changed since it was listed, skipping drift write")

    if runtime is not None and runtime.status == RuntimeState.RUNNING:
        try:
            metrics = service.manager.stats(bot.runtime_instance_id)
            logger.debug(f"Bot {bot.bot_id}: CPU={metrics.cpu_percent:.1f}%, MEM={metrics.memory_percent:.1f}%")
            service.store.record_metrics_snapshot({
                "bot_id": bot.bot_id,
                "instance_id": bot.runtime_instance_id,
                **metrics.model_dump(),
            })
        except OrchestratorError as e:
            logger.warning(f"Failed to get stats for bot {bot.bot_id}: {e}")
    else:
        logger.debug(f"Bot {bot.bot_id} not running, skipping stats collection")

    return drift


def sample_once(service: BotService) -> Dict[str, Any]:
    """
    Run one monitoring pass over every logical bot.

    Returns a summary with the bots whose persisted status drifted and the
    managed containers that no longer belong to any logical bot.
    """
    bots: List[LogicalBot] = service.list_bots()
    logger.info(f"Collecting health data for {len(bots)} bots")

    drifted: Dict[str, str] = {}
    for bot in bots:
        try:
            new_status = _sample_bot(service, bot)
        except OrchestratorError as e:
            logger.error(f"Health check failed for bot {bot.bot_id}: {e}")
            continue
        if new_status:
            drifted[bot.bot_id] = new_status

    known = {b.bot_id for b in bots}
    orphans: List[str] = []
    try:
        for inst in service.manager.list_managed():
            if inst.bot_id not in known:
                orphans.append(inst.instance_name)
                logger.warning(
                    f"Orphaned container {inst.instance_name} ({inst.instance_id}) "
                    f"labelled bot-id={inst.bot_id} has no logical bot"
                )
    except RuntimeUnavailable as e:
        logger.error(f"Could not list managed containers: {e}")

    logger.info(f"Health snapshot collection completed for {len(bots)} bots")
    return {"bots": len(bots), "drifted": drifted, "orphans": orphans}


def run_forever(config: Optional[OrchestratorConfig] = None) -> None:
    config = config or OrchestratorConfig.from_env()
    service = build_service(config)
    interval = config.health_interval_seconds
    retention_days = config.health_retention_days

    logger.info("Health monitor starting: interval=%ss, retention_days=%s, store.enabled=%s",
                interval, retention_days, service.store.enabled)

    while True:
        t0 = time.time()
        try:
            sample_once(service)
            if retention_days > 0:
                pruned = service.store.prune_old_metrics(retention_days)
                if pruned > 0:
                    logger.info(f"Pruned {pruned} old metric snapshots")
        except Exception as e:
            logger.exception("Health monitor loop error: %s", e)

        elapsed = time.time() - t0
        to_sleep = max(1.0, interval - elapsed)
        logger.debug(f"Health monitor loop completed in {elapsed:.2f}s, sleeping for {to_sleep:.2f}s")
        time.sleep(to_sleep)


if __name__ == "__main__":
    run_forever()
