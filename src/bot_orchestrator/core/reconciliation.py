"""
State reconciliation between a persisted bot status and the engine's view.

The engine is the source of truth for whether a container runs; the
persisted status carries intent (deploying) and the sticky error state.
"""

from __future__ import annotations

from typing import Optional

from bot_orchestrator.core.models import BotStatus, RuntimeState, StatusReport, StatusView


def _reported_status(
    persisted: BotStatus,
    instance_id: Optional[str],
    runtime: Optional[StatusView],
) -> BotStatus:
    if not instance_id:
        # running without an instance is a broken record
        return BotStatus.ERROR if persisted == BotStatus.RUNNING else persisted

    if persisted == BotStatus.DEPLOYING:
        return BotStatus.DEPLOYING

    if runtime is None or runtime.status == RuntimeState.UNKNOWN:
        return persisted

    if runtime.status == RuntimeState.NOT_FOUND:
        return BotStatus.ERROR

    if runtime.status == RuntimeState.RUNNING:
        return BotStatus.ERROR if persisted == BotStatus.ERROR else BotStatus.RUNNING

    # engine says stopped
    if persisted == BotStatus.RUNNING:
        crashed = bool(runtime.exit_code) or bool(runtime.last_error)
        return BotStatus.ERROR if crashed else BotStatus.STOPPED
    return persisted


def reconcile(
    persisted: BotStatus,
    instance_id: Optional[str],
    runtime: Optional[StatusView],
) -> StatusReport:
    """
    Compute the externally reported status of a bot.

    Args:
        persisted: Last status stored for the bot.
        instance_id: Stored runtime instance id, None if never deployed.
        runtime: Engine view of the instance; None when the engine could not be asked.

    Returns:
        StatusReport with the reported status, the engine view and a drift flag.
    """
    persisted = BotStatus(persisted)
    status = _reported_status(persisted, instance_id, runtime)
    if runtime is None and instance_id:
        runtime = StatusView(status=RuntimeState.UNKNOWN)
    return StatusReport(status=status, runtime=runtime, drifted=status != persisted)


__all__ = ["reconcile"]
