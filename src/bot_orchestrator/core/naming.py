"""Deterministic runtime resource names derived from a bot id."""

from __future__ import annotations

import re

from bot_orchestrator.core.models import ResourceNames
from bot_orchestrator.errors import InvalidBotId

INSTANCE_PREFIX = "bot-"
VOLUME_PREFIX = "bot-data-"

# Docker accepts [a-zA-Z0-9][a-zA-Z0-9_.-]* for container and volume names.
_BOT_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


def validate_bot_id(bot_id: str) -> str:
    if not bot_id or not _BOT_ID_RE.match(bot_id):
        raise InvalidBotId(f"invalid bot id {bot_id!r}", bot_id=bot_id or None)
    return bot_id


def instance_name_for(bot_id: str) -> str:
    return INSTANCE_PREFIX + validate_bot_id(bot_id)


def volume_name_for(bot_id: str) -> str:
    return VOLUME_PREFIX + validate_bot_id(bot_id)


def derive_names(bot_id: str) -> ResourceNames:
    return ResourceNames(
        instance_name=instance_name_for(bot_id),
        volume_name=volume_name_for(bot_id),
    )


__all__ = ["validate_bot_id", "instance_name_for", "volume_name_for", "derive_names"]
