"""
Error taxonomy for Bot Orchestrator.

Every error raised by the core derives from OrchestratorError and carries a
``kind`` the API layer maps to an HTTP status.
"""

from __future__ import annotations

from typing import Optional


class OrchestratorError(Exception):
    kind = "internal"

    def __init__(self, message: str, *, bot_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.bot_id = bot_id


class NotFound(OrchestratorError):
    kind = "not_found"


class BotNotFound(NotFound):
    def __init__(self, bot_id: str) -> None:
        super().__init__(f"Bot '{bot_id}' not found", bot_id=bot_id)


class InstanceNotFound(NotFound):
    def __init__(self, instance_id: str) -> None:
        super().__init__(f"Instance '{instance_id}' not found")
        self.instance_id = instance_id


class Conflict(OrchestratorError):
    kind = "conflict"


class PreconditionFailed(OrchestratorError):
    kind = "precondition_failed"


class RuntimeUnavailable(OrchestratorError):
    """The container engine is unreachable or answered with an error."""

    kind = "runtime_unavailable"


class ProvisioningFailed(OrchestratorError):
    """A deploy failed partway through network/volume/instance construction."""

    kind = "provisioning_failed"


class InvalidSetting(OrchestratorError, ValueError):
    kind = "invalid"


class InvalidBotId(OrchestratorError, ValueError):
    kind = "invalid"


class PersistenceUnavailable(OrchestratorError):
    kind = "persistence_unavailable"


__all__ = [
    "OrchestratorError",
    "NotFound",
    "BotNotFound",
    "InstanceNotFound",
    "Conflict",
    "PreconditionFailed",
    "RuntimeUnavailable",
    "ProvisioningFailed",
    "InvalidSetting",
    "InvalidBotId",
    "PersistenceUnavailable",
]
