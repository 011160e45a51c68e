from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator

from bot_orchestrator.errors import InvalidSetting

# Environment names the manager always sets; settings may not shadow them.
RESERVED_ENV_KEYS = frozenset({"SECRET_TOKEN", "BOT_ID", "BOT_NAME"})


class BotStatus(str, Enum):
    STOPPED = "stopped"
    DEPLOYING = "deploying"
    RUNNING = "running"
    ERROR = "error"


class RuntimeState(str, Enum):
    RUNNING = "running"
    STOPPED = "stopped"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


class SettingEntry(BaseModel):
    """One validated KEY=VALUE pair injected into a bot's environment."""

    key: str
    value: str

    @field_validator("key")
    @classmethod
    def _check_key(cls, key: str) -> str:
        if not key:
            raise ValueError("setting key must not be empty")
        if "=" in key or "\x00" in key or "\n" in key or "\r" in key:
            raise ValueError(f"setting key {key!r} contains a forbidden character")
        if key in RESERVED_ENV_KEYS:
            raise ValueError(f"setting key {key!r} is reserved")
        return key

    @field_validator("value")
    @classmethod
    def _check_value(cls, value: str) -> str:
        if "\x00" in value or "\n" in value or "\r" in value:
            raise ValueError("setting value contains a null or newline character")
        return value

    def as_env(self) -> str:
        return f"{self.key}={self.value}"


def settings_from_mapping(mapping: Optional[Mapping[str, object]]) -> List[SettingEntry]:
    """Validate a key/value mapping into setting entries ordered by key."""
    if not mapping:
        return []
    entries: List[SettingEntry] = []
    for key, value in sorted(mapping.items()):
        try:
            entries.append(SettingEntry(key=str(key), value="" if value is None else str(value)))
        except ValidationError as e:
            reason = e.errors()[0].get("msg", str(e)) if e.errors() else str(e)
            raise InvalidSetting(f"invalid setting {key!r}: {reason}") from e
    return entries


class LogicalBot(BaseModel):
    bot_id: str
    name: str
    secret: SecretStr
    owner_id: str
    auto_restart: bool = True
    description: Optional[str] = None
    settings: List[SettingEntry] = Field(default_factory=list)
    runtime_instance_id: Optional[str] = None
    runtime_instance_name: Optional[str] = None
    status: BotStatus = BotStatus.STOPPED
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def deployed(self) -> bool:
        return bool(self.runtime_instance_id)

    def settings_dict(self) -> Dict[str, str]:
        return {s.key: s.value for s in self.settings}


class RuntimeRef(BaseModel):
    instance_id: str
    instance_name: str


class ResourceNames(BaseModel):
    instance_name: str
    volume_name: str


class StatusView(BaseModel):
    status: RuntimeState
    started_at: Optional[str] = None
    finished_at: Optional[str] = None
    exit_code: Optional[int] = None
    last_error: Optional[str] = None


class MetricsView(BaseModel):
    cpu_percent: float
    memory_usage_mib: float
    memory_limit_mib: float
    memory_percent: float


class StatusReport(BaseModel):
    status: BotStatus
    runtime: Optional[StatusView] = None
    drifted: bool = False


class ManagedInstance(BaseModel):
    instance_id: str
    instance_name: str
    bot_id: Optional[str] = None
    owner_id: Optional[str] = None
    state: str


class DeploymentRecord(BaseModel):
    bot_id: str
    triggered_by: Optional[str] = None
    outcome: Literal["success", "failed"]
    message: str = ""
    created_at: Optional[datetime] = None


class DeleteResult(BaseModel):
    bot_id: str
    instance_removed: bool = False
    volume_removed: bool = False
    warning: Optional[str] = None


__all__ = [
    "RESERVED_ENV_KEYS",
    "BotStatus",
    "RuntimeState",
    "SettingEntry",
    "settings_from_mapping",
    "LogicalBot",
    "RuntimeRef",
    "ResourceNames",
    "StatusView",
    "MetricsView",
    "StatusReport",
    "ManagedInstance",
    "DeploymentRecord",
    "DeleteResult",
]
