"""
Bot Orchestrator - Container lifecycle management for per-tenant bots.

This package provides:
- Docker container lifecycle management for logical bots
- Deterministic naming and idempotent network/volume provisioning
- Status reconciliation between persisted records and the engine
- PostgreSQL-based bot, deployment history and event storage
- RESTful API and CLI for bot operations
"""

from __future__ import annotations

__version__ = "1.0.0"

# Core exports
from bot_orchestrator.config import OrchestratorConfig
from bot_orchestrator.core.container_manager import BotContainerManager
from bot_orchestrator.services.bot_service import BotService
from bot_orchestrator.storage.postgres_store import PostgresStore
from bot_orchestrator.utils.logger import get_logger

__all__ = [
    "BotContainerManager",
    "BotService",
    "OrchestratorConfig",
    "PostgresStore",
    "get_logger",
    "__version__",
]
