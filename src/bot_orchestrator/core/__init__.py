"""
Core business logic for Bot Orchestrator.

This module contains the container lifecycle logic: naming, provisioning,
the container manager, status reconciliation and metrics.
"""

from __future__ import annotations

from bot_orchestrator.core.container_manager import BotContainerManager
from bot_orchestrator.core.metrics import compute_metrics, metrics_from_stats
from bot_orchestrator.core.naming import derive_names
from bot_orchestrator.core.reconciliation import reconcile

__all__ = [
    "BotContainerManager",
    "compute_metrics",
    "metrics_from_stats",
    "derive_names",
    "reconcile",
]
