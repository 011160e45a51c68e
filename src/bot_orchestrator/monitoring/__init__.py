"""
Monitoring module for Bot Orchestrator.

This module reconciles persisted bot status with the engine and records metrics.
"""

from __future__ import annotations

from bot_orchestrator.monitoring.health_monitor import run_forever, sample_once

__all__ = ["run_forever", "sample_once"]
