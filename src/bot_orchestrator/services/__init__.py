"""
Services module for Bot Orchestrator.

This module provides the bot lifecycle service used by the API, CLI and monitor.
"""

from __future__ import annotations

from bot_orchestrator.services.bot_service import BotService, build_service

__all__ = ["BotService", "build_service"]
