"""
Storage module for Bot Orchestrator.

This module provides database storage capabilities using PostgreSQL.
"""

from __future__ import annotations

from bot_orchestrator.storage.postgres_store import PostgresStore

__all__ = ["PostgresStore"]
