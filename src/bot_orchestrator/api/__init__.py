"""
API module for Bot Orchestrator.

This module provides the FastAPI-based REST API for bot lifecycle operations.
"""

from __future__ import annotations

__all__ = ["run_server"]


def run_server(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Run the API server."""
    import uvicorn

    from bot_orchestrator.api.app import app

    uvicorn.run(app, host=host, port=port)
