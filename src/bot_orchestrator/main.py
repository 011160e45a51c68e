"""
Main entry point for Bot Orchestrator server.

This module starts both the API server and health monitor.
"""

from __future__ import annotations

import multiprocessing
import signal
import sys
from typing import Optional

from bot_orchestrator.config import OrchestratorConfig


def run_api_server(config: OrchestratorConfig) -> None:
    """Run the API server in a separate process."""
    import uvicorn

    from bot_orchestrator.api.app import app
    from bot_orchestrator.utils.logger import logger

    logger.info(f"Starting API server on {config.api_host}:{config.api_port}...")
    uvicorn.run(
        app,
        host=config.api_host,
        port=config.api_port,
        log_level="info",
        access_log=True
    )


def run_health_monitor(config: OrchestratorConfig) -> None:
    """Run the health monitor in a separate process."""
    from bot_orchestrator.monitoring.health_monitor import run_forever
    from bot_orchestrator.utils.logger import logger

    logger.info("Starting health monitor...")
    run_forever(config)


def run(config: Optional[OrchestratorConfig] = None) -> None:
    """
    Main entry point that runs both API server and health monitor.

    This function starts both components in separate processes and handles
    graceful shutdown on SIGINT/SIGTERM.
    """
    from bot_orchestrator.utils.logger import logger

    config = config or OrchestratorConfig.from_env()
    logger.info("Starting Bot Orchestrator...")

    api_process = multiprocessing.Process(target=run_api_server, args=(config,), name="api-server")
    monitor_process = multiprocessing.Process(target=run_health_monitor, args=(config,), name="health-monitor")

    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, shutting down...")

        if api_process.is_alive():
            logger.info("Stopping API server...")
            api_process.terminate()
            api_process.join(timeout=5)

        if monitor_process.is_alive():
            logger.info("Stopping health monitor...")
            monitor_process.terminate()
            monitor_process.join(timeout=5)

        logger.info("Shutdown complete")
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        logger.info("Starting API server process...")
        api_process.start()

        logger.info("Starting health monitor process...")
        monitor_process.start()

        logger.info("Bot Orchestrator is running. Press Ctrl+C to stop.")

        api_process.join()
        monitor_process.join()

    except KeyboardInterrupt:
        signal_handler(signal.SIGINT, None)
    except Exception as e:
        logger.error(f"Error in main process: {e}")
        signal_handler(signal.SIGTERM, None)


if __name__ == "__main__":
    multiprocessing.set_start_method('spawn', force=True)
    run()
