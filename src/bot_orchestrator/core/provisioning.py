from __future__ import annotations

from typing import Dict, Optional

from bot_orchestrator.config import OrchestratorConfig
from bot_orchestrator.core.runtime_client import RuntimeClient
from bot_orchestrator.utils.logger import logger


class ResourceProvisioner:
    """
    Ensure-exists semantics for the shared network, per-bot volumes and the bot image.

    Every ensure call is check-then-create; a create that loses a race to a
    concurrent caller comes back as "already exists" and counts as success.
    """

    def __init__(self, runtime: RuntimeClient, config: OrchestratorConfig) -> None:
        self.runtime = runtime
        self.config = config

    def ensure_network(self) -> None:
        name = self.config.network_name
        if self.runtime.network_exists(name):
            logger.debug(f"Network {name} already exists")
            return
        if self.runtime.create_network(name, driver="bridge", labels={self.config.label_marker: "true"}):
            logger.info(f"Created Docker network: {name}")
        else:
            logger.info(f"Network {name} was created concurrently, reusing it")

    def ensure_volume(self, volume_name: str, labels: Optional[Dict[str, str]] = None) -> None:
        if self.runtime.volume_exists(volume_name):
            logger.debug(f"Reusing data volume {volume_name}")
            return
        if self.runtime.create_volume(volume_name, labels=labels):
            logger.info(f"Created data volume {volume_name}")
        else:
            logger.info(f"Volume {volume_name} was created concurrently, reusing it")

    def ensure_image(self, image: Optional[str] = None) -> None:
        image = image or self.config.image
        if self.runtime.image_exists(image):
            logger.debug(f"Image {image} already exists locally")
            return
        logger.info(f"Pulling image {image}...")
        self.runtime.pull_image(image)
        logger.info(f"Successfully pulled image {image}")

    def remove_volume(self, volume_name: str) -> bool:
        removed = self.runtime.remove_volume(volume_name)
        if removed:
            logger.info(f"Removed data volume {volume_name}")
        else:
            logger.debug(f"Data volume {volume_name} already absent")
        return removed


__all__ = ["ResourceProvisioner"]
