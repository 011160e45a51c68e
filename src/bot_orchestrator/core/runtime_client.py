"""
Thin typed adapter over the Docker SDK.

This is the only module that talks to ``docker`` directly. SDK and transport
exceptions are translated into the orchestrator error taxonomy here.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import docker
import requests
from docker.errors import APIError, DockerException, ImageNotFound, NotFound
from docker.models.containers import Container

from bot_orchestrator.config import OrchestratorConfig
from bot_orchestrator.errors import InstanceNotFound, RuntimeUnavailable
from bot_orchestrator.utils.logger import logger


def is_conflict(err: APIError) -> bool:
    """True for 409 answers, e.g. a network or volume that already exists."""
    if getattr(err, "status_code", None) == 409:
        return True
    return "already exists" in str(err).lower()


@contextmanager
def translate_errors(instance_id: Optional[str] = None) -> Iterator[None]:
    try:
        yield
    except NotFound as e:
        if instance_id is not None:
            raise InstanceNotFound(instance_id) from e
        raise RuntimeUnavailable(f"Docker resource not found: {e}") from e
    except (APIError, DockerException) as e:
        raise RuntimeUnavailable(f"Docker engine error: {e}") from e
    except requests.exceptions.RequestException as e:
        raise RuntimeUnavailable(f"Docker engine unreachable: {e}") from e


class RuntimeClient:
    def __init__(self, config: OrchestratorConfig, client: Optional[docker.DockerClient] = None) -> None:
        self.config = config
        self.client = client
        if self.client is None:
            self._init_docker_client()

    def _init_docker_client(self, max_retries: int = 3) -> None:
        """Initialize Docker client with retry logic"""
        for attempt in range(max_retries):
            try:
                if self.config.engine_url:
                    self.client = docker.DockerClient(
                        base_url=self.config.engine_url, timeout=self.config.engine_timeout
                    )
                else:
                    self.client = docker.from_env(timeout=self.config.engine_timeout)
                self.client.ping()
                logger.info("Docker client initialized successfully")
                return
            except (DockerException, requests.exceptions.RequestException) as e:
                logger.warning(f"Docker client initialization attempt {attempt + 1}/{max_retries} failed: {e}")
                if attempt < max_retries - 1:
                    time.sleep(2 ** attempt)  # Exponential backoff
                else:
                    logger.error(f"Failed to initialize Docker client after {max_retries} attempts: {e}")
                    raise RuntimeUnavailable(f"Cannot connect to Docker daemon: {e}") from e

    def ping(self) -> bool:
        with translate_errors():
            return bool(self.client.ping())

    # ---------- networks / volumes / images ----------

    def network_exists(self, name: str) -> bool:
        with translate_errors():
            # the name filter matches substrings, so compare exactly
            return any(n.name == name for n in self.client.networks.list(names=[name]))

    def create_network(self, name: str, *, driver: str = "bridge", labels: Optional[Dict[str, str]] = None) -> bool:
        """Create a network; False when it already exists."""
        with translate_errors():
            try:
                self.client.networks.create(name, driver=driver, labels=labels or {})
            except APIError as e:
                if is_conflict(e):
                    return False
                raise
        return True

    def volume_exists(self, name: str) -> bool:
        with translate_errors():
            try:
                self.client.volumes.get(name)
            except NotFound:
                return False
        return True

    def create_volume(self, name: str, *, labels: Optional[Dict[str, str]] = None) -> bool:
        """Create a volume; False when it already exists."""
        with translate_errors():
            try:
                self.client.volumes.create(name=name, labels=labels or {})
            except APIError as e:
                if is_conflict(e):
                    return False
                raise
        return True

    def remove_volume(self, name: str) -> bool:
        with translate_errors():
            try:
                volume = self.client.volumes.get(name)
            except NotFound:
                return False
            volume.remove()
        return True

    def image_exists(self, image: str) -> bool:
        with translate_errors():
            try:
                self.client.images.get(image)
            except ImageNotFound:
                return False
        return True

    def pull_image(self, image: str) -> None:
        with translate_errors():
            self.client.images.pull(image)

    # ---------- containers ----------

    def _get(self, instance_id: str) -> Container:
        with translate_errors(instance_id):
            return self.client.containers.get(instance_id)

    def find_container(self, name_or_id: str) -> Optional[Container]:
        try:
            return self._get(name_or_id)
        except InstanceNotFound:
            return None

    def create_container(
        self,
        *,
        image: str,
        name: str,
        environment: List[str],
        labels: Dict[str, str],
        restart_policy: str,
        network: str,
        binds: List[str],
        mem_limit: int,
        memswap_limit: int,
        command: Optional[List[str]] = None,
    ) -> str:
        with translate_errors():
            container = self.client.containers.create(
                image=image,
                name=name,
                command=command,
                environment=environment,
                labels=labels,
                restart_policy={"Name": restart_policy},
                network=network,
                volumes=binds,
                mem_limit=mem_limit,
                memswap_limit=memswap_limit,
                detach=True,
            )
        return container.id

    def start(self, instance_id: str) -> None:
        container = self._get(instance_id)
        with translate_errors(instance_id):
            container.start()

    def stop(self, instance_id: str, timeout: int) -> None:
        # Docker answers 304 for an already stopped container; the SDK does not raise on it.
        container = self._get(instance_id)
        with translate_errors(instance_id):
            container.stop(timeout=timeout)

    def restart(self, instance_id: str, timeout: int) -> None:
        container = self._get(instance_id)
        with translate_errors(instance_id):
            container.restart(timeout=timeout)

    def remove(self, instance_id: str, *, force: bool = True) -> None:
        container = self._get(instance_id)
        with translate_errors(instance_id):
            container.remove(force=force)

    def inspect_state(self, instance_id: str) -> Dict[str, Any]:
        container = self._get(instance_id)
        return (container.attrs or {}).get("State", {}) or {}

    def logs(self, instance_id: str, tail: int) -> str:
        container = self._get(instance_id)
        with translate_errors(instance_id):
            raw = container.logs(stdout=True, stderr=True, tail=tail, timestamps=True)
        if isinstance(raw, bytes):
            return raw.decode("utf-8", errors="replace")
        return str(raw)

    def stats(self, instance_id: str) -> Dict[str, Any]:
        container = self._get(instance_id)
        with translate_errors(instance_id):
            return container.stats(stream=False)

    def list_labelled(self, label: str) -> List[Container]:
        with translate_errors():
            return self.client.containers.list(all=True, filters={"label": [label]})


__all__ = ["RuntimeClient", "translate_errors", "is_conflict"]
