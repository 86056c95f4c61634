# edge_deployer/backends/docker_backend.py
"""
Container backend.
Loads staged image archives into the local Docker engine and creates
containers from them.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Tuple

import docker
import requests

from edge_deployer.backends.base import Backend
from edge_deployer.core.errors import BackendError
from edge_deployer.core.models import DeployedApp, LifecycleStatus

logger = logging.getLogger(__name__)

LOADED_IMAGE_ID = "Loaded image ID: "
LOADED_IMAGE = "Loaded image: "


def parse_image_name(chunks: Iterable[Dict[str, Any]]) -> Tuple[str, bool]:
    """
    Extract the loaded image name from a decoded ``load_image`` stream.

    Returns:
        (image name, had_tag). ``had_tag`` is True when the archive
        carried its own tag, which must be removed after retagging.

    Raises:
        BackendError: If the stream has no "Loaded image" line
    """
    streams = []
    for chunk in chunks:
        if "error" in chunk:
            raise BackendError(f"docker image load failed: {chunk['error']}")
        if chunk.get("stream"):
            streams.append(chunk["stream"])

    if not streams:
        raise BackendError("failed to parse docker image name: stream empty")

    for line in "".join(streams).splitlines():
        line = line.strip()
        if line.startswith(LOADED_IMAGE_ID):
            return line[len(LOADED_IMAGE_ID):], False
        if line.startswith(LOADED_IMAGE):
            return line[len(LOADED_IMAGE):], True

    raise BackendError("failed to parse docker image name: stream malformed")


class DockerBackend(Backend):
    """Drives the container engine through the docker SDK."""

    def __init__(
        self,
        image_only_mode: bool = False,
        client_factory: Callable[[], docker.DockerClient] = docker.from_env,
    ):
        """
        Args:
            image_only_mode: Stop after loading and tagging the image
            client_factory: Opens a docker client, one per call
        """
        self._image_only_mode = image_only_mode
        self._client_factory = client_factory

    def _open_client(self) -> docker.DockerClient:
        try:
            return self._client_factory()
        except docker.errors.DockerException as e:
            raise BackendError(f"Failed to create a docker client: {e}") from e

    def _close_client(self, client) -> None:
        try:
            client.close()
        except Exception as e:
            logger.error(f"Failed to close docker client: {e}")

    # ============================================
    # DEPLOY
    # ============================================

    def deploy(self, dapp: DeployedApp, image_path: Path) -> str:
        app = dapp.app
        client = self._open_client()
        try:
            self._load_image(client, app.id, image_path)

            if self._image_only_mode:
                logger.info(f"[{app.id}] Image-only mode, no container created")
                return ""

            try:
                container = client.containers.create(
                    image=app.id,
                    name=app.id,
                    detach=True,
                    mem_limit=app.memory * 1024 * 1024,
                    cpu_shares=app.cores,
                    cap_add=["NET_ADMIN"],
                )
            except docker.errors.DockerException as e:
                raise BackendError(f"ContainerCreate failed: {e}") from e

            logger.info(f"[{app.id}] ✅ Created a container with id {container.id}")
            return container.id
        finally:
            self._close_client(client)

    def _load_image(self, client, app_id: str, image_path: Path) -> None:
        """Load the archive and retag it to ``app_id``."""
        try:
            with open(image_path, "rb") as archive:
                chunks = client.api.load_image(archive)
                image_name, had_tag = parse_image_name(chunks)
        except (docker.errors.DockerException, requests.exceptions.RequestException) as e:
            raise BackendError(f"Failed to load the docker image: {e}") from e
        except OSError as e:
            raise BackendError(f"Failed to open image file: {e}") from e

        logger.info(f"Image '{image_name}' retagged to '{app_id}'")
        try:
            if not client.api.tag(image_name, app_id):
                raise BackendError(f"ImageTag({image_name}, {app_id}) refused")
        except docker.errors.DockerException as e:
            raise BackendError(f"ImageTag({image_name}, {app_id}) failed: {e}") from e

        if had_tag and image_name not in (app_id, f"{app_id}:latest"):
            try:
                client.images.remove(image_name)
            except docker.errors.DockerException as e:
                logger.error(f"Failed to remove redundant tag '{image_name}': {e}")

    # ============================================
    # UNDEPLOY
    # ============================================

    def undeploy(self, dapp: DeployedApp) -> None:
        app_id = dapp.app_id
        client = self._open_client()
        try:
            if dapp.deployed_id:
                if dapp.status == LifecycleStatus.RUNNING:
                    logger.warning(f"Removing running container '{dapp.deployed_id}'")
                try:
                    client.api.remove_container(dapp.deployed_id, force=True)
                    logger.info(f"Removed container '{dapp.deployed_id}'")
                except docker.errors.NotFound:
                    logger.warning(f"Container '{dapp.deployed_id}' already gone")
                except docker.errors.DockerException as e:
                    raise BackendError(f"Undeploy({dapp.deployed_id}) failed: {e}") from e
            elif not self._image_only_mode:
                logger.error(f"Could not find container ID for '{app_id}'")

            try:
                client.images.remove(app_id)
                logger.info(f"Docker image '{app_id}' removed")
            except docker.errors.NotFound:
                logger.warning(f"Docker image '{app_id}' already gone")
            except docker.errors.DockerException as e:
                raise BackendError(f"ImageRemove({app_id}) failed: {e}") from e
        finally:
            self._close_client(client)
