"""
Container Orchestrator for standing up the backing-service containers.

Every resource is acquired get-or-create by name, so running the pipeline
again against an unchanged daemon creates and starts nothing new.
"""

import asyncio
import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

import docker
from docker import DockerClient
from docker.errors import APIError, DockerException, NotFound
from docker.models.containers import Container
from docker.utils import parse_repository_tag

from wslstack.config import DOCKER_TCP_URL
from wslstack.exceptions import ProvisioningError, RuntimeUnavailableError
from wslstack.services.containers.container_specs import (
    CONTAINER_SPECS,
    IMAGES,
    NETWORK_DRIVER,
    NETWORK_NAME,
    VOLUMES,
    ContainerSpec,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
ProgressCallback = Callable[[str, Dict[str, Any]], None]


def _connect_socket() -> DockerClient:
    return docker.from_env()


def _connect_tcp() -> DockerClient:
    return docker.DockerClient(base_url=DOCKER_TCP_URL)


@dataclass
class FinalizeReport:
    """Summary of a finalize run."""

    container_ids: Dict[str, str] = field(default_factory=dict)
    created: List[str] = field(default_factory=list)
    started: List[str] = field(default_factory=list)
    pulled: List[str] = field(default_factory=list)


class ContainerOrchestrator:
    """Ensures the network, volumes and containers of the fixed topology exist and run."""

    def __init__(
        self,
        socket_connector: Callable[[], DockerClient] = _connect_socket,
        tcp_connector: Callable[[], DockerClient] = _connect_tcp,
        images: Sequence[str] = IMAGES,
        network_name: str = NETWORK_NAME,
        volumes: Sequence[str] = VOLUMES,
        specs: Sequence[ContainerSpec] = CONTAINER_SPECS,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        self.socket_connector = socket_connector
        self.tcp_connector = tcp_connector
        self.images = list(images)
        self.network_name = network_name
        self.volumes = list(volumes)
        self.specs = list(specs)
        self.progress_callback = progress_callback

    async def _call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a blocking docker SDK call off the event loop."""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))

    async def connect(self) -> DockerClient:
        """
        Connect to the docker daemon over the default socket, falling back to TCP.

        Raises:
            RuntimeUnavailableError: Neither endpoint answered a ping
        """
        client: Optional[DockerClient] = None
        try:
            client = await self._call(self.socket_connector)
            await self._call(client.ping)
            logger.info("Docker connection successful via socket")
            return client
        except Exception as e:
            logger.info(f"Socket connection failed ({e}), trying TCP...")
            await self._close(client)

        client = None
        try:
            client = await self._call(self.tcp_connector)
            await self._call(client.ping)
            logger.info("Docker connection successful via TCP")
            return client
        except Exception as e:
            logger.error(f"Docker connection failed: {e}")
            await self._close(client)
            raise RuntimeUnavailableError() from e

    async def _close(self, client: Optional[DockerClient]) -> None:
        if client is None:
            return
        try:
            await self._call(client.close)
        except Exception as e:
            logger.debug(f"Error closing docker client: {e}")

    def _pull_blocking(self, client: DockerClient, image: str) -> None:
        repository, tag = parse_repository_tag(image)
        for event in client.api.pull(
            repository, tag=tag or "latest", stream=True, decode=True
        ):
            if "error" in event:
                raise ProvisioningError(f"Failed to pull {image}: {event['error']}")

            status = event.get("status")
            if status and event.get("id"):
                logger.info(f"{status} ({event['id']})")
            elif status:
                logger.info(status)

            if self.progress_callback:
                self.progress_callback(image, event)

    async def pull_image(self, client: DockerClient, image: str) -> None:
        """Pull an image, reporting every progress line."""
        logger.info(f"Pulling image {image}")
        await self._call(self._pull_blocking, client, image)
        logger.info(f"Successfully pulled image: {image}")

    async def ensure_network(self, client: DockerClient, name: str) -> Any:
        try:
            network = await self._call(client.networks.get, name)
            logger.debug(f"Network {name} already exists")
        except NotFound:
            logger.info(f"Creating {NETWORK_DRIVER} network {name}")
            network = await self._call(
                client.networks.create, name, driver=NETWORK_DRIVER
            )
        return network

    async def ensure_volume(self, client: DockerClient, name: str) -> Any:
        try:
            volume = await self._call(client.volumes.get, name)
            logger.debug(f"Volume {name} already exists")
        except NotFound:
            logger.info(f"Creating volume {name}")
            volume = await self._call(client.volumes.create, name=name)
        return volume

    async def find_container(
        self, client: DockerClient, name: str
    ) -> Optional[Container]:
        """Find a container, running or not, whose name matches exactly."""
        # The daemon's name filter is a regex over names with a leading slash
        containers = await self._call(
            client.containers.list, all=True, filters={"name": f"^/{name}$"}
        )
        for container in containers:
            if container.name == name:
                return container
        return None

    async def get_or_create_container(
        self, client: DockerClient, spec: ContainerSpec
    ) -> Tuple[Container, bool]:
        """
        Get a container by name, creating it from its spec when missing.

        Returns:
            The container and whether it was created by this call
        """
        try:
            container = await self.find_container(client, spec.name)
            if container is not None:
                logger.info(f"Found existing container {spec.name} with ID: {container.id}")
                return container, False

            host_config = client.api.create_host_config(**spec.host_config_kwargs())
            response = await self._call(
                client.api.create_container, **spec.create_kwargs(host_config)
            )
            container = await self._call(client.containers.get, response["Id"])
            logger.info(f"Created new container {spec.name} with ID: {container.id}")
            return container, True
        except DockerException as e:
            logger.error(f"Error getting or creating container {spec.name}: {e}")
            raise

    async def start_container(self, container: Container) -> bool:
        """
        Start a container, treating "already running" as success.

        Returns:
            True if the container was started, False if it was already running
        """
        if container.status == "running":
            logger.info(f"Container {container.name} is already running")
            return False

        try:
            await self._call(container.start)
            logger.info(f"Container {container.name} started successfully")
            return True
        except APIError as e:
            if e.status_code == 304 or "already started" in str(e).lower():
                logger.info(f"Container {container.name} is already running")
                return False
            logger.error(f"Failed to start container {container.name}: {e}")
            raise

    async def finalize_environment(self) -> FinalizeReport:
        """
        Stand up the backing services.

        Raises:
            RuntimeUnavailableError: The docker daemon is unreachable
        """
        client = await self.connect()
        try:
            return await self._finalize(client)
        finally:
            await self._close(client)

    async def _finalize(self, client: DockerClient) -> FinalizeReport:
        report = FinalizeReport()

        for image in self.images:
            await self.pull_image(client, image)
            report.pulled.append(image)

        await self.ensure_network(client, self.network_name)

        for volume in self.volumes:
            await self.ensure_volume(client, volume)

        containers: List[Container] = []
        for spec in self.specs:
            container, created = await self.get_or_create_container(client, spec)
            containers.append(container)
            report.container_ids[spec.name] = container.id
            if created:
                report.created.append(spec.name)

        for container in containers:
            if await self.start_container(container):
                report.started.append(container.name)

        logger.info(
            f"Environment finalized: {len(report.created)} containers created, "
            f"{len(report.started)} started"
        )
        return report
