"""
Fixed backing-service topology: one bridge network, three named volumes and
four containers (cache, relational store, object store, vector store).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class ContainerSpec:
    """Declarative description of a backing-service container."""

    name: str
    image: str
    network: str
    environment: Tuple[str, ...] = ()
    exposed_ports: Tuple[str, ...] = ()
    port_bindings: Mapping[str, int] = field(default_factory=dict)
    binds: Tuple[str, ...] = ()
    restart_policy: Optional[str] = None
    command: Optional[Tuple[str, ...]] = None
    tty: bool = True

    @property
    def volume_names(self) -> List[str]:
        """Named volumes referenced by the bind list."""
        return [bind.split(":", 1)[0] for bind in self.binds]

    def exposed_port_tuples(self) -> List[Tuple[int, str]]:
        ports = []
        for port in self.exposed_ports:
            number, _, proto = port.partition("/")
            ports.append((int(number), proto or "tcp"))
        return ports

    def host_config_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for APIClient.create_host_config."""
        kwargs: Dict[str, Any] = {"network_mode": self.network}
        if self.binds:
            kwargs["binds"] = list(self.binds)
        if self.port_bindings:
            kwargs["port_bindings"] = dict(self.port_bindings)
        if self.restart_policy:
            kwargs["restart_policy"] = {"Name": self.restart_policy}
        return kwargs

    def create_kwargs(self, host_config: Any) -> Dict[str, Any]:
        """Keyword arguments for APIClient.create_container."""
        kwargs: Dict[str, Any] = {
            "image": self.image,
            "name": self.name,
            "tty": self.tty,
            "host_config": host_config,
        }
        if self.environment:
            kwargs["environment"] = list(self.environment)
        if self.exposed_ports:
            kwargs["ports"] = self.exposed_port_tuples()
        if self.command:
            kwargs["command"] = list(self.command)
        return kwargs


NETWORK_NAME = "donna"
NETWORK_DRIVER = "bridge"

REDIS_IMAGE = "redis:7-alpine"
POSTGRES_IMAGE = "postgres:15"
SEAWEEDFS_IMAGE = "chrislusf/seaweedfs:latest"
QDRANT_IMAGE = "qdrant/qdrant:v1.7.0"

IMAGES = [REDIS_IMAGE, POSTGRES_IMAGE, SEAWEEDFS_IMAGE, QDRANT_IMAGE]

VOLUMES = ["postgres_data", "seaweedfs_data", "qdrant_storage"]

REDIS = ContainerSpec(
    name="redis-test",
    image=REDIS_IMAGE,
    network=NETWORK_NAME,
    exposed_ports=("6379/tcp",),
)

POSTGRES = ContainerSpec(
    name="postgres-test",
    image=POSTGRES_IMAGE,
    network=NETWORK_NAME,
    environment=(
        "POSTGRES_DB=donna",
        "POSTGRES_USER=donna",
        "POSTGRES_PASSWORD=harvey",
    ),
    exposed_ports=("5432/tcp",),
    port_bindings={"5432/tcp": 5432},
    binds=("postgres_data:/var/lib/postgresql/data",),
    restart_policy="unless-stopped",
)

SEAWEEDFS = ContainerSpec(
    name="seaweedfs-test",
    image=SEAWEEDFS_IMAGE,
    network=NETWORK_NAME,
    command=(
        "server",
        "-dir=/data",
        "-ip=seaweedfs",
        "-master.port=9333",
        "-volume.port=8080",
        "-filer.port=8888",
    ),
    exposed_ports=("9333/tcp", "8080/tcp", "8888/tcp"),
    port_bindings={"9333/tcp": 9333, "8080/tcp": 8080, "8888/tcp": 8888},
    binds=("seaweedfs_data:/data",),
    restart_policy="unless-stopped",
)

QDRANT = ContainerSpec(
    name="qdrant",
    image=QDRANT_IMAGE,
    network=NETWORK_NAME,
    exposed_ports=("6333/tcp", "6334/tcp"),
    port_bindings={"6333/tcp": 6333, "6334/tcp": 6334},
    binds=("qdrant_storage:/qdrant/storage",),
)

CONTAINER_SPECS = [REDIS, POSTGRES, SEAWEEDFS, QDRANT]
