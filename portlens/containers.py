"""
Container correlation module for PortLens.

lsof truncates the container runtime's process name, so containers are
identified indirectly: the port seen on the socket is matched against each
running container's published port mappings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from portlens.shell import CommandRunner, CommandTimeoutError, ToolUnavailableError

logger = logging.getLogger(__name__)

# lsof shows Docker Desktop's backend as "com.docker.backend" cut to 9 chars
RUNTIME_MARKER = "com.docke"
CONTAINER_PREFIX = "docker: "
FALLBACK_CONTAINER = "Docker Desktop"
PS_FORMAT = "{{.Names}}: {{.Ports}}"


@dataclass(frozen=True)
class ContainerInfo:
    """A running container and its published port mappings."""
    name: str
    ports: str


def container_key(name: str) -> str:
    """Build the synthetic key that groups a container's ports."""
    return f"{CONTAINER_PREFIX}{name}"


def is_runtime_label(label: str) -> bool:
    """Check if an lsof process label belongs to the container runtime."""
    return label == RUNTIME_MARKER


def parse_container_output(output: str) -> List[ContainerInfo]:
    """
    Parse "docker ps --format '{{.Names}}: {{.Ports}}'" output.

    Args:
        output: Raw docker output

    Returns:
        One ContainerInfo per non-empty line
    """
    containers: List[ContainerInfo] = []
    for line in output.splitlines():
        if not line.strip():
            continue
        name, _, ports = line.partition(":")
        containers.append(ContainerInfo(name=name.strip(), ports=ports.strip()))
    return containers


def match_container(port: int, containers: Sequence[ContainerInfo]) -> Optional[str]:
    """
    Find the container publishing a host port.

    Args:
        port: Host port observed on the socket
        containers: Running containers

    Returns:
        Name of the first matching container, or None
    """
    needles = (f":{port}->", f"0.0.0.0:{port}->")
    for container in containers:
        if any(needle in container.ports for needle in needles):
            return container.name
    return None


class ContainerCorrelator:
    """Queries the container runtime and maps host ports to containers."""

    def __init__(self, runner: CommandRunner, binary: str = "docker") -> None:
        self._runner = runner
        self._binary = binary

    @property
    def available(self) -> bool:
        """Check if the runtime CLI is installed, without running it."""
        return self._runner.which(self._binary) is not None

    def list_containers(self) -> List[ContainerInfo]:
        """
        List running containers with their port mappings.

        Returns:
            Containers, or an empty list when the runtime is absent,
            its daemon is not running, or it does not answer in time
        """
        if not self.available:
            return []

        try:
            result = self._runner.run([self._binary, "ps", "--format", PS_FORMAT])
        except (ToolUnavailableError, CommandTimeoutError) as e:
            logger.warning("Container listing unavailable: %s", e)
            return []

        if not result.ok:
            logger.debug("%s ps failed: %s", self._binary, result.stderr.strip())
            return []

        return parse_container_output(result.stdout)

    def resolve(self, port: int, containers: Sequence[ContainerInfo]) -> str:
        """Get the container name for a port, falling back to a generic label."""
        return match_container(port, containers) or FALLBACK_CONTAINER
