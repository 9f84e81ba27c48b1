"""Docker service implementing the runtime operations localsite depends on."""

import logging
import socket
import subprocess
import sys
import time
from typing import Dict, Iterator, List, Optional

import docker
import docker.errors
from docker.models.containers import Container

from ..core.constants import (
    HEALTH_POLL_INITIAL,
    HEALTH_POLL_MAX,
    LABEL_CONFIG_HASH,
    LABEL_PLATFORM,
    LABEL_SITE_NAME,
    PLATFORM_TAG,
    STOP_TIMEOUT,
)
from ..core.topology import project_labels
from ..models.topology import (
    ContainerStackDescriptor,
    ExecResult,
    RuntimeContainerState,
    ServiceSpec,
)
from .exceptions import (
    ContainerNotFoundError,
    DockerServiceError,
    ImageNotFoundError,
    RuntimeTimeoutError,
    ServiceNotRunningError,
)

logger = logging.getLogger(__name__)

ACTIVE_STATES = ("running", "restarting", "paused")


def _decode(data: Optional[bytes]) -> str:
    if not data:
        return ""
    return data.decode('utf-8', errors='replace')


class DockerService:
    """Service for Docker operations with clean abstractions."""

    def __init__(self):
        """Initialize Docker service and test connection."""
        try:
            self.client = docker.from_env()
            self.client.ping()
        except docker.errors.DockerException as e:
            if "connection refused" in str(e).lower() or "cannot connect" in str(e).lower():
                raise DockerServiceError(
                    "Docker daemon is not running. Please start Docker Desktop or the Docker service."
                ) from e
            else:
                raise DockerServiceError(f"Failed to connect to Docker: {e}") from e

    @staticmethod
    def to_state(container: Container) -> RuntimeContainerState:
        """Snapshot a container into a RuntimeContainerState."""
        attrs = container.attrs or {}
        port_map = (attrs.get('NetworkSettings') or {}).get('Ports') or {}
        ports = []
        for container_port, bindings in sorted(port_map.items()):
            for binding in bindings or []:
                host_port = binding.get('HostPort')
                if host_port:
                    ports.append((container_port, int(host_port)))
                    break
        health = ((attrs.get('State') or {}).get('Health') or {}).get('Status')
        return RuntimeContainerState(
            id=container.id,
            name=container.name,
            labels=dict(container.labels or {}),
            state=container.status,
            ports=tuple(ports),
            health=health,
        )

    def _list(self, labels: Dict[str, str]) -> List[Container]:
        filters = {'label': [f"{k}={v}" for k, v in labels.items()]}
        return self.client.containers.list(all=True, filters=filters)

    def find_by_labels(self, labels: Dict[str, str]) -> List[RuntimeContainerState]:
        """List containers in any state that carry all of the given labels.

        Raises:
            DockerServiceError: If listing fails
        """
        try:
            return [self.to_state(c) for c in self._list(labels)]
        except docker.errors.APIError as e:
            raise DockerServiceError(
                f"Failed to list containers: {e}", project=labels.get(LABEL_SITE_NAME)
            ) from e

    def _ensure_network(self, name: str, labels: Dict[str, str]) -> None:
        if not self.client.networks.list(names=[name]):
            logger.info("Creating network %s", name)
            self.client.networks.create(name, driver="bridge", labels=labels)

    def _ensure_volume(self, name: str, labels: Dict[str, str]) -> None:
        try:
            self.client.volumes.get(name)
        except docker.errors.NotFound:
            logger.info("Creating volume %s", name)
            self.client.volumes.create(name=name, labels=labels)

    def _ensure_image(self, image: str) -> None:
        try:
            self.client.images.get(image)
        except docker.errors.ImageNotFound:
            logger.info("Pulling image %s", image)
            try:
                self.client.images.pull(image)
            except docker.errors.NotFound as e:
                raise ImageNotFoundError(f"Image '{image}' not found") from e

    def _create(self, spec: ServiceSpec) -> Container:
        self._ensure_image(spec.image)
        volumes = dict(spec.binds)
        volumes.update(spec.named_volumes)
        container = self.client.containers.create(
            image=spec.image,
            name=spec.container_name,
            command=spec.command,
            environment=spec.environment,
            labels=spec.labels,
            ports=spec.ports,
            volumes=volumes,
            working_dir=spec.working_dir,
            healthcheck=spec.healthcheck,
            detach=True,
        )
        for network, aliases in spec.networks.items():
            self.client.networks.get(network).connect(container, aliases=aliases or None)
        logger.info("Created container %s", spec.container_name)
        return container

    def _converge(self, project: str, spec: ServiceSpec) -> None:
        desired_hash = spec.labels.get(LABEL_CONFIG_HASH)
        existing = self._list(project_labels(project, spec.name))

        current = None
        for container in existing:
            if current is None and container.labels.get(LABEL_CONFIG_HASH) == desired_hash \
                    and container.name == spec.container_name:
                current = container
                continue
            logger.info("Replacing outdated container %s", container.name)
            container.remove(force=True)

        if current is None:
            current = self._create(spec)

        if current.status == 'paused':
            current.unpause()
        elif current.status != 'running':
            current.start()

    def start(self, descriptor: ContainerStackDescriptor) -> None:
        """Create missing containers and start every service in a descriptor.

        Running containers are left alone, stopped ones are started and
        containers whose configuration changed are recreated.

        Raises:
            ImageNotFoundError: If an image cannot be found or pulled
            DockerServiceError: If any container operation fails
        """
        project = descriptor.project
        try:
            for spec in descriptor.services:
                for network in spec.networks:
                    labels = descriptor.volume_labels if network == descriptor.network \
                        else {LABEL_PLATFORM: PLATFORM_TAG}
                    self._ensure_network(network, labels)
            for volume in descriptor.volume_names():
                self._ensure_volume(volume, descriptor.volume_labels)
            for spec in descriptor.services:
                self._converge(project, spec)
        except ImageNotFoundError as e:
            raise ImageNotFoundError(str(e), project=project) from e
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to start containers: {e}", project=project) from e

    def halt(self, site_name: str) -> int:
        """Stop a project's containers without removing them.

        Returns:
            Number of containers stopped
        """
        stopped = 0
        try:
            for container in self._list(project_labels(site_name)):
                if container.status not in ACTIVE_STATES:
                    continue
                try:
                    logger.info("Stopping container %s", container.name)
                    if container.status == 'paused':
                        container.unpause()
                    container.stop(timeout=STOP_TIMEOUT)
                    stopped += 1
                except docker.errors.NotFound:
                    logger.debug("Container %s already removed", container.name)
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to stop containers: {e}", project=site_name) from e
        return stopped

    def stop(self, site_name: str, remove_data: bool = False) -> int:
        """Stop and remove a project's containers.

        Containers that are already gone count as success. With remove_data
        the project's labeled volumes and network are removed as well.

        Returns:
            Number of containers removed
        """
        removed = 0
        try:
            for container in self._list(project_labels(site_name)):
                try:
                    logger.info("Removing container %s", container.name)
                    container.remove(force=True, v=remove_data)
                    removed += 1
                except docker.errors.NotFound:
                    logger.debug("Container %s already removed", container.name)

            if remove_data:
                filters = {'label': [f"{k}={v}" for k, v in project_labels(site_name).items()]}
                for volume in self.client.volumes.list(filters=filters):
                    logger.info("Removing volume %s", volume.name)
                    volume.remove(force=True)
                for network in self.client.networks.list(filters=filters):
                    logger.info("Removing network %s", network.name)
                    network.remove()
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to remove containers: {e}", project=site_name) from e
        return removed

    def _service_container(self, site_name: str, service: str) -> Container:
        containers = self._list(project_labels(site_name, service))
        if not containers:
            raise ContainerNotFoundError(f"no {service} container exists", project=site_name)
        return containers[0]

    def exec(self, site_name: str, service: str, command: str,
             interactive: bool = False, workdir: Optional[str] = None) -> ExecResult:
        """Run a shell command in a project's running service container.

        Raises:
            ServiceNotRunningError: If the service is not running
            DockerServiceError: If execution fails
        """
        try:
            container = self._service_container(site_name, service)
            if container.status != 'running':
                raise ServiceNotRunningError(
                    f"the {service} service is not running (state: {container.status})", project=site_name
                )
            if interactive:
                return self._exec_interactive(container.name, command, workdir)
            result = container.exec_run(['sh', '-c', command], demux=True, workdir=workdir)
        except ContainerNotFoundError as e:
            raise ServiceNotRunningError(str(e)) from e
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to execute in container: {e}", project=site_name) from e

        stdout, stderr = result.output if result.output else (None, None)
        return ExecResult(exit_code=result.exit_code, stdout=_decode(stdout), stderr=_decode(stderr))

    def _exec_interactive(self, container_name: str, command: str,
                          workdir: Optional[str] = None) -> ExecResult:
        """Attach the terminal to a command using the docker CLI for proper TTY handling."""
        docker_cmd = ['docker', 'exec', '-i']
        if sys.stdin.isatty():
            docker_cmd.append('-t')
        if workdir:
            docker_cmd.extend(['-w', workdir])
        docker_cmd.extend([container_name, 'sh', '-c', command])
        result = subprocess.run(docker_cmd)
        return ExecResult(exit_code=result.returncode)

    def logs(self, site_name: str, service: str, follow: bool = False,
             tail: str = "all") -> Iterator[bytes]:
        """Stream the logs of a project's service container.

        Raises:
            ContainerNotFoundError: If the service container does not exist
        """
        try:
            container = self._service_container(site_name, service)
            return container.logs(stream=True, follow=follow, tail=tail, stdout=True, stderr=True)
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to read logs: {e}", project=site_name) from e

    def restart(self, site_name: str, service: str) -> None:
        try:
            self._service_container(site_name, service).restart(timeout=STOP_TIMEOUT)
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to restart {service}: {e}", project=site_name) from e

    def wait_for_healthy(self, site_name: str, timeout: float) -> None:
        """Poll with backoff until every project container is running and healthy.

        Raises:
            RuntimeTimeoutError: If the ceiling is reached first
            DockerServiceError: If a container exits while waiting
        """
        deadline = time.monotonic() + timeout
        delay = HEALTH_POLL_INITIAL
        while True:
            states = self.find_by_labels(project_labels(site_name))
            pending = []
            for state in states:
                if state.state in ('exited', 'dead'):
                    raise DockerServiceError(
                        f"container {state.name} exited while starting", project=site_name
                    )
                if not state.running or state.health not in (None, 'healthy'):
                    pending.append(state.name)
            if not pending:
                return
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise RuntimeTimeoutError(
                    f"timed out after {timeout}s waiting for {', '.join(pending)} to become healthy",
                    project=site_name,
                )
            logger.debug("Waiting for %s", ", ".join(pending))
            time.sleep(min(delay, remaining))
            delay = min(delay * 2, HEALTH_POLL_MAX)

    @staticmethod
    def port_in_use(port: int, host: str = "127.0.0.1") -> bool:
        """Check whether something is already listening on a host port."""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.settimeout(0.5)
            return sock.connect_ex((host, port)) == 0
