"""The shared reverse proxy that fronts every running project."""

import logging
import os
import tempfile
from pathlib import Path
from typing import List

import yaml

from ..models.topology import ContainerStackDescriptor, ServiceSpec
from .constants import (
    LABEL_CONFIG_HASH,
    LABEL_PLATFORM,
    LABEL_SERVICE,
    LABEL_SITE_NAME,
    PLATFORM_TAG,
    ROUTER_CONFIG_FILE,
    ROUTER_CONFIG_MOUNT,
    ROUTER_CONTAINER_NAME,
    ROUTER_IMAGE,
    ROUTER_NETWORK,
    ROUTER_PROJECT_NAME,
    ROUTER_SERVICE,
    WEB_SERVICE,
)
from .exceptions import PortConflictError

logger = logging.getLogger(__name__)

ROUTER_LABELS = {
    LABEL_PLATFORM: PLATFORM_TAG,
    LABEL_SITE_NAME: ROUTER_PROJECT_NAME,
    LABEL_SERVICE: ROUTER_SERVICE,
}


def render_router_config(projects: List[str], tld: str) -> str:
    """Render the Traefik dynamic configuration for a set of project names."""
    routers = {}
    services = {}
    for name in sorted(projects):
        rule = f"Host(`{name}.{tld}`)"
        routers[name] = {"rule": rule, "service": name, "entryPoints": ["web"]}
        routers[f"{name}-secure"] = {
            "rule": rule,
            "service": name,
            "entryPoints": ["websecure"],
            "tls": {},
        }
        services[name] = {"loadBalancer": {"servers": [{"url": f"http://{name}-{WEB_SERVICE}:80"}]}}
    config = {"http": {"routers": routers, "services": services}} if projects else {}
    return yaml.safe_dump(config, sort_keys=True, default_flow_style=False)


def write_atomic(path: Path, content: str) -> None:
    """Replace a file in one step so a watcher never reads a partial write."""
    # Traefik only loads .yaml/.yml/.toml files, so the temp name is ignored
    with tempfile.NamedTemporaryFile("w", dir=str(path.parent), prefix=f".{path.name}.",
                                     suffix=".tmp", delete=False) as f:
        tmp_path = Path(f.name)
        f.write(content)
    try:
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink()
        raise


class RouterManager:
    """Keeps the router container and its routing table in line with running projects."""

    def __init__(self, runtime, global_dir):
        self.runtime = runtime
        self.global_dir = global_dir

    @property
    def config_file(self) -> Path:
        return self.global_dir.router_dir() / ROUTER_CONFIG_FILE

    def descriptor(self) -> ContainerStackDescriptor:
        """Return the one-service stack the router runs as."""
        settings = self.global_dir.config
        spec = ServiceSpec(
            name=ROUTER_SERVICE,
            container_name=ROUTER_CONTAINER_NAME,
            image=ROUTER_IMAGE,
            labels=dict(ROUTER_LABELS),
            ports={"80/tcp": settings.router_http_port, "443/tcp": settings.router_https_port},
            binds={str(self.global_dir.router_dir()): {"bind": ROUTER_CONFIG_MOUNT, "mode": "ro"}},
            networks={ROUTER_NETWORK: []},
            command=[
                "--entrypoints.web.address=:80",
                "--entrypoints.websecure.address=:443",
                f"--providers.file.directory={ROUTER_CONFIG_MOUNT}",
                "--providers.file.watch=true",
            ],
        )
        spec.labels[LABEL_CONFIG_HASH] = spec.config_hash()
        return ContainerStackDescriptor(
            project=ROUTER_PROJECT_NAME,
            approot=str(self.global_dir.router_dir()),
            app_type=ROUTER_SERVICE,
            network=ROUTER_NETWORK,
            services=[spec],
            volume_labels={LABEL_PLATFORM: PLATFORM_TAG},
        )

    def running_projects(self) -> List[str]:
        """Names of projects whose web container is running."""
        names = set()
        for state in self.runtime.find_by_labels({LABEL_PLATFORM: PLATFORM_TAG, LABEL_SERVICE: WEB_SERVICE}):
            if state.running and state.label(LABEL_SITE_NAME):
                names.add(state.label(LABEL_SITE_NAME))
        return sorted(names)

    def _router_state(self):
        states = self.runtime.find_by_labels(ROUTER_LABELS)
        return states[0] if states else None

    def resync(self) -> bool:
        """Rewrite the routing table when the set of running projects changed.

        A running router is restarted only when the file content changes.

        Returns:
            True if the applied configuration changed
        """
        content = render_router_config(self.running_projects(), self.global_dir.config.tld)
        path = self.config_file
        if path.exists() and path.read_text() == content:
            logger.debug("Router configuration unchanged")
            return False

        write_atomic(path, content)
        logger.info("Wrote router configuration %s", path)
        state = self._router_state()
        if state is not None and state.running:
            self.runtime.restart(ROUTER_PROJECT_NAME, ROUTER_SERVICE)
        return True

    def ensure_running(self) -> bool:
        """Resync and start the router if it is not already running.

        Returns:
            True if the routing table changed

        Raises:
            PortConflictError: If a router port is bound by another process
        """
        changed = self.resync()
        state = self._router_state()
        if state is not None and state.running:
            return changed

        settings = self.global_dir.config
        for port in (settings.router_http_port, settings.router_https_port):
            if self.runtime.port_in_use(port):
                raise PortConflictError(port, "the router")
        logger.info("Starting router")
        self.runtime.start(self.descriptor())
        return changed

    def stop_if_idle(self) -> bool:
        """Resync, then remove the router when no project is running.

        Returns:
            True if the router was removed
        """
        self.resync()
        if self.running_projects():
            return False
        if self._router_state() is None:
            return False
        logger.info("No projects running, removing router")
        self.runtime.stop(ROUTER_PROJECT_NAME)
        return True

    def status(self) -> str:
        state = self._router_state()
        if state is None:
            return "not running"
        if state.health and state.health != "healthy":
            return f"{state.state} ({state.health})"
        return state.state
