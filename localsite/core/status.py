"""Composes project status from configuration and observed container state."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ..models.config import ProjectConfig
from ..models.status import ProjectRef, ProjectStatus, ServiceStatus, SiteState
from ..models.topology import RuntimeContainerState
from ..services.exceptions import DockerServiceError
from ..utils.path_finder import PathFinder
from .constants import (
    LABEL_APP_TYPE,
    LABEL_APPROOT,
    LABEL_PLATFORM,
    LABEL_SERVICE,
    LABEL_SITE_NAME,
    PLATFORM_TAG,
    ROUTER_PROJECT_NAME,
    WEB_SERVICE,
)
from .exceptions import ConfigNotFoundError, LocalsiteError, ProjectNotFoundError
from .topology import project_labels

logger = logging.getLogger(__name__)


@dataclass
class LocatedProject:
    """What could be found out about a project from its ref, labels and files."""
    name: str
    approot: str
    config: Optional[ProjectConfig] = None
    containers: List[RuntimeContainerState] = field(default_factory=list)

    @property
    def dir_exists(self) -> bool:
        return bool(self.approot) and Path(self.approot).is_dir()

    def label(self, key: str) -> str:
        for state in self.containers:
            if state.label(key):
                return state.label(key)
        return ""


def site_state(containers: List[RuntimeContainerState]) -> SiteState:
    """Collapse per-service container states into one project state."""
    if not containers:
        return SiteState.NOT_FOUND
    states = [c.state for c in containers]
    if all(s == "running" for s in states):
        return SiteState.RUNNING
    if any(s == "paused" for s in states):
        return SiteState.PAUSED
    return SiteState.STOPPED


class StatusEngine:
    """Answers describe and list. Never changes anything."""

    def __init__(self, runtime, config_manager, router):
        self.runtime = runtime
        self.config_manager = config_manager
        self.router = router

    @property
    def tld(self) -> str:
        return self.config_manager.global_dir.config.tld

    def _load(self, approot: str) -> Optional[ProjectConfig]:
        if not approot or not Path(approot).is_dir():
            return None
        try:
            return self.config_manager.load(approot)
        except ConfigNotFoundError:
            return None

    def locate(self, ref: ProjectRef) -> LocatedProject:
        """Resolve a ref to a name, approot, config and containers.

        A missing directory is not an error; the approot then comes from labels.

        Raises:
            ProjectNotFoundError: If neither containers nor a config identify the project
            ConfigError: If the project's config exists but is invalid
        """
        approot = ref.approot or ""
        config = self._load(approot)
        name = ref.name or (config.name if config else "")
        if not name:
            raise ProjectNotFoundError(f"no localsite project was found at {approot}")

        containers = self.runtime.find_by_labels(project_labels(name))
        if not approot and containers:
            approot = containers[0].label(LABEL_APPROOT)
            config = self._load(approot)

        if not containers and config is None:
            raise ProjectNotFoundError(f"could not find a project named '{name}'")
        return LocatedProject(name=name, approot=approot, config=config, containers=containers)

    def compose(self, located: LocatedProject, router_state: Optional[str] = None) -> ProjectStatus:
        """Build a ProjectStatus from a located project."""
        config = located.config
        if not located.dir_exists:
            state = SiteState.DIR_MISSING
        elif config is None:
            state = SiteState.CONFIG_MISSING
        else:
            state = site_state(located.containers)

        services = []
        for container in sorted(located.containers, key=lambda c: c.label(LABEL_SERVICE)):
            services.append(ServiceStatus(
                name=container.label(LABEL_SERVICE) or container.name,
                state=container.state,
                ports=dict(container.ports),
            ))

        status = ProjectStatus(
            name=located.name,
            type=config.type.value if config else located.label(LABEL_APP_TYPE),
            approot=located.approot,
            state=state,
            url=f"https://{located.name}.{self.tld}",
            shortroot=PathFinder.shorten_home(located.approot),
            services=services,
            router_state=router_state,
        )
        if state == SiteState.STOPPED and any(s.state == "running" for s in services):
            stopped = ", ".join(s.name for s in services if s.state != "running")
            status.warnings.append(f"some services are not running: {stopped}")
        return status

    def describe(self, ref: ProjectRef) -> ProjectStatus:
        """Describe one project, computed fresh from files and containers.

        Raises:
            ProjectNotFoundError: If the project cannot be identified
            ConfigError: If its configuration is invalid
        """
        located = self.locate(ref)
        return self.compose(located, self.router.status())

    def _degraded(self, name: str, labels: Dict[str, str], error: Exception,
                  router_state: Optional[str]) -> ProjectStatus:
        approot = labels.get(LABEL_APPROOT, "")
        return ProjectStatus(
            name=name,
            type=labels.get(LABEL_APP_TYPE, ""),
            approot=approot,
            state=SiteState.NOT_FOUND,
            url=f"https://{name}.{self.tld}",
            shortroot=PathFinder.shorten_home(approot),
            router_state=router_state,
            degraded=True,
            error=str(error),
        )

    def list(self) -> List[ProjectStatus]:
        """Describe every project with a web container, in name order.

        A project that fails to describe is reported as a degraded entry
        built from its container labels instead of failing the listing.
        """
        web_containers = self.runtime.find_by_labels({LABEL_PLATFORM: PLATFORM_TAG, LABEL_SERVICE: WEB_SERVICE})
        projects: Dict[str, Dict[str, str]] = {}
        for state in web_containers:
            name = state.label(LABEL_SITE_NAME)
            if name and name != ROUTER_PROJECT_NAME and name not in projects:
                projects[name] = state.labels

        router_state = self.router.status()
        entries = []
        for name in sorted(projects):
            labels = projects[name]
            try:
                located = self.locate(ProjectRef(name=name, approot=labels.get(LABEL_APPROOT) or None))
                entries.append(self.compose(located, router_state))
            except (LocalsiteError, DockerServiceError) as e:
                logger.warning("Unable to describe %s: %s", name, e)
                entries.append(self._degraded(name, labels, e, router_state))
        return entries
