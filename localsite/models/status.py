"""Project status models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class SiteState(Enum):
    """Observed lifecycle state of a project."""
    RUNNING = "running"
    STOPPED = "stopped"
    PAUSED = "paused"
    DIR_MISSING = "dir-missing"
    CONFIG_MISSING = "config-missing"
    NOT_FOUND = "not-found"


@dataclass
class ServiceStatus:
    """State of one service container in a project."""
    name: str
    state: str
    ports: Dict[str, int] = field(default_factory=dict)


@dataclass
class ProjectStatus:
    """Composed view of a project, computed fresh on every call."""
    name: str
    type: str
    approot: str
    state: SiteState
    url: str = ""
    shortroot: str = ""
    services: List[ServiceStatus] = field(default_factory=list)
    router_state: Optional[str] = None
    degraded: bool = False
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def running(self) -> bool:
        return self.state == SiteState.RUNNING

    def service(self, name: str) -> Optional[ServiceStatus]:
        for svc in self.services:
            if svc.name == name:
                return svc
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'name': self.name,
            'type': self.type,
            'approot': self.approot,
            'shortroot': self.shortroot,
            'url': self.url,
            'status': self.state.value,
            'services': {
                svc.name: {'state': svc.state, 'ports': dict(svc.ports)}
                for svc in self.services
            },
            'router_status': self.router_state,
            'degraded': self.degraded,
            'error': self.error,
            'warnings': list(self.warnings),
        }


@dataclass(frozen=True)
class ProjectRef:
    """Identifies a project by name, approot or both."""
    name: Optional[str] = None
    approot: Optional[str] = None

    def __str__(self) -> str:
        return self.name or self.approot or "<unknown project>"
