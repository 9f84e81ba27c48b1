"""Container stack descriptor and runtime state models."""

import hashlib
import json
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional, Tuple

from ..core.constants import LABEL_CONFIG_HASH


@dataclass
class ServiceSpec:
    """Desired state of one container in a project stack."""
    name: str
    container_name: str
    image: str
    labels: Dict[str, str]
    environment: Dict[str, str] = field(default_factory=dict)
    ports: Dict[str, Optional[int]] = field(default_factory=dict)  # "80/tcp" -> host port, None = any
    binds: Dict[str, Dict[str, str]] = field(default_factory=dict)  # host path -> {bind, mode}
    named_volumes: Dict[str, Dict[str, str]] = field(default_factory=dict)  # volume name -> {bind, mode}
    networks: Dict[str, List[str]] = field(default_factory=dict)  # network -> aliases
    working_dir: Optional[str] = None
    command: Optional[List[str]] = None
    healthcheck: Optional[Dict[str, object]] = None

    def config_hash(self) -> str:
        """Return a stable digest of everything except the hash label itself."""
        data = asdict(self)
        data["labels"] = {k: v for k, v in self.labels.items() if k != LABEL_CONFIG_HASH}
        encoded = json.dumps(data, sort_keys=True).encode("utf-8")
        return hashlib.sha256(encoded).hexdigest()[:16]


@dataclass
class ContainerStackDescriptor:
    """The full desired container stack for a project."""
    project: str
    approot: str
    app_type: str
    network: str
    services: List[ServiceSpec]
    volume_labels: Dict[str, str] = field(default_factory=dict)

    def service(self, name: str) -> Optional[ServiceSpec]:
        for spec in self.services:
            if spec.name == name:
                return spec
        return None

    def volume_names(self) -> List[str]:
        names = []
        for spec in self.services:
            for volume in spec.named_volumes:
                if volume not in names:
                    names.append(volume)
        return names


@dataclass(frozen=True)
class RuntimeContainerState:
    """Observed state of a container as reported by the runtime."""
    id: str
    name: str
    labels: Dict[str, str]
    state: str  # running, exited, paused, restarting, created
    ports: Tuple[Tuple[str, int], ...] = ()  # (container port, host port)
    health: Optional[str] = None

    @property
    def running(self) -> bool:
        return self.state == "running"

    def label(self, key: str, default: str = "") -> str:
        return self.labels.get(key, default)

    def host_port(self, container_port: str) -> Optional[int]:
        for port, host_port in self.ports:
            if port == container_port:
                return host_port
        return None


@dataclass
class ExecResult:
    """Outcome of a command run inside a container."""
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0
