"""Models for localsite."""

from .config import AppType, GlobalConfig, HookTask, ProjectConfig, ProviderKind
from .status import ProjectRef, ProjectStatus, ServiceStatus, SiteState
from .topology import (
    ContainerStackDescriptor,
    ExecResult,
    RuntimeContainerState,
    ServiceSpec,
)

__all__ = [
    'AppType',
    'GlobalConfig',
    'HookTask',
    'ProjectConfig',
    'ProviderKind',
    'ProjectRef',
    'ProjectStatus',
    'ServiceStatus',
    'SiteState',
    'ContainerStackDescriptor',
    'ExecResult',
    'RuntimeContainerState',
    'ServiceSpec',
]
