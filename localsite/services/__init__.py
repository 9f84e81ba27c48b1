"""Service layer for localsite."""

from .docker_service import DockerService
from .exceptions import (
    ContainerNotFoundError,
    DockerServiceError,
    ImageNotFoundError,
    RuntimeTimeoutError,
    ServiceError,
    ServiceNotRunningError,
)

__all__ = [
    'DockerService',
    'ServiceError',
    'DockerServiceError',
    'ImageNotFoundError',
    'ContainerNotFoundError',
    'ServiceNotRunningError',
    'RuntimeTimeoutError',
]
