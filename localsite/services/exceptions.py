"""Custom exceptions for service layer."""

from typing import Optional


class ServiceError(Exception):
    """Base exception for all service-related errors."""

    pass


class DockerServiceError(ServiceError):
    """Exception raised for Docker service operations.

    Carries the name of the project the operation acted on, when known.
    """

    def __init__(self, message: str, project: Optional[str] = None):
        self.project = project
        if project:
            message = f"{project}: {message}"
        super().__init__(message)


class ImageNotFoundError(DockerServiceError):
    """Exception raised when a Docker image is not found."""

    pass


class ContainerNotFoundError(DockerServiceError):
    """Exception raised when a Docker container is not found."""

    pass


class ServiceNotRunningError(DockerServiceError):
    """Exception raised when a command targets a service that is not running."""

    pass


class RuntimeTimeoutError(DockerServiceError):
    """Exception raised when containers do not become healthy in time."""

    pass
