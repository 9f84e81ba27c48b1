"""Exceptions raised by the project lifecycle core."""

from typing import Optional


class LocalsiteError(Exception):
    """Base exception for lifecycle errors."""

    pass


class ConfigError(LocalsiteError):
    """Invalid or unreadable project configuration."""

    def __init__(self, reason: str, field: Optional[str] = None):
        self.field = field
        self.reason = reason
        super().__init__(reason)


class ConfigNotFoundError(ConfigError):
    """No project configuration exists at the expected location."""

    pass


class NameCollisionError(LocalsiteError):
    """Another running project already uses the same name."""

    def __init__(self, name: str, running_approot: str, approot: str):
        self.name = name
        self.running_approot = running_approot
        self.approot = approot
        super().__init__(
            f"a container in running state already exists for {name} that was created "
            f"at {running_approot}; cannot start {approot} with the same name"
        )


class DirMissingError(LocalsiteError):
    """The project directory no longer exists."""

    def __init__(self, approot: str):
        self.approot = approot
        super().__init__(
            f"the project directory {approot} is missing. If you would like to continue "
            f"using localsite to manage this project please restore your files to that directory"
        )


class ConfigMissingError(LocalsiteError):
    """The project directory exists but has no configuration."""

    def __init__(self, approot: str):
        self.approot = approot
        super().__init__(
            f"no project configuration found in {approot}; run 'localsite config' first"
        )


class ProjectNotFoundError(LocalsiteError):
    """No containers and no configuration identify the requested project."""

    pass


class HookExecutionError(LocalsiteError):
    """A hook task failed; the rest of its phase was skipped."""

    def __init__(self, phase: str, index: int, command: str, reason: str):
        self.phase = phase
        self.index = index
        self.command = command
        super().__init__(f"{phase} hook task {index + 1} ({command}) failed: {reason}")


class PortConflictError(LocalsiteError):
    """A port required by the router or a project is already bound."""

    def __init__(self, port: int, owner: str):
        self.port = port
        super().__init__(
            f"port {port} is already in use by another process; {owner} cannot bind to it"
        )


class ImportAssetError(LocalsiteError):
    """The asset given to import-db or import-files cannot be used."""

    pass


class ProviderError(LocalsiteError):
    """A hosting provider operation failed or is unsupported."""

    pass
