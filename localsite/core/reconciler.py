"""Project lifecycle: drives containers toward running, stopped or removed."""

import logging
import os
import shutil
from pathlib import Path
from typing import Iterator, List, Optional

import click

from ..models.config import ProjectConfig
from ..models.status import ProjectRef, ProjectStatus
from ..models.topology import ExecResult
from ..services.exceptions import DockerServiceError, ServiceNotRunningError
from ..utils.config_manager import is_valid_hostname
from ..utils.path_finder import PathFinder
from .constants import DB_SERVICE, LABEL_APPROOT, ROUTER_PROJECT_NAME, WEB_ROOT, WEB_SERVICE
from .exceptions import (
    ConfigError,
    ConfigMissingError,
    ConfigNotFoundError,
    DirMissingError,
    HookExecutionError,
    NameCollisionError,
    PortConflictError,
    ProjectNotFoundError,
    ProviderError,
)
from .hooks import HookRunner
from .importer import Importer
from .settings_files import apply_settings, plan_settings
from .status import StatusEngine
from .topology import project_labels, render

logger = logging.getLogger(__name__)

DOWNLOADS_DIR_NAME = "downloads"


class Reconciler:
    """Computes and executes the actions that bring a project to the requested state.

    Every step is idempotent, so an interrupted operation is recovered by
    running it again. Nothing is rolled back after containers were created;
    they are left in place for diagnosis.
    """

    def __init__(self, registry, runtime, router, config_manager):
        """Initialize the reconciler.

        Args:
            registry: AppTypeRegistry built at process start
            runtime: Runtime adapter, normally a DockerService
            router: RouterManager for the shared router
            config_manager: ConfigManager used to load and validate projects
        """
        self.registry = registry
        self.runtime = runtime
        self.router = router
        self.config_manager = config_manager
        self.global_dir = config_manager.global_dir
        self.status = StatusEngine(runtime, config_manager, router)
        self.importer = Importer(runtime, self.global_dir)

    def load_project(self, approot) -> ProjectConfig:
        """Load a project for an operation that needs its files.

        Raises:
            DirMissingError: If the directory does not exist
            ConfigMissingError: If there is no configuration in it
        """
        path = PathFinder.resolve(approot)
        if not path.is_dir():
            raise DirMissingError(str(path))
        try:
            return self.config_manager.load(path)
        except ConfigNotFoundError as e:
            raise ConfigMissingError(str(path)) from e

    def check_collision(self, config: ProjectConfig) -> None:
        """Reject a start when a project with the same name is running elsewhere.

        Raises:
            NameCollisionError: Naming both approots
        """
        for state in self.runtime.find_by_labels(project_labels(config.name)):
            other = state.label(LABEL_APPROOT)
            if state.running and other and os.path.normpath(other) != os.path.normpath(config.approot):
                raise NameCollisionError(config.name, other, config.approot)

    def check_name(self, name: str) -> None:
        """Reject a name that cannot belong to a project before anything is removed.

        Raises:
            ConfigError: If the name is not a hostname label or is reserved
        """
        if name == ROUTER_PROJECT_NAME or not is_valid_hostname(f"{name}.{self.global_dir.config.tld}"):
            raise ConfigError(f"'{name}' is not a valid project name", field="name")

    def approot_for(self, ref: ProjectRef) -> str:
        """Return the approot of a project, looking it up by labels if needed."""
        if ref.approot:
            return ref.approot
        return self.status.locate(ref).approot

    def start(self, approot) -> ProjectStatus:
        """Bring a project to the running state.

        Raises:
            DirMissingError, ConfigMissingError: Before anything is touched
            ConfigError: If the configuration fails validation
            NameCollisionError: If the name is running at another approot
            HookExecutionError: If a pre-start or post-start task fails
            DockerServiceError: If the runtime fails
        """
        config = self.load_project(approot)
        self.config_manager.validate(config)
        self.check_collision(config)

        settings = self.global_dir.config
        handler = self.registry.get(config.type)
        plan = plan_settings(config, handler, f"https://{config.hostname(settings.tld)}")
        if plan is not None:
            for path in apply_settings(plan):
                logger.info("Generated settings file %s", path)

        import_dir = self.global_dir.ensure_project_dirs(config.name)
        descriptor = render(config, import_dir, settings.tld)

        hooks = HookRunner(self.runtime, config)
        try:
            self.runtime.start(descriptor)
            self.runtime.wait_for_healthy(config.name, settings.health_timeout)
            hooks.run("pre-start")
            hooks.run("post-start")
        except (DockerServiceError, HookExecutionError):
            click.echo(
                f"Warning: containers for {config.name} were left in place for diagnosis; "
                f"run 'localsite stop --remove' or 'localsite cleanup' to remove them",
                err=True,
            )
            raise

        warnings = []
        try:
            self.router.ensure_running()
        except (PortConflictError, DockerServiceError) as e:
            logger.warning("Router unavailable: %s", e)
            warnings.append(f"the router could not be started, {config.name} is only reachable "
                            f"on its direct ports: {e}")

        status = self.status.describe(ProjectRef(name=config.name, approot=config.approot))
        status.warnings.extend(warnings)
        return status

    def _release_router(self) -> None:
        try:
            self.router.stop_if_idle()
        except DockerServiceError as e:
            logger.warning("Unable to update the router: %s", e)

    def stop(self, ref: ProjectRef, remove_data: bool = False, remove: bool = False) -> str:
        """Stop a project, found purely by its labels.

        Works when the project directory is gone. Without ``remove`` the
        containers are kept so a later start is fast; with ``remove`` or
        ``remove_data`` they are removed, and ``remove_data`` also deletes
        the database volume and the project's global directory.

        Returns:
            The project name

        Raises:
            ProjectNotFoundError: If no containers or config identify the project
        """
        if ref.name:
            self.check_name(ref.name)
        located = self.status.locate(ref)
        name = located.name
        self.check_name(name)
        if remove or remove_data:
            removed = self.runtime.stop(name, remove_data=remove_data)
            logger.info("Removed %d container(s) for %s", removed, name)
            if remove_data:
                shutil.rmtree(self.global_dir.project_dir(name), ignore_errors=True)
        else:
            stopped = self.runtime.halt(name)
            logger.info("Stopped %d container(s) for %s", stopped, name)
        self._release_router()
        return name

    def cleanup(self, ref: ProjectRef) -> int:
        """Force-remove every labeled container and volume of a project.

        Needs no topology or project files, only a name.

        Returns:
            Number of containers removed

        Raises:
            ConfigError: If the name is not a valid project name
        """
        name = ref.name
        if not name and ref.approot:
            try:
                name = self.config_manager.load(ref.approot).name
            except ConfigNotFoundError as e:
                raise ProjectNotFoundError(f"no localsite project was found at {ref.approot}") from e
        if not name:
            raise ProjectNotFoundError("a project name or directory is required")
        self.check_name(name)

        removed = self.runtime.stop(name, remove_data=True)
        shutil.rmtree(self.global_dir.project_dir(name), ignore_errors=True)
        self._release_router()
        return removed

    def describe(self, ref: ProjectRef) -> ProjectStatus:
        return self.status.describe(ref)

    def list(self) -> List[ProjectStatus]:
        return self.status.list()

    def exec(self, ref: ProjectRef, command: str, service: str = WEB_SERVICE,
             interactive: bool = False) -> ExecResult:
        """Run a command in one of a project's running services."""
        located = self.status.locate(ref)
        workdir = WEB_ROOT if service == WEB_SERVICE else None
        return self.runtime.exec(located.name, service, command, interactive=interactive, workdir=workdir)

    def logs(self, ref: ProjectRef, service: str = WEB_SERVICE, follow: bool = False,
             tail: str = "all") -> Iterator[bytes]:
        located = self.status.locate(ref)
        return self.runtime.logs(located.name, service, follow=follow, tail=tail)

    def _require_running(self, config: ProjectConfig) -> None:
        status = self.status.describe(ProjectRef(name=config.name, approot=config.approot))
        db = status.service(DB_SERVICE)
        if db is None or db.state != "running":
            raise ServiceNotRunningError(
                "the project is not running; run 'localsite start' first", project=config.name
            )

    def import_db(self, ref: ProjectRef, src: str, extract_path: Optional[str] = None) -> List[str]:
        """Import a database dump into a running project, with its hooks.

        Returns:
            Names of the imported SQL files
        """
        config = self.load_project(self.approot_for(ref))
        self._require_running(config)
        hooks = HookRunner(self.runtime, config)
        hooks.run("pre-import-db")
        imported = self.importer.import_db(config, src, extract_path)
        hooks.run("post-import-db")
        return imported

    def import_files(self, ref: ProjectRef, src: str, extract_path: Optional[str] = None) -> Path:
        """Import user files into the project's upload directory, with its hooks."""
        config = self.load_project(self.approot_for(ref))
        handler = self.registry.get(config.type)
        hooks = HookRunner(self.runtime, config)
        hooks.run("pre-import-files")
        dest = self.importer.import_files(config, handler, src, extract_path)
        hooks.run("post-import-files")
        return dest

    def pull(self, ref: ProjectRef, skip_db: bool = False, skip_files: bool = False) -> List[str]:
        """Fetch backups from the project's provider and import them.

        The project is started first if it is not running.

        Returns:
            Elements that were imported, e.g. ["db", "files"]

        Raises:
            ProviderError: If the provider cannot supply a backup
        """
        approot = self.approot_for(ref)
        config = self.load_project(approot)
        provider = self.config_manager.load_provider(config)
        if not provider.spec.remote:
            raise ProviderError(
                f"{config.name} uses the {provider.kind.value} provider, which has no remote backups; "
                f"use import-db or import-files instead"
            )
        provider.validate()

        status = self.status.describe(ProjectRef(name=config.name, approot=config.approot))
        if not status.running:
            self.start(approot)

        downloads = self.global_dir.project_dir(config.name) / DOWNLOADS_DIR_NAME
        ref = ProjectRef(name=config.name, approot=config.approot)
        imported = []
        if not skip_db:
            archive = provider.get_backup("db", downloads)
            self.import_db(ref, str(archive))
            imported.append("db")
        if not skip_files:
            archive = provider.get_backup("files", downloads)
            self.import_files(ref, str(archive))
            imported.append("files")
        return imported
