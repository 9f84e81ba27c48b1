"""Project configuration management utilities."""

import logging
import os
import re
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from ..core.app_types import AppTypeRegistry
from ..core.constants import (
    CONFIG_FILE_NAME,
    DATA_DIR_NAME,
    DBA_IMAGE,
    DB_IMAGE,
    HOOK_PHASES,
    HOOK_TASK_KEYS,
    PROVIDER_FILE_NAME,
    ROUTER_PROJECT_NAME,
    WEB_IMAGE,
)
from ..core.exceptions import ConfigError, ConfigNotFoundError
from ..core.providers import Provider, get_provider
from ..core.settings_templates import HOOK_TEMPLATE
from ..models.config import AppType, ProjectConfig
from .global_dir import GlobalDir

logger = logging.getLogger(__name__)

# RFC 1123 hostname
HOSTNAME_PATTERN = re.compile(
    r"^(([a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9\-]*[a-zA-Z0-9])\.)*"
    r"([A-Za-z0-9]|[A-Za-z0-9][A-Za-z0-9\-]*[A-Za-z0-9])$"
)


def is_valid_hostname(hostname: str) -> bool:
    return bool(HOSTNAME_PATTERN.match(hostname))


def validate_hooks(hooks) -> None:
    """Check hook phases and task keys before the model is built.

    Raises:
        ConfigError: On an unknown phase or task key
    """
    if hooks is None:
        return
    if not isinstance(hooks, dict):
        raise ConfigError("hooks must be a mapping of phase to task list", field="hooks")
    for phase, tasks in hooks.items():
        if phase not in HOOK_PHASES:
            raise ConfigError(f"invalid command hook {phase} defined in {CONFIG_FILE_NAME}", field="hooks")
        if not isinstance(tasks, list):
            raise ConfigError(f"the {phase} hook must be a list of tasks", field="hooks")
        for task in tasks:
            if not isinstance(task, dict):
                raise ConfigError(f"invalid task '{task}' defined for {phase} hook in {CONFIG_FILE_NAME}",
                                  field="hooks")
            for key in task:
                if key not in HOOK_TASK_KEYS:
                    raise ConfigError(
                        f"invalid task '{key}' defined for {phase} hook in {CONFIG_FILE_NAME}",
                        field="hooks",
                    )


class ConfigManager:
    """Loads, validates and saves project descriptors."""

    def __init__(self, registry: AppTypeRegistry, global_dir: GlobalDir):
        """Initialize config manager."""
        self.registry = registry
        self.global_dir = global_dir

    @staticmethod
    def config_path(approot) -> Path:
        return Path(approot) / DATA_DIR_NAME / CONFIG_FILE_NAME

    def exists(self, approot) -> bool:
        return self.config_path(approot).exists()

    def new_config(self, approot, name: Optional[str] = None, app_type=None,
                   docroot: str = "", provider=None) -> ProjectConfig:
        """Create an unsaved config for a directory, detecting the app type if not given."""
        approot = Path(os.path.abspath(approot))
        if app_type is None:
            app_type = self.registry.detect(approot / docroot)
        config = ProjectConfig(
            name=name or approot.name,
            type=AppType(app_type),
            docroot=docroot,
            approot=str(approot),
        )
        if provider is not None:
            config.provider = get_provider(provider).kind
        return config

    def load(self, approot) -> ProjectConfig:
        """Load the descriptor for a project, applying defaults.

        Raises:
            ConfigNotFoundError: If no descriptor exists
            ConfigError: If the descriptor cannot be read or is invalid
        """
        approot = Path(os.path.abspath(approot))
        path = self.config_path(approot)
        if not path.exists():
            raise ConfigNotFoundError(
                f"could not find a localsite configuration at {path}; have you run 'localsite config'?"
            )
        try:
            data = yaml.safe_load(path.read_text())
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"{path} exists but cannot be read: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path} does not contain a configuration mapping")

        try:
            validate_hooks(data.get("hooks"))
        except ConfigError as e:
            raise ConfigError(f"invalid configuration in {path}: {e.reason}", field=e.field) from e

        data.pop("approot", None)
        try:
            config = ProjectConfig(**data, approot=str(approot))
        except ValidationError as e:
            raise ConfigError(f"invalid configuration in {path}: {e}") from e

        if not config.name:
            config.name = approot.name
        if not config.webimage:
            config.webimage = WEB_IMAGE
        if not config.dbimage:
            config.dbimage = DB_IMAGE
        if not config.dbaimage:
            config.dbaimage = DBA_IMAGE
        return config

    def load_provider(self, config: ProjectConfig) -> Provider:
        provider = get_provider(config.provider)
        provider.read(config.config_dir / PROVIDER_FILE_NAME)
        return provider

    def validate(self, config: ProjectConfig) -> None:
        """Check a config against localsite's requirements.

        Raises:
            ConfigError: Naming the offending field
        """
        docroot = config.docroot_path
        if not docroot.is_dir():
            raise ConfigError(
                f"no directory could be found at {docroot}. Please enter a valid docroot in your configuration",
                field="docroot",
            )

        hostname = config.hostname(self.global_dir.config.tld)
        if not is_valid_hostname(hostname):
            raise ConfigError(
                f"{hostname} is not a valid hostname. Please enter a project name in your configuration "
                f"that will allow for a valid hostname. See "
                f"https://en.wikipedia.org/wiki/Hostname#Restrictions_on_valid_hostnames",
                field="name",
            )
        if config.name == ROUTER_PROJECT_NAME:
            raise ConfigError(f"'{config.name}' is reserved for the router", field="name")

        if config.type.value not in self.registry.types():
            raise ConfigError(f"'{config.type.value}' is not a valid apptype", field="type")

    def save(self, config: ProjectConfig, provider: Optional[Provider] = None) -> Path:
        """Write the descriptor, followed by commented hook examples.

        Returns:
            Path of the written descriptor
        """
        config.config_dir.mkdir(parents=True, exist_ok=True)

        text = yaml.safe_dump(config.to_dict(), sort_keys=False, default_flow_style=False)
        text += HOOK_TEMPLATE + self.registry.get(config.type).hook_examples
        config.config_path.write_text(text)
        logger.info("Wrote %s", config.config_path)

        provider = provider or get_provider(config.provider)
        provider.write(config.config_dir / PROVIDER_FILE_NAME)
        return config.config_path

    @staticmethod
    def find_approot(start) -> Path:
        """Find the project root at or above a directory.

        Raises:
            ConfigNotFoundError: If no parent holds a descriptor
        """
        current = Path(os.path.abspath(start))
        for candidate in [current, *current.parents]:
            if (candidate / DATA_DIR_NAME / CONFIG_FILE_NAME).exists():
                return candidate
        raise ConfigNotFoundError(
            f"no {DATA_DIR_NAME}/{CONFIG_FILE_NAME} file was found in this directory or any parent"
        )
