"""Per-machine global directory management."""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from ..core.constants import (
    DB_IMPORT_DIR_NAME,
    GLOBAL_CONFIG_FILE_NAME,
    GLOBAL_DIR_ENV,
    GLOBAL_DIR_NAME,
    PROJECTS_DIR_NAME,
    ROUTER_DIR_NAME,
)
from ..core.exceptions import ConfigError
from ..models.config import GlobalConfig

logger = logging.getLogger(__name__)


class GlobalDir:
    """The machine-wide directory holding router and per-project data."""

    def __init__(self, root: Optional[Path] = None):
        """Initialize the global directory, creating it on first use.

        Args:
            root: Directory to use; defaults to $LOCALSITE_HOME or ~/.localsite
        """
        if root is None:
            env_root = os.environ.get(GLOBAL_DIR_ENV)
            root = Path(env_root) if env_root else Path.home() / GLOBAL_DIR_NAME
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.config_file = self.root / GLOBAL_CONFIG_FILE_NAME
        self._config: Optional[GlobalConfig] = None

    @property
    def config(self) -> GlobalConfig:
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def load_config(self) -> GlobalConfig:
        """Load global settings, falling back to defaults when absent."""
        if not self.config_file.exists():
            logger.debug("No global config at %s, using defaults", self.config_file)
            return GlobalConfig()
        try:
            data = yaml.safe_load(self.config_file.read_text()) or {}
            return GlobalConfig(**data)
        except (yaml.YAMLError, ValidationError, TypeError) as e:
            raise ConfigError(f"invalid global configuration in {self.config_file}: {e}") from e

    def save_config(self, config: GlobalConfig) -> None:
        self.config_file.write_text(yaml.safe_dump(config.model_dump(), sort_keys=False))
        self._config = config

    @property
    def projects_root(self) -> Path:
        return self.root / PROJECTS_DIR_NAME

    def project_dir(self, name: str) -> Path:
        """Return the data directory of a project.

        Raises:
            ConfigError: If the name would resolve anywhere but directly under projects/
        """
        path = self.projects_root / name
        if not name or path.resolve().parent != self.projects_root.resolve():
            raise ConfigError(f"'{name}' is not a usable project name", field="name")
        return path

    def import_dir(self, name: str) -> Path:
        return self.project_dir(name) / DB_IMPORT_DIR_NAME

    def ensure_project_dirs(self, name: str) -> Path:
        """Create the per-project import directory and return it."""
        import_dir = self.import_dir(name)
        import_dir.mkdir(parents=True, exist_ok=True)
        return import_dir

    def router_dir(self) -> Path:
        path = self.root / ROUTER_DIR_NAME
        path.mkdir(parents=True, exist_ok=True)
        return path
