"""Project and global configuration models."""

from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..core.constants import (
    CONFIG_API_VERSION,
    CONFIG_FILE_NAME,
    DATA_DIR_NAME,
    DBA_IMAGE,
    DB_IMAGE,
    DEFAULT_TLD,
    HEALTH_TIMEOUT,
    WEB_IMAGE,
)


class AppType(str, Enum):
    """Application types a project can be configured as."""
    DRUPAL6 = "drupal6"
    DRUPAL7 = "drupal7"
    DRUPAL8 = "drupal8"
    WORDPRESS = "wordpress"
    GENERIC = "generic"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


class ProviderKind(str, Enum):
    """Hosting providers a project can pull from."""
    DEFAULT = "default"
    PANTHEON = "pantheon"
    ACQUIA = "acquia"
    DDEV_LIVE = "ddev-live"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


class HookTask(BaseModel):
    """A single hook task, run either in the web container or on the host."""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    exec: Optional[str] = None
    exec_host: Optional[str] = Field(None, alias="exec-host")

    @model_validator(mode="after")
    def _exactly_one_command(self) -> "HookTask":
        if (self.exec is None) == (self.exec_host is None):
            raise ValueError("a hook task needs exactly one of 'exec' or 'exec-host'")
        return self

    @property
    def on_host(self) -> bool:
        return self.exec_host is not None

    @property
    def command(self) -> str:
        return self.exec_host if self.on_host else self.exec

    def to_dict(self) -> Dict[str, str]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ProjectConfig(BaseModel):
    """The user-editable project descriptor stored in .localsite/config.yaml."""
    model_config = ConfigDict(use_enum_values=False)

    APIVersion: str = CONFIG_API_VERSION
    name: str = ""
    type: AppType = AppType.GENERIC
    docroot: str = ""
    webimage: str = WEB_IMAGE
    dbimage: str = DB_IMAGE
    dbaimage: str = DBA_IMAGE
    provider: ProviderKind = ProviderKind.DEFAULT
    hooks: Dict[str, List[HookTask]] = Field(default_factory=dict)

    # Where the project lives; never written to the descriptor.
    approot: str = Field("", exclude=True)

    @property
    def config_dir(self) -> Path:
        return Path(self.approot) / DATA_DIR_NAME

    @property
    def config_path(self) -> Path:
        return self.config_dir / CONFIG_FILE_NAME

    @property
    def docroot_path(self) -> Path:
        return Path(self.approot) / self.docroot

    def hostname(self, tld: str = DEFAULT_TLD) -> str:
        """Return the hostname the router serves this project on."""
        return f"{self.name}.{tld}"

    def hook_tasks(self, phase: str) -> List[HookTask]:
        return list(self.hooks.get(phase, []))

    def to_dict(self) -> dict:
        """Convert to the dictionary written to the descriptor file."""
        data = {
            "APIVersion": self.APIVersion,
            "name": self.name,
            "type": self.type.value,
            "docroot": self.docroot,
            "webimage": self.webimage,
            "dbimage": self.dbimage,
            "dbaimage": self.dbaimage,
            "provider": self.provider.value,
        }
        if self.hooks:
            data["hooks"] = {
                phase: [task.to_dict() for task in tasks]
                for phase, tasks in self.hooks.items()
            }
        return data


class GlobalConfig(BaseModel):
    """Machine-wide settings stored in the global directory."""
    tld: str = DEFAULT_TLD
    router_http_port: int = 80
    router_https_port: int = 443
    health_timeout: int = HEALTH_TIMEOUT
