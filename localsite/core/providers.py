"""Hosting providers a project can pull backups from.

The set of providers is closed: each ``ProviderKind`` maps to a fixed
``ProviderSpec`` describing what it supports, and a single ``Provider``
class implements the capabilities against that spec.
"""

import logging
import re
import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Tuple

import yaml
from pydantic import BaseModel, ValidationError

from ..models.config import ProviderKind
from .exceptions import ProviderError

logger = logging.getLogger(__name__)

ELEMENTS = ("db", "files")
BACKUP_SUFFIXES = {"db": ".sql.gz", "files": ".tar.gz"}
FIELD_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class ProviderSettings(BaseModel):
    """Provider settings stored in .localsite/import.yaml."""
    provider: ProviderKind = ProviderKind.DEFAULT
    site: str = ""
    environment: str = ""
    db_backup_command: str = ""
    files_backup_command: str = ""
    db_push_command: str = ""
    files_push_command: str = ""


@dataclass(frozen=True)
class ProviderSpec:
    """What a provider kind supports."""
    remote: bool
    required_fields: Tuple[str, ...] = ()
    backup_commands: Dict[str, str] = field(default_factory=dict)


PROVIDER_SPECS: Dict[ProviderKind, ProviderSpec] = {
    ProviderKind.DEFAULT: ProviderSpec(remote=False),
    ProviderKind.PANTHEON: ProviderSpec(
        remote=True,
        required_fields=("site", "environment"),
        backup_commands={
            "db": "terminus backup:get {site}.{environment} --element=db --to={dest}",
            "files": "terminus backup:get {site}.{environment} --element=files --to={dest}",
        },
    ),
    ProviderKind.ACQUIA: ProviderSpec(remote=True, required_fields=("site", "environment")),
    ProviderKind.DDEV_LIVE: ProviderSpec(remote=True, required_fields=("site",)),
}


class Provider:
    """Capabilities of one provider kind: validate, read, write, pull and push."""

    def __init__(self, kind: ProviderKind, settings: ProviderSettings = None):
        self.kind = ProviderKind(kind)
        self.spec = PROVIDER_SPECS[self.kind]
        self.settings = settings or ProviderSettings(provider=self.kind)

    def validate_field(self, name: str, value: str) -> None:
        """Validate a single provider setting.

        Raises:
            ProviderError: If the value is unusable for this provider
        """
        if name in self.spec.required_fields and not value:
            raise ProviderError(f"{self.kind.value} provider requires a value for '{name}'")
        if value and name in ("site", "environment") and not FIELD_PATTERN.match(value):
            raise ProviderError(f"'{value}' is not a valid {name} for the {self.kind.value} provider")

    def validate(self) -> None:
        for name in self.spec.required_fields:
            self.validate_field(name, getattr(self.settings, name))

    def read(self, path: Path) -> None:
        """Load settings from an import.yaml file, if present."""
        if not path.exists():
            return
        try:
            data = yaml.safe_load(path.read_text()) or {}
            settings = ProviderSettings(**data)
        except (yaml.YAMLError, ValidationError, TypeError) as e:
            raise ProviderError(f"invalid provider settings in {path}: {e}") from e
        if settings.provider != self.kind:
            raise ProviderError(
                f"{path} is for provider '{settings.provider.value}', "
                f"but the project uses '{self.kind.value}'"
            )
        self.settings = settings

    def write(self, path: Path) -> None:
        """Write settings to an import.yaml file; the default provider needs none."""
        if not self.spec.remote:
            return
        data = self.settings.model_dump(mode="json", exclude_defaults=True)
        data["provider"] = self.kind.value
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(data, sort_keys=False))

    def _command(self, template: str, **values) -> str:
        quoted = {key: shlex.quote(str(value)) for key, value in values.items()}
        return template.format(**quoted)

    def _run(self, command: str, action: str) -> None:
        logger.info("Running %s provider command: %s", self.kind.value, command)
        result = subprocess.run(command, shell=True)
        if result.returncode != 0:
            raise ProviderError(f"{action} failed with exit code {result.returncode}: {command}")

    def get_backup(self, element: str, dest_dir: Path) -> Path:
        """Download the latest backup of an element ("db" or "files").

        Returns:
            Path of the downloaded archive
        """
        if element not in ELEMENTS:
            raise ProviderError(f"unknown backup element '{element}'")
        if not self.spec.remote:
            raise ProviderError(
                "the default provider has no remote backups; use import-db or import-files instead"
            )
        self.validate()
        template = getattr(self.settings, f"{element}_backup_command") or \
            self.spec.backup_commands.get(element)
        if not template:
            raise ProviderError(
                f"no {element}_backup_command configured for the {self.kind.value} provider"
            )
        dest_dir.mkdir(parents=True, exist_ok=True)
        dest = dest_dir / f"{self.kind.value}-{element}-backup{BACKUP_SUFFIXES[element]}"
        if dest.exists():
            dest.unlink()
        self._run(
            self._command(template, site=self.settings.site,
                          environment=self.settings.environment, dest=dest),
            f"{element} backup download",
        )
        if not dest.exists():
            raise ProviderError(f"{element} backup command did not produce {dest}")
        return dest

    def push(self, element: str, source: Path) -> None:
        """Upload a local artifact back to the provider."""
        if element not in ELEMENTS:
            raise ProviderError(f"unknown push element '{element}'")
        template = getattr(self.settings, f"{element}_push_command")
        if not self.spec.remote or not template:
            raise ProviderError(f"push of {element} is not supported for the {self.kind.value} provider")
        self.validate()
        self._run(
            self._command(template, site=self.settings.site,
                          environment=self.settings.environment, source=source),
            f"{element} push",
        )


def get_provider(kind) -> Provider:
    """Return a provider for a kind, rejecting kinds that are not implemented."""
    try:
        return Provider(ProviderKind(kind))
    except ValueError as e:
        raise ProviderError(f"provider '{kind}' is not implemented") from e
