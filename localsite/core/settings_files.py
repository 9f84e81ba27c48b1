"""Framework settings file generation.

Rendering is a pure function of the project configuration. Writing is done
separately by ``apply_settings``, which only creates the main settings file
when it is absent and otherwise makes sure it includes the generated local
settings file. The local file is regenerated only while it still carries the
generated-file signature, so user edits are never clobbered.
"""

import logging
import re
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .constants import (
    DB_NAME,
    DB_PASSWORD,
    DB_SERVICE,
    DB_USER,
    FILE_SIGNATURE,
)

logger = logging.getLogger(__name__)

SALT_PATTERN = re.compile(r"\b[0-9a-f]{64}\b")


@dataclass
class SettingsPlan:
    """Rendered settings files for a project and where they go."""
    settings_path: Path
    settings_content: str
    local_path: Path
    local_content: str
    include_snippet: str
    settings_exists: bool = False
    local_exists: bool = False


def render_settings(config, handler, url: str, hash_salt: str) -> Optional[SettingsPlan]:
    """Render the settings files for a project without touching the filesystem.

    Args:
        config: The ProjectConfig being rendered
        handler: The AppTypeHandler for the project's type
        url: The project URL, used by types that need their own address
        hash_salt: Salt to embed in the generated file

    Returns:
        A SettingsPlan, or None when the type has no settings files
    """
    if not handler.settings_file:
        return None

    base = config.docroot_path
    local_name = Path(handler.local_settings_file).name
    values = {
        'signature': FILE_SIGNATURE,
        'db_name': DB_NAME,
        'db_user': DB_USER,
        'db_password': DB_PASSWORD,
        'db_host': DB_SERVICE,
        'db_port': 3306,
        'hash_salt': hash_salt,
        'url': url,
    }
    include_snippet = handler.include_template.format(local_name=local_name)
    return SettingsPlan(
        settings_path=base / handler.settings_file,
        settings_content=handler.settings_template.format(include_block=include_snippet, **values),
        local_path=base / handler.local_settings_file,
        local_content=handler.local_template.format(**values),
        include_snippet=include_snippet,
    )


def _existing_salt(path: Path) -> Optional[str]:
    if not path.exists():
        return None
    match = SALT_PATTERN.search(path.read_text(errors='replace'))
    return match.group(0) if match else None


def plan_settings(config, handler, url: str) -> Optional[SettingsPlan]:
    """Render settings and record which target files already exist.

    A salt already present in a generated local file is reused so that
    regenerating the file does not invalidate sessions.
    """
    if not handler.settings_file:
        return None
    local_path = config.docroot_path / handler.local_settings_file
    salt = _existing_salt(local_path) or secrets.token_hex(32)
    plan = render_settings(config, handler, url, salt)
    plan.settings_exists = plan.settings_path.exists()
    plan.local_exists = plan.local_path.exists()
    return plan


def _is_generated(path: Path) -> bool:
    try:
        return FILE_SIGNATURE in path.read_text(errors='replace')
    except OSError:
        return False


def apply_settings(plan: SettingsPlan) -> List[Path]:
    """Write the planned settings files idempotently.

    Returns:
        Paths that were created or modified
    """
    written = []

    if not plan.local_exists or _is_generated(plan.local_path):
        plan.local_path.parent.mkdir(parents=True, exist_ok=True)
        plan.local_path.write_text(plan.local_content)
        written.append(plan.local_path)
    else:
        logger.info("Leaving %s alone; signature was removed", plan.local_path)

    if not plan.settings_exists:
        plan.settings_path.parent.mkdir(parents=True, exist_ok=True)
        plan.settings_path.write_text(plan.settings_content)
        written.append(plan.settings_path)
    else:
        current = plan.settings_path.read_text(errors='replace')
        if plan.local_path.name not in current:
            with open(plan.settings_path, 'a') as f:
                f.write(plan.include_snippet)
            written.append(plan.settings_path)

    return written
