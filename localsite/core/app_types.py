"""Application type handlers and the registry that maps types to them."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ..models.config import AppType
from . import settings_templates as templates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppTypeHandler:
    """Everything localsite knows about one application type."""
    app_type: AppType
    fingerprints: List[str] = field(default_factory=list)
    settings_file: Optional[str] = None
    local_settings_file: Optional[str] = None
    settings_template: str = ""
    include_template: str = ""
    local_template: str = ""
    upload_dir: Optional[str] = None
    hook_examples: str = ""


DRUPAL_SETTINGS_DIR = "sites/default"


def _drupal_handler(app_type: AppType, fingerprints: List[str], local_template: str,
                    hook_examples: str) -> AppTypeHandler:
    return AppTypeHandler(
        app_type=app_type,
        fingerprints=fingerprints,
        settings_file=f"{DRUPAL_SETTINGS_DIR}/settings.php",
        local_settings_file=f"{DRUPAL_SETTINGS_DIR}/settings.localsite.php",
        settings_template=templates.DRUPAL_SETTINGS,
        include_template=templates.DRUPAL_INCLUDE,
        local_template=local_template,
        upload_dir=f"{DRUPAL_SETTINGS_DIR}/files",
        hook_examples=hook_examples,
    )


class AppTypeRegistry:
    """Maps application types to their handlers.

    Built once when the process starts and handed to whatever needs it.
    Detection tries handlers in registration order.
    """

    def __init__(self):
        self._handlers: Dict[AppType, AppTypeHandler] = {}

    def register(self, handler: AppTypeHandler) -> None:
        self._handlers[handler.app_type] = handler

    def get(self, app_type) -> AppTypeHandler:
        """Return the handler for a type, falling back to the generic handler."""
        key = AppType(app_type)
        if key in self._handlers:
            return self._handlers[key]
        return self._handlers.get(AppType.GENERIC, AppTypeHandler(app_type=AppType.GENERIC))

    def types(self) -> List[str]:
        return [t.value for t in self._handlers]

    def detect(self, docroot: Path) -> AppType:
        """Guess the application type from fingerprint files under a docroot."""
        for handler in self._handlers.values():
            for fingerprint in handler.fingerprints:
                candidate = Path(docroot) / fingerprint
                logger.debug("Looking for app fingerprint %s", candidate)
                if candidate.exists():
                    logger.debug("Found %s fingerprint at %s", handler.app_type.value, candidate)
                    return handler.app_type
        return AppType.GENERIC

    @classmethod
    def default(cls) -> "AppTypeRegistry":
        """Build the registry with all built-in application types."""
        registry = cls()
        registry.register(_drupal_handler(
            AppType.DRUPAL8, ["core/scripts/drupal.sh"],
            templates.DRUPAL8_LOCAL, templates.DRUPAL8_HOOKS,
        ))
        registry.register(_drupal_handler(
            AppType.DRUPAL6, ["misc/ahah.js"],
            templates.DRUPAL6_LOCAL, templates.DRUPAL6_HOOKS,
        ))
        registry.register(_drupal_handler(
            AppType.DRUPAL7, ["scripts/drupal.sh"],
            templates.DRUPAL7_LOCAL, templates.DRUPAL7_HOOKS,
        ))
        registry.register(AppTypeHandler(
            app_type=AppType.WORDPRESS,
            fingerprints=["wp-settings.php"],
            settings_file="wp-config.php",
            local_settings_file="wp-config-localsite.php",
            settings_template=templates.WORDPRESS_SETTINGS,
            include_template=templates.WORDPRESS_INCLUDE,
            local_template=templates.WORDPRESS_LOCAL,
            upload_dir="wp-content/uploads",
            hook_examples=templates.WORDPRESS_HOOKS,
        ))
        registry.register(AppTypeHandler(app_type=AppType.GENERIC))
        return registry
