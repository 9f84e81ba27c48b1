"""Container topology rendering.

``render`` turns a project configuration into the full desired container
stack. It is a pure function: the same inputs always produce an identical
descriptor, which is what lets the runtime compare config hashes to decide
whether a container needs to be recreated.
"""

from pathlib import Path
from typing import Dict, Optional

from ..models.config import ProjectConfig
from ..models.topology import ContainerStackDescriptor, ServiceSpec
from .constants import (
    DBA_SERVICE,
    DB_IMPORT_MOUNT,
    DB_NAME,
    DB_PASSWORD,
    DB_ROOT_PASSWORD,
    DB_SERVICE,
    DB_USER,
    DEFAULT_TLD,
    LABEL_APP_TYPE,
    LABEL_APPROOT,
    LABEL_CONFIG_HASH,
    LABEL_PLATFORM,
    LABEL_SERVICE,
    LABEL_SITE_NAME,
    PLATFORM_TAG,
    ROUTER_NETWORK,
    WEB_ROOT,
    WEB_SERVICE,
)

# Healthcheck durations are in nanoseconds
SECOND = 1_000_000_000


def network_name(project: str) -> str:
    return f"localsite-{project}"


def container_name(project: str, service: str) -> str:
    return f"localsite-{project}-{service}"


def db_volume_name(project: str) -> str:
    return f"{project}-mysql"


def project_labels(site_name: str, service: Optional[str] = None) -> Dict[str, str]:
    """Return the label filter selecting a project's containers."""
    labels = {LABEL_PLATFORM: PLATFORM_TAG, LABEL_SITE_NAME: site_name}
    if service:
        labels[LABEL_SERVICE] = service
    return labels


def discovery_labels(config: ProjectConfig) -> Dict[str, str]:
    """Return the labels that identify a project's containers and volumes."""
    labels = project_labels(config.name)
    labels[LABEL_APPROOT] = str(config.approot)
    labels[LABEL_APP_TYPE] = config.type.value
    return labels


def _finalize(spec: ServiceSpec) -> ServiceSpec:
    spec.labels[LABEL_CONFIG_HASH] = spec.config_hash()
    return spec


def _service_labels(config: ProjectConfig, service: str) -> Dict[str, str]:
    labels = discovery_labels(config)
    labels[LABEL_SERVICE] = service
    return labels


def render(config: ProjectConfig, import_dir: Path, tld: str = DEFAULT_TLD) -> ContainerStackDescriptor:
    """Render the web, db and dba services for a project.

    Args:
        config: A validated ProjectConfig
        import_dir: Host directory mounted into the db container for imports
        tld: Top level domain the router serves projects under

    Returns:
        ContainerStackDescriptor with services in start order
    """
    name = config.name
    network = network_name(name)
    hostname = config.hostname(tld)

    db = ServiceSpec(
        name=DB_SERVICE,
        container_name=container_name(name, DB_SERVICE),
        image=config.dbimage,
        labels=_service_labels(config, DB_SERVICE),
        environment={
            "MYSQL_DATABASE": DB_NAME,
            "MYSQL_USER": DB_USER,
            "MYSQL_PASSWORD": DB_PASSWORD,
            "MYSQL_ROOT_PASSWORD": DB_ROOT_PASSWORD,
        },
        ports={"3306/tcp": None},
        binds={str(import_dir): {"bind": DB_IMPORT_MOUNT, "mode": "rw"}},
        named_volumes={db_volume_name(name): {"bind": "/var/lib/mysql", "mode": "rw"}},
        networks={network: [DB_SERVICE]},
        healthcheck={
            "test": ["CMD-SHELL", f"mysqladmin ping -h 127.0.0.1 -u{DB_USER} -p{DB_PASSWORD}"],
            "interval": 2 * SECOND,
            "timeout": 5 * SECOND,
            "retries": 30,
            "start_period": 5 * SECOND,
        },
    )

    docroot = WEB_ROOT if not config.docroot else f"{WEB_ROOT}/{config.docroot.strip('/')}"
    web = ServiceSpec(
        name=WEB_SERVICE,
        container_name=container_name(name, WEB_SERVICE),
        image=config.webimage,
        labels=_service_labels(config, WEB_SERVICE),
        environment={
            "DEPLOY_NAME": "local",
            "LOCALSITE_SITENAME": name,
            "LOCALSITE_HOSTNAME": hostname,
            "DOCROOT": config.docroot,
            "NGINX_DOCROOT": docroot,
            "DB_HOST": DB_SERVICE,
            "DB_NAME": DB_NAME,
            "DB_USER": DB_USER,
            "DB_PASSWORD": DB_PASSWORD,
        },
        ports={"80/tcp": None},
        binds={str(config.approot): {"bind": WEB_ROOT, "mode": "rw"}},
        networks={network: [WEB_SERVICE], ROUTER_NETWORK: [f"{name}-web"]},
        working_dir=WEB_ROOT,
    )

    dba = ServiceSpec(
        name=DBA_SERVICE,
        container_name=container_name(name, DBA_SERVICE),
        image=config.dbaimage,
        labels=_service_labels(config, DBA_SERVICE),
        environment={
            "PMA_HOST": DB_SERVICE,
            "PMA_USER": "root",
            "PMA_PASSWORD": DB_ROOT_PASSWORD,
        },
        ports={"80/tcp": None},
        networks={network: [DBA_SERVICE]},
    )

    return ContainerStackDescriptor(
        project=name,
        approot=str(config.approot),
        app_type=config.type.value,
        network=network,
        services=[_finalize(db), _finalize(web), _finalize(dba)],
        volume_labels=discovery_labels(config),
    )
