"""Constants used throughout localsite."""


# Platform tag carried by every managed container
PLATFORM_TAG = "localsite"

# Label keys for container discovery
LABEL_PLATFORM = "com.localsite.platform"
LABEL_SITE_NAME = "com.localsite.site-name"
LABEL_APPROOT = "com.localsite.approot"
LABEL_APP_TYPE = "com.localsite.app-type"
LABEL_SERVICE = "com.localsite.service"
LABEL_CONFIG_HASH = "com.localsite.config-hash"

# Services in a project stack, in start order
WEB_SERVICE = "web"
DB_SERVICE = "db"
DBA_SERVICE = "dba"
PROJECT_SERVICES = (DB_SERVICE, WEB_SERVICE, DBA_SERVICE)

# Default images
WEB_IMAGE = "drud/nginx-php-fpm-local:v0.8.0"
DB_IMAGE = "drud/mysql-local-57:v0.6.3"
DBA_IMAGE = "phpmyadmin/phpmyadmin:4.7.9"
ROUTER_IMAGE = "traefik:v2.11"

# Router
ROUTER_PROJECT_NAME = "localsite-router"
ROUTER_CONTAINER_NAME = "localsite-router"
ROUTER_NETWORK = "localsite_router"
ROUTER_CONFIG_FILE = "dynamic.yaml"
ROUTER_CONFIG_MOUNT = "/etc/traefik/dynamic"
ROUTER_SERVICE = "router"

# Hostnames
DEFAULT_TLD = "localsite.test"

# Project-local files
DATA_DIR_NAME = ".localsite"
CONFIG_FILE_NAME = "config.yaml"
PROVIDER_FILE_NAME = "import.yaml"
CONFIG_API_VERSION = "1"

# Global per-machine directory
GLOBAL_DIR_ENV = "LOCALSITE_HOME"
GLOBAL_DIR_NAME = ".localsite"
GLOBAL_CONFIG_FILE_NAME = "global_config.yaml"
ROUTER_DIR_NAME = "router"
PROJECTS_DIR_NAME = "projects"
DB_IMPORT_DIR_NAME = "import-db"

# Container paths
WEB_ROOT = "/var/www/html"
DB_IMPORT_MOUNT = "/db/import"

# Hook phases and task kinds
HOOK_PHASES = (
    "pre-start",
    "post-start",
    "pre-import-db",
    "post-import-db",
    "pre-import-files",
    "post-import-files",
)
HOOK_TASK_KEYS = ("exec", "exec-host")

# Database credentials inside the db container
DB_NAME = "db"
DB_USER = "db"
DB_PASSWORD = "db"
DB_ROOT_PASSWORD = "root"

# Timeout values (seconds)
HEALTH_TIMEOUT = 120
HEALTH_POLL_INITIAL = 0.5
HEALTH_POLL_MAX = 5.0
STOP_TIMEOUT = 10

# Signature that marks a file as generated and safe to overwrite
FILE_SIGNATURE = "#localsite-generated"
