"""Settings file templates for the supported application types."""

DRUPAL_SETTINGS = """<?php

/**
 {signature}: settings.php created by localsite.
 localsite only generates this file when it does not exist; edit it freely.
 */

$settings['container_yamls'][] = $app_root . '/' . $site_path . '/services.yml';
{include_block}"""

DRUPAL_INCLUDE = """
// Automatically include the settings file managed by localsite.
if (file_exists(__DIR__ . '/{local_name}')) {{
  include __DIR__ . '/{local_name}';
}}
"""

DRUPAL8_LOCAL = """<?php

/**
 {signature}: Automatically generated Drupal settings file.
 localsite manages this file and may delete or overwrite the file unless this comment is removed.
 */

$databases['default']['default'] = array(
  'database' => "{db_name}",
  'username' => "{db_user}",
  'password' => "{db_password}",
  'host' => "{db_host}",
  'driver' => "mysql",
  'port' => {db_port},
  'prefix' => "",
);

ini_set('session.gc_probability', 1);
ini_set('session.gc_divisor', 100);
ini_set('session.gc_maxlifetime', 200000);
ini_set('session.cookie_lifetime', 2000000);

$settings['hash_salt'] = '{hash_salt}';

$settings['file_scan_ignore_directories'] = [
  'node_modules',
  'bower_components',
];

$settings['skip_permissions_hardening'] = TRUE;
$settings['trusted_host_patterns'] = ['.*'];

if (empty($config_directories[CONFIG_SYNC_DIRECTORY])) {{
  $config_directories[CONFIG_SYNC_DIRECTORY] = 'sites/default/files/sync';
}}
"""

DRUPAL7_LOCAL = """<?php

/**
 {signature}: Automatically generated Drupal settings file.
 localsite manages this file and may delete or overwrite the file unless this comment is removed.
 */

$databases['default']['default'] = array(
  'database' => "{db_name}",
  'username' => "{db_user}",
  'password' => "{db_password}",
  'host' => "{db_host}",
  'driver' => "mysql",
  'port' => {db_port},
  'prefix' => "",
);

ini_set('session.gc_probability', 1);
ini_set('session.gc_divisor', 100);
ini_set('session.gc_maxlifetime', 200000);
ini_set('session.cookie_lifetime', 2000000);

$drupal_hash_salt = '{hash_salt}';
"""

DRUPAL6_LOCAL = """<?php

/**
 {signature}: Automatically generated Drupal settings file.
 localsite manages this file and may delete or overwrite the file unless this comment is removed.
 */

$db_url = 'mysqli://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}';

ini_set('session.gc_probability', 1);
ini_set('session.gc_divisor', 100);
ini_set('session.gc_maxlifetime', 200000);
ini_set('session.cookie_lifetime', 2000000);
"""

WORDPRESS_SETTINGS = """<?php

/**
 {signature}: wp-config.php created by localsite.
 localsite only generates this file when it does not exist; edit it freely.
 */

$table_prefix = 'wp_';
{include_block}
if ( ! defined( 'ABSPATH' ) ) {{
  define( 'ABSPATH', dirname( __FILE__ ) . '/' );
}}

require_once( ABSPATH . 'wp-settings.php' );
"""

WORDPRESS_INCLUDE = """
// Automatically include the settings file managed by localsite.
if ( file_exists( dirname( __FILE__ ) . '/{local_name}' ) ) {{
  require_once( dirname( __FILE__ ) . '/{local_name}' );
}}
"""

WORDPRESS_LOCAL = """<?php

/**
 {signature}: Automatically generated WordPress settings file.
 localsite manages this file and may delete or overwrite the file unless this comment is removed.
 */

define( 'DB_NAME', '{db_name}' );
define( 'DB_USER', '{db_user}' );
define( 'DB_PASSWORD', '{db_password}' );
define( 'DB_HOST', '{db_host}:{db_port}' );
define( 'DB_CHARSET', 'utf8mb4' );
define( 'DB_COLLATE', '' );

define( 'WP_HOME', '{url}' );
define( 'WP_SITEURL', '{url}' );

define( 'AUTH_KEY', '{hash_salt}' );
define( 'SECURE_AUTH_KEY', '{hash_salt}' );
define( 'LOGGED_IN_KEY', '{hash_salt}' );
define( 'NONCE_KEY', '{hash_salt}' );
"""

# Hook scaffolding appended to config.yaml as comments.
HOOK_TEMPLATE = """
# Hooks run tasks at points in the project lifecycle. Each task is either
# "exec" (run inside the web container) or "exec-host" (run on this machine).
# Tasks in a phase run in order; the first failure skips the rest of the phase.
# Valid phases: pre-start, post-start, pre-import-db, post-import-db,
# pre-import-files, post-import-files
#
# hooks:
#   post-start:
#     - exec: "echo started"
#     - exec-host: "echo done"
"""

DRUPAL8_HOOKS = """#
#   post-import-db:
#     - exec: "drush cr"
#     - exec: "drush updb -y"
"""

DRUPAL7_HOOKS = """#
#   post-import-db:
#     - exec: "drush cc all"
"""

DRUPAL6_HOOKS = """#
#   post-import-db:
#     - exec: "drush cc all"
"""

WORDPRESS_HOOKS = """#
#   post-import-db:
#     - exec: "wp search-replace https://www.example.com https://mysite.localsite.test"
"""
