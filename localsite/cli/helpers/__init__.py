"""CLI Helper Functions for localsite.

This module provides reusable helper functions for CLI commands to reduce
code duplication and standardize behavior across all commands.

The helpers provide:
- Access to the app type registry and global directory on the click context
- Reconciler construction on top of the Docker service
- Project resolution from a name argument or the current directory
- Consistent error exits and table formatting for output
"""

import sys
from pathlib import Path
from typing import Any, List, Optional

import click
from tabulate import tabulate

from localsite.core.app_types import AppTypeRegistry
from localsite.core.exceptions import LocalsiteError
from localsite.core.reconciler import Reconciler
from localsite.core.router import RouterManager
from localsite.models.status import ProjectRef, ProjectStatus, SiteState
from localsite.services.docker_service import DockerService
from localsite.services.exceptions import ServiceError
from localsite.utils.config_manager import ConfigManager
from localsite.utils.global_dir import GlobalDir

# Errors every command reports as a single line before exiting
COMMAND_ERRORS = (LocalsiteError, ServiceError)

STATE_COLORS = {
    SiteState.RUNNING: 'green',
    SiteState.STOPPED: 'yellow',
    SiteState.PAUSED: 'yellow',
}


def fail(message: Any) -> None:
    """Print an error and exit with status 1."""
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def get_registry(ctx: click.Context) -> AppTypeRegistry:
    """Return the registry built when the CLI started."""
    obj = ctx.ensure_object(dict)
    if 'registry' not in obj:
        obj['registry'] = AppTypeRegistry.default()
    return obj['registry']


def get_global_dir(ctx: click.Context) -> GlobalDir:
    """Return the global directory, creating it on first use."""
    obj = ctx.ensure_object(dict)
    if obj.get('global_dir') is None:
        obj['global_dir'] = GlobalDir()
    return obj['global_dir']


def get_config_manager(ctx: click.Context) -> ConfigManager:
    return ConfigManager(get_registry(ctx), get_global_dir(ctx))


def get_reconciler(ctx: click.Context) -> Reconciler:
    """Build a Reconciler backed by Docker.

    Note:
        Exits with an error message if Docker is not available.
    """
    try:
        runtime = DockerService()
    except ServiceError as e:
        fail(e)
    global_dir = get_global_dir(ctx)
    return Reconciler(
        get_registry(ctx),
        runtime,
        RouterManager(runtime, global_dir),
        get_config_manager(ctx),
    )


def resolve_ref(project: Optional[str]) -> ProjectRef:
    """Identify the target project from an optional name argument.

    Without a name, the project containing the current directory is used.

    Raises:
        ConfigNotFoundError: If no project contains the current directory
    """
    if project:
        return ProjectRef(name=project)
    return ProjectRef(approot=str(ConfigManager.find_approot(Path.cwd())))


def format_state(status: ProjectStatus) -> str:
    """Format a project state with color."""
    return click.style(status.state.value, fg=STATE_COLORS.get(status.state, 'red'))


def format_project_rows(statuses: List[ProjectStatus]) -> List[List[str]]:
    """Rows for the NAME / TYPE / LOCATION / URL / STATUS table."""
    rows = []
    for status in statuses:
        state = format_state(status)
        if status.degraded:
            state = click.style(f"degraded: {status.error}", fg='red')
        rows.append([status.name, status.type, status.shortroot, status.url, state])
    return rows


def print_table(headers: List[str], rows: List[List[Any]],
                tablefmt: str = "simple") -> None:
    """Print a table with project-wide defaults.

    Args:
        headers: Table headers
        rows: Table rows
        tablefmt: Table format (default: "simple")
    """
    table_str = tabulate(rows, headers=headers, tablefmt=tablefmt)
    click.echo(table_str)


def print_warnings(status: ProjectStatus) -> None:
    for warning in status.warnings:
        click.echo(click.style(f"Warning: {warning}", fg='yellow'), err=True)


__all__ = [
    'COMMAND_ERRORS',
    'fail',
    'get_registry',
    'get_global_dir',
    'get_config_manager',
    'get_reconciler',
    'resolve_ref',
    'format_state',
    'format_project_rows',
    'print_table',
    'print_warnings',
]
