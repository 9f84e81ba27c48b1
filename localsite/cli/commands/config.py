"""Config command for localsite."""

import sys
from pathlib import Path

import click
import questionary

from ...core.constants import PROVIDER_FILE_NAME
from ...core.exceptions import ProviderError
from ...core.providers import get_provider
from ...models.config import AppType, ProviderKind
from ..helpers import COMMAND_ERRORS, fail, get_config_manager, get_registry


def _field_validator(provider, name):
    def validate(value):
        try:
            provider.validate_field(name, value)
        except ProviderError as e:
            return str(e)
        return True
    return validate


@click.command()
@click.option('--projectname', help='Project name, used in the hostname')
@click.option('--projecttype', type=click.Choice(AppType.values()), help='Application type')
@click.option('--docroot', help='Document root, relative to the project root')
@click.option('--provider', type=click.Choice(ProviderKind.values()), help='Hosting provider to pull from')
@click.option('--site', help='Provider site name')
@click.option('--environment', help='Provider environment')
@click.pass_context
def config(ctx, projectname, projecttype, docroot, provider, site, environment):
    """Create or update the localsite configuration for the current directory"""
    approot = Path.cwd()
    manager = get_config_manager(ctx)
    registry = get_registry(ctx)
    flags_given = any(v is not None for v in (projectname, projecttype, docroot, provider, site, environment))
    interactive = sys.stdin.isatty() and not flags_given

    try:
        existing = manager.exists(approot)
        project = manager.load(approot) if existing else manager.new_config(approot, docroot=docroot or "")
        previous_provider = project.provider

        if interactive:
            click.echo(f"Creating a new localsite project config in {approot}" if not existing
                       else f"Updating the localsite project config in {approot}")
            projectname = questionary.text("Project name:", default=project.name).ask()
            docroot = questionary.text("Docroot location:", default=project.docroot).ask()
            if docroot is not None and not existing:
                project.docroot = docroot
                project.type = registry.detect(project.docroot_path)
            projecttype = questionary.select(
                "Project type:", choices=registry.types(), default=project.type.value
            ).ask()
            provider = questionary.select(
                "Hosting provider:", choices=ProviderKind.values(), default=project.provider.value
            ).ask()

        if projectname:
            project.name = projectname
        if docroot is not None:
            project.docroot = docroot
        if projecttype:
            project.type = AppType(projecttype)
        elif not existing:
            project.type = registry.detect(project.docroot_path)
        if provider:
            project.provider = ProviderKind(provider)

        remote = get_provider(project.provider)
        if project.provider == previous_provider:
            remote.read(project.config_dir / PROVIDER_FILE_NAME)
        if remote.spec.remote and interactive:
            site = questionary.text(
                "Provider site name:", default=remote.settings.site,
                validate=_field_validator(remote, "site"),
            ).ask()
            environment = questionary.text(
                "Provider environment:", default=remote.settings.environment,
                validate=_field_validator(remote, "environment"),
            ).ask()
        if site is not None:
            remote.settings.site = site
        if environment is not None:
            remote.settings.environment = environment
        remote.validate()

        manager.validate(project)
        path = manager.save(project, remote)
    except COMMAND_ERRORS as e:
        fail(e)

    click.echo(f"Configuration written to {path}")
    click.echo(f"Project type: {project.type.value}")
    click.echo("Configuration complete. You may now run 'localsite start'.")
