"""Main CLI entry point for localsite."""

import logging

import click

from .. import __version__
from ..core.app_types import AppTypeRegistry
from .commands.cleanup import cleanup
from .commands.config import config
from .commands.describe import describe
from .commands.exec_command import exec_command
from .commands.import_db import import_db
from .commands.import_files import import_files
from .commands.list_projects import list_projects
from .commands.logs import logs
from .commands.pull import pull
from .commands.router import router
from .commands.start import start
from .commands.stop import stop

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@click.group()
@click.version_option(__version__, prog_name='localsite')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, verbose):
    """localsite - Local development environments for PHP sites in Docker"""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)
    ctx.ensure_object(dict)
    ctx.obj.setdefault('registry', AppTypeRegistry.default())


# Register commands
cli.add_command(config)
cli.add_command(start)
cli.add_command(stop)
cli.add_command(describe)
cli.add_command(describe, name='status')
cli.add_command(list_projects)
cli.add_command(exec_command)
cli.add_command(logs)
cli.add_command(import_db)
cli.add_command(import_files)
cli.add_command(cleanup)
cli.add_command(pull)
cli.add_command(router)


if __name__ == '__main__':
    cli()
