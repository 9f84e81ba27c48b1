"""Exec command for localsite."""

import sys

import click

from ...core.constants import PROJECT_SERVICES, WEB_SERVICE
from ..helpers import COMMAND_ERRORS, fail, get_reconciler, resolve_ref


@click.command(name='exec', context_settings=dict(ignore_unknown_options=True))
@click.option('--project', '-p', help='Project name (defaults to the project in the current directory)')
@click.option('--service', '-s', type=click.Choice(PROJECT_SERVICES), default=WEB_SERVICE,
              show_default=True, help='Service to run the command in')
@click.option('--interactive', '-i', is_flag=True, help='Attach the terminal to the command')
@click.argument('command', nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_context
def exec_command(ctx, project, service, interactive, command):
    """Run a command inside one of a project's services"""
    try:
        ref = resolve_ref(project)
        result = get_reconciler(ctx).exec(ref, " ".join(command), service=service,
                                          interactive=interactive)
    except COMMAND_ERRORS as e:
        fail(e)

    if result.stdout:
        click.echo(result.stdout, nl=False)
    if result.stderr:
        click.echo(result.stderr, err=True, nl=False)
    if not result.ok:
        sys.exit(result.exit_code)
