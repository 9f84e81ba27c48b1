"""Logs command for localsite."""

import click

from ...core.constants import PROJECT_SERVICES, WEB_SERVICE
from ..helpers import COMMAND_ERRORS, fail, get_reconciler, resolve_ref


@click.command()
@click.argument('project', required=False)
@click.option('--service', '-s', type=click.Choice(PROJECT_SERVICES), default=WEB_SERVICE,
              show_default=True, help='Service to show logs for')
@click.option('--follow', '-f', is_flag=True, help='Keep streaming new output')
@click.option('--tail', default='all', show_default=True, help='Number of lines to show from the end')
@click.pass_context
def logs(ctx, project, service, follow, tail):
    """Show the logs of a project's service"""
    try:
        ref = resolve_ref(project)
        stream = get_reconciler(ctx).logs(ref, service=service, follow=follow, tail=tail)
        for chunk in stream:
            click.echo(chunk.decode('utf-8', errors='replace'), nl=False)
    except COMMAND_ERRORS as e:
        fail(e)
    except KeyboardInterrupt:
        pass
