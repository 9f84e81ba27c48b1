"""Start command for localsite."""

import click
from rich.console import Console

from ...core.constants import WEB_SERVICE
from ..helpers import COMMAND_ERRORS, fail, get_reconciler, print_warnings, resolve_ref


@click.command()
@click.argument('project', required=False)
@click.pass_context
def start(ctx, project):
    """Start a project's containers and route it through the router"""
    console = Console()
    try:
        ref = resolve_ref(project)
        reconciler = get_reconciler(ctx)
        approot = reconciler.approot_for(ref)
        click.echo(f"Starting {ref.name or approot}...")
        status = reconciler.start(approot)
    except COMMAND_ERRORS as e:
        fail(e)

    print_warnings(status)
    console.print(f"[green]Successfully started {status.name}[/green]")
    console.print(f"Your project can be reached at: [cyan]{status.url}[/cyan]")
    web = status.service(WEB_SERVICE)
    if web and web.ports.get('80/tcp'):
        console.print(f"Direct web access: http://127.0.0.1:{web.ports['80/tcp']}")


