"""Router commands for localsite."""

import click

from ..helpers import COMMAND_ERRORS, fail, get_reconciler


@click.group()
def router():
    """Inspect the shared router"""
    pass


@router.command()
@click.pass_context
def status(ctx):
    """Show the router container state and the projects it serves"""
    try:
        manager = get_reconciler(ctx).router
        state = manager.status()
        projects = manager.running_projects()
        tld = manager.global_dir.config.tld
    except COMMAND_ERRORS as e:
        fail(e)

    click.echo(f"Router status: {state}")
    if projects:
        click.echo("Routing:")
        for name in projects:
            click.echo(f"  https://{name}.{tld}")
    else:
        click.echo("No projects are routed.")
