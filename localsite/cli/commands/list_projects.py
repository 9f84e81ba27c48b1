"""List command for localsite."""

import json

import click

from ..helpers import COMMAND_ERRORS, fail, format_project_rows, get_reconciler, print_table

HEADERS = ["NAME", "TYPE", "LOCATION", "URL", "STATUS"]


@click.command(name='list')
@click.option('--json', 'as_json', is_flag=True, help='Print the projects as JSON')
@click.pass_context
def list_projects(ctx, as_json):
    """List projects that have containers"""
    try:
        reconciler = get_reconciler(ctx)
        statuses = reconciler.list()
        router_state = reconciler.router.status()
    except COMMAND_ERRORS as e:
        fail(e)

    if as_json:
        click.echo(json.dumps([s.to_dict() for s in statuses], indent=2))
        return

    if not statuses:
        click.echo("There are no running localsite projects.")
    else:
        print_table(HEADERS, format_project_rows(statuses))
    click.echo(f"\nRouter status: {router_state}")
