"""Stop command for localsite."""

import click

from ..helpers import COMMAND_ERRORS, fail, get_reconciler, resolve_ref


@click.command()
@click.argument('project', required=False)
@click.option('--remove', '-r', is_flag=True, help='Remove the containers instead of only stopping them')
@click.option('--remove-data', is_flag=True, help='Also remove the database volume and imported data')
@click.pass_context
def stop(ctx, project, remove, remove_data):
    """Stop a project; works even if its directory was moved or deleted"""
    try:
        ref = resolve_ref(project)
        name = get_reconciler(ctx).stop(ref, remove_data=remove_data, remove=remove)
    except COMMAND_ERRORS as e:
        fail(e)

    if remove_data:
        click.echo(f"Removed {name} and its data")
    elif remove:
        click.echo(f"Removed the containers of {name}")
    else:
        click.echo(f"Stopped {name}")
