"""Cleanup command for localsite."""

import click
from rich.console import Console
from rich.prompt import Confirm

from ..helpers import COMMAND_ERRORS, fail, get_reconciler, resolve_ref


@click.command()
@click.argument('project', required=False)
@click.option('--yes', '-y', is_flag=True, help='Skip confirmation prompt')
@click.pass_context
def cleanup(ctx, project, yes):
    """Force-remove every container and volume of a project, including its database"""
    console = Console()
    try:
        ref = resolve_ref(project)
    except COMMAND_ERRORS as e:
        fail(e)

    if not yes:
        if not Confirm.ask(f"Remove all containers and data for {ref}?"):
            console.print("[yellow]Cancelled[/yellow]")
            return

    try:
        removed = get_reconciler(ctx).cleanup(ref)
    except COMMAND_ERRORS as e:
        fail(e)

    if removed:
        console.print(f"[green]Removed {removed} container(s) for {ref}[/green]")
    else:
        console.print(f"No containers found for {ref}")
