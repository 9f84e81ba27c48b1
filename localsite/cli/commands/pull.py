"""Pull command for localsite."""

import click
from rich.console import Console
from rich.prompt import Confirm

from ..helpers import COMMAND_ERRORS, fail, get_reconciler, resolve_ref


@click.command()
@click.argument('project', required=False)
@click.option('--skip-db', is_flag=True, help='Do not import the database backup')
@click.option('--skip-files', is_flag=True, help='Do not import the files backup')
@click.option('--yes', '-y', is_flag=True, help='Skip confirmation prompt')
@click.pass_context
def pull(ctx, project, skip_db, skip_files, yes):
    """Import the latest database and files backups from the project's provider"""
    console = Console()
    try:
        ref = resolve_ref(project)
    except COMMAND_ERRORS as e:
        fail(e)

    if not yes:
        if not Confirm.ask(f"This will replace the database and files of {ref}. Continue?"):
            console.print("[yellow]Cancelled[/yellow]")
            return

    try:
        imported = get_reconciler(ctx).pull(ref, skip_db=skip_db, skip_files=skip_files)
    except COMMAND_ERRORS as e:
        fail(e)

    if imported:
        console.print(f"[green]Pulled {' and '.join(imported)} for {ref}[/green]")
    else:
        console.print("Nothing to pull")
