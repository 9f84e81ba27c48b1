"""Import-files command for localsite."""

import click

from ..helpers import COMMAND_ERRORS, fail, get_reconciler, resolve_ref
from .import_db import prompt_source


@click.command(name='import-files')
@click.argument('project', required=False)
@click.option('--src', help='A directory, or a .zip, .tar, .tar.gz or .tgz archive of files')
@click.option('--extract-path', help='Directory inside an archive to import from')
@click.pass_context
def import_files(ctx, project, src, extract_path):
    """Replace a project's uploaded files with a directory or archive"""
    try:
        ref = resolve_ref(project)
        if not src:
            src = prompt_source("files directory or archive")
        dest = get_reconciler(ctx).import_files(ref, src, extract_path)
    except COMMAND_ERRORS as e:
        fail(e)

    click.echo(f"Successfully imported files into {dest}")
