"""Import-db command for localsite."""

import sys

import click
import questionary

from ..helpers import COMMAND_ERRORS, fail, get_reconciler, resolve_ref


def prompt_source(kind: str) -> str:
    """Ask for an import source when none was given on the command line."""
    if not sys.stdin.isatty():
        fail("--src is required when not running interactively")
    src = questionary.path(f"Provide the path to the {kind} you wish to import:").ask()
    if not src:
        fail("no import source was given")
    return src


@click.command(name='import-db')
@click.argument('project', required=False)
@click.option('--src', help='A .sql, .sql.gz, .zip, .tar, .tar.gz or .tgz file to import')
@click.option('--extract-path', help='Directory inside an archive to import from')
@click.pass_context
def import_db(ctx, project, src, extract_path):
    """Replace a running project's database with a dump"""
    try:
        ref = resolve_ref(project)
        if not src:
            src = prompt_source("database")
        imported = get_reconciler(ctx).import_db(ref, src, extract_path)
    except COMMAND_ERRORS as e:
        fail(e)

    click.echo(f"Successfully imported {len(imported)} SQL file(s) from {src}")
