"""Describe command for localsite."""

import json

import click
from rich.console import Console
from rich.table import Table

from ...core.constants import DB_NAME, DB_PASSWORD, DB_SERVICE, DB_USER, DBA_SERVICE
from ..helpers import COMMAND_ERRORS, fail, format_state, get_reconciler, print_warnings, resolve_ref


def _published(ports) -> str:
    return ", ".join(f"{port} -> 127.0.0.1:{host}" for port, host in sorted(ports.items()))


@click.command()
@click.argument('project', required=False)
@click.option('--service', '-s', help='Only show this service')
@click.option('--verbose', '-v', 'extended', is_flag=True, help='Show database credentials and connection details')
@click.option('--json', 'as_json', is_flag=True, help='Print the status as JSON')
@click.pass_context
def describe(ctx, project, service, extended, as_json):
    """Describe a project's location, URL and services"""
    console = Console()
    try:
        ref = resolve_ref(project)
        status = get_reconciler(ctx).describe(ref)
    except COMMAND_ERRORS as e:
        fail(e)

    if as_json:
        click.echo(json.dumps(status.to_dict(), indent=2))
        return

    click.echo(f"NAME: {status.name}")
    click.echo(f"TYPE: {status.type}")
    click.echo(f"LOCATION: {status.shortroot}")
    click.echo(f"URL: {status.url}")
    click.echo(f"STATUS: {format_state(status)}")
    print_warnings(status)

    services = status.services
    if service:
        services = [s for s in services if s.name == service]
        if not services:
            fail(f"{status.name} has no service named '{service}'")

    if services:
        table = Table(title="Services")
        table.add_column("Service", style="cyan", no_wrap=True)
        table.add_column("State", style="green")
        table.add_column("Published ports", style="white")
        for svc in services:
            table.add_row(svc.name, svc.state, _published(svc.ports))
        console.print(table)

    if extended and (not service or service in (DB_SERVICE, DBA_SERVICE)):
        db = status.service(DB_SERVICE)
        click.echo("\nMySQL Credentials")
        click.echo("-----------------")
        click.echo(f"Username: {DB_USER}")
        click.echo(f"Password: {DB_PASSWORD}")
        click.echo(f"Database name: {DB_NAME}")
        click.echo(f"Host: {DB_SERVICE}")
        click.echo("Port: 3306")
        if db and db.ports.get('3306/tcp'):
            click.echo(f"To connect from your host: mysql --host=127.0.0.1 "
                       f"--port={db.ports['3306/tcp']} --user={DB_USER} --password={DB_PASSWORD}")
        dba = status.service(DBA_SERVICE)
        if dba and dba.ports.get('80/tcp'):
            click.echo(f"phpMyAdmin: http://127.0.0.1:{dba.ports['80/tcp']}")

    click.echo(f"\nRouter status: {status.router_state}")
