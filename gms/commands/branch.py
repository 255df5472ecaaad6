"""Branch CLI commands."""

import click
from flask.cli import with_appcontext

from gms.services.branches import BranchService
from gms.services.context import ActorContext


@click.group('branch')
def branch_commands():
    """Branch management commands."""
    pass


@branch_commands.command('create')
@click.option('--name', required=True, help='Branch name')
@click.option('--location', required=True, help='Branch address or area')
@click.option('--contact', 'contact_number', default=None, help='Contact number')
@with_appcontext
def create_branch(name, location, contact_number):
    """Create a branch."""
    result = BranchService().create(
        {'name': name, 'location': location, 'contact_number': contact_number},
        ActorContext.system(),
    )
    if not result:
        click.echo(click.style(f'Error: {result.message}', fg='red'))
        return

    click.echo(click.style('Branch created successfully!', fg='green'))
    click.echo(f'  ID: {result.value.id}')
    click.echo(f'  Name: {result.value.name}')


@branch_commands.command('list')
@with_appcontext
def list_branches():
    """List all branches."""
    for branch in BranchService().list_all():
        state = 'active' if branch.is_active else 'inactive'
        click.echo(f'{branch.id}  {branch.name}  ({branch.location}) [{state}]')
