"""User management CLI commands."""

import click
from flask.cli import with_appcontext

from gms.extensions import db
from gms.models import UserRole
from gms.security.passwords import hash_password, validate_password_complexity
from gms.services import audit
from gms.services.audit import AuditAction
from gms.services.context import ActorContext
from gms.services.users import UserService


@click.group('user')
def user_commands():
    """User management commands."""
    pass


@user_commands.command('create-owner')
@click.option('--username', required=True, help='Owner username')
@click.option('--email', required=True, help='Owner email')
@click.option('--first-name', required=True, help='First name')
@click.option('--last-name', required=True, help='Last name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Owner password')
@click.option('--mobile', default=None, help='Mobile number')
@with_appcontext
def create_owner(username, email, first_name, last_name, password, mobile):
    """Create an owner account (bootstrap for a fresh installation)."""
    result = UserService().create(
        {
            'username': username,
            'email': email,
            'first_name': first_name,
            'last_name': last_name,
            'password': password,
            'mobile': mobile,
            'role': UserRole.OWNER,
        },
        ActorContext.system(),
    )
    if not result:
        click.echo(click.style(f'Error: {result.message}', fg='red'))
        return

    click.echo(click.style('Owner created successfully!', fg='green'))
    click.echo(f'  Username: {result.value.username}')
    click.echo(f'  Email: {result.value.email}')


@user_commands.command('set-password')
@click.option('--username', required=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='New password')
@with_appcontext
def set_password(username, password):
    """Set or reset a user's password."""
    user = UserService().find_by_username(username)
    if not user:
        click.echo(click.style(f'Error: No user {username} found', fg='red'))
        return

    complexity = validate_password_complexity(password)
    if not complexity:
        click.echo(click.style(f'Error: {complexity.message}', fg='red'))
        return

    user.password_hash = hash_password(password)
    audit.record(ActorContext.system(), AuditAction.PASSWORD_RESET,
                 f"Password set from command line for user: {user.username}",
                 entity_type='user', entity_id=user.id)
    db.session.commit()
    click.echo(click.style('Password updated.', fg='green'))
