# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/stockroom/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (safe to re-run).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users bootstrap --username owner --password "..."
#   Create the first user (id 0, every capability). Only on an empty system.
# - python -m flask users list
#   List all users.
#
# Permission inspection/repair:
# - python -m flask perms show clerk
#   Show a user's capability flags.
# - python -m flask perms grant clerk view_products
#   Turn one capability on.
# - python -m flask perms revoke clerk view_products
#   Turn one capability off.

import click
from flask.cli import with_appcontext

from .errors import StockroomError
from .extensions import db
from .models import CAPABILITIES, User
from .services import auth_service, permission_service


def _fail(message: str) -> None:
    click.echo(f"FAIL {message}")
    raise click.exceptions.Exit(1)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database schema is up to date")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()
    click.echo("BUILD Creating all tables...")
    db.create_all()
    click.echo("PASS Database reset complete")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('bootstrap')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def bootstrap_user(username, password):
    """Create the first user with every capability."""
    try:
        user = auth_service.initialize_first_user(username, password)
    except StockroomError as e:
        _fail(e.message)
    click.echo(f"PASS Created user: {user.name} (ID: {user.id}) with all capabilities")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo(f"{'ID':<6} {'Name':<24} {'Email'}")
    click.echo("=" * 60)
    for user in users:
        click.echo(f"{user.id:<6} {user.name:<24} {user.email or '-'}")


@click.group('perms')
def perms_group():
    """Capability inspection and repair commands."""


@perms_group.command('show')
@click.argument('username')
@with_appcontext
def show_permissions(username):
    """Show every capability flag of a user."""
    try:
        user = auth_service.get_user_by_name(username)
        permission = permission_service.get_permissions(user.id)
    except StockroomError as e:
        _fail(e.message)

    flags = permission.to_dict()
    for capability in CAPABILITIES:
        mark = "yes" if flags[capability] else "no"
        click.echo(f"{capability:<16} {mark}")


def _set_flag(username: str, capability: str, value: bool) -> None:
    if capability not in CAPABILITIES:
        _fail(f"Unknown capability '{capability}'. Choose from: {', '.join(CAPABILITIES)}")
    try:
        user = auth_service.get_user_by_name(username)
        permission_service.set_permissions(user.id, {capability: value})
    except StockroomError as e:
        _fail(e.message)
    action = "Granted" if value else "Revoked"
    click.echo(f"PASS {action} {capability} for {username}")


@perms_group.command('grant')
@click.argument('username')
@click.argument('capability')
@with_appcontext
def grant_permission(username, capability):
    """Turn a capability on for a user."""
    _set_flag(username, capability, True)


@perms_group.command('revoke')
@click.argument('username')
@click.argument('capability')
@with_appcontext
def revoke_permission(username, capability):
    """Turn a capability off for a user."""
    _set_flag(username, capability, False)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
