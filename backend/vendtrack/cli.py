# Overview: Flask CLI command groups for bootstrap, user accounts, and catalog import.

# backend/vendtrack/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init [--admin-email admin@vendtrack.local] [--admin-password "..."]
#   Idempotent bootstrap: creates tables and the first admin account.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User accounts:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --email tech@vendtrack.local --name "Tech One" --password "secret1" --role routeman
#   Create a user (prompts if options are omitted).
#
# Commodity catalog:
# - python -m flask commodities import commodities.json
#   Import a catalog file (.json with commodityList, .csv or .xlsx); existing codes are overwritten.

from pathlib import Path

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, USER_ROLES
from .services.auth_service import create_user, PasswordValidationError
from .services.commodity_service import (
    CommodityImportError,
    import_commodities,
    parse_commodity_upload,
)
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@click.option('--admin-email', default='admin@vendtrack.local', help='Email of the first admin')
@click.option('--admin-name', default='Administrator', help='Display name of the first admin')
@click.option('--admin-password', default='admin123', help='Password of the first admin')
@with_appcontext
def init_system(admin_email, admin_name, admin_password):
    """
    Initialize VendTrack: create tables and the first admin account.

    Safe to re-run; an existing admin email is left untouched.

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing VendTrack...")

    db.create_all()
    click.echo("PASS Tables ready")

    existing = db.session.query(User).filter_by(email=admin_email.strip().lower()).first()
    if existing:
        click.echo(f"WARN  User '{existing.email}' already exists, skipping...")
        return

    try:
        user = create_user(email=admin_email, password=admin_password, name=admin_name, role="admin")
    except ValidationError as e:
        click.echo(f"FAIL Failed to create admin: {str(e)}")
        return

    click.echo(f"PASS Created admin: {user.email}")
    click.echo("\nSECURITY Change the admin password immediately in production!")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm dropping all data')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        return
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


# =============================================================================
# USER COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users_cli():
    """List all users."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Email':<35} {'Name':<20} {'Role':<10} {'Active'}")
    click.echo("="*80)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.email:<35} {user.name:<20} {user.role:<10} {active_str}")
    click.echo("="*80 + "\n")


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(USER_ROLES)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(email, name, password, role):
    """
    Create a new user interactively.

    Password must be at least 6 characters.
    """
    try:
        user = create_user(email=email, password=password, name=name, role=role)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        return
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")
        return

    click.echo(f"PASS Created user: {user.email} with role '{user.role}'")
    click.echo("SECURITY Password securely hashed with bcrypt")


# =============================================================================
# COMMODITY COMMANDS
# =============================================================================

@click.group('commodities')
def commodities_group():
    """Commodity catalog commands."""


@commodities_group.command('import')
@click.argument('path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@with_appcontext
def import_commodities_cli(path):
    """Import a catalog file (.json, .csv or .xlsx)."""
    try:
        with path.open("rb") as fh:
            payload = parse_commodity_upload(path.name, fh)
        result = import_commodities(payload)
    except CommodityImportError as e:
        click.echo(f"FAIL {str(e)}")
        raise SystemExit(1)

    click.echo(
        f"PASS Imported {result['successCount']} of {result['total']} commodities "
        f"({result['errorCount']} failed)"
    )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(commodities_group)
