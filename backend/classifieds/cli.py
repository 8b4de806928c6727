# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/classifieds/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init [--admin-email admin@classifieds.local] [--admin-password "Password123!"]
#   Idempotent bootstrap: creates tables, default categories and a default admin.
#
# User inspection/bootstrap:
# - python -m flask users list [--role seller] [--status pending]
#   List users with role and status.
# - python -m flask users create-admin --name "Site Admin" --email admin@example.com --password "Password123!"
#   Create an admin account (prompts if options are omitted).
#
# Maintenance:
# - python -m flask ads expire
#   Return approved ads past their package duration to their initial status.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .models.auth import ROLE_ADMIN, VALID_ROLES, VALID_USER_STATUSES
from .services import ad_service, auth_service, category_service
from .validation import DomainError


DEFAULT_ADMIN_NAME = "Administrator"
DEFAULT_ADMIN_EMAIL = "admin@classifieds.local"
# Meets strength rules: 8+ chars, upper, lower, digit, special
DEFAULT_ADMIN_PASSWORD = "Password123!"


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@click.option('--admin-email', default=DEFAULT_ADMIN_EMAIL, help='Default admin email')
@click.option('--admin-password', default=DEFAULT_ADMIN_PASSWORD, help='Default admin password')
@with_appcontext
def init_system(admin_email, admin_password):
    """
    Initialize the marketplace: tables, default categories and an admin.

    Safe to re-run; existing categories and users are left untouched.

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing classifieds system...")

    db.create_all()
    click.echo("PASS Tables ready")

    created = category_service.seed_default_categories()
    click.echo(f"PASS Categories seeded: {created} new")

    existing_admin = db.session.query(User).filter_by(role=ROLE_ADMIN).first()
    if existing_admin:
        click.echo(f"WARN  Admin already exists ({existing_admin.email}), skipping...")
    else:
        try:
            admin = auth_service.create_admin(DEFAULT_ADMIN_NAME, admin_email, admin_password)
            click.echo(f"PASS Created admin: {admin.email}")
        except DomainError as e:
            click.echo(f"FAIL Failed to create admin: {str(e)}")

    click.echo("\n" + "="*60)
    click.echo("DONE Classifieds system initialized")
    click.echo("="*60)
    if not existing_admin:
        click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
        click.echo(f"   admin -> {admin_email} / {admin_password}")
    click.echo("")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create-admin')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_admin_cli(name, email, password):
    """
    Create an admin account.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = auth_service.create_admin(name, email, password)
    except DomainError as e:
        click.echo(f"FAIL {str(e)}")
        raise SystemExit(1)

    click.echo(f"PASS Created admin: {user.email} (ID: {user.id})")


@users_group.command('list')
@click.option('--role', type=click.Choice(VALID_ROLES), help='Filter by role')
@click.option('--status', type=click.Choice(VALID_USER_STATUSES), help='Filter by status')
@with_appcontext
def list_users(role, status):
    """List users with role and status."""
    query = db.session.query(User)
    if role:
        query = query.filter_by(role=role)
    if status:
        query = query.filter_by(status=status)

    users = query.order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Name':<25} {'Email':<35} {'Role':<8} {'Status'}")
    click.echo("="*90)

    for user in users:
        click.echo(f"{user.id:<5} {user.name:<25} {user.email:<35} {user.role:<8} {user.status}")

    click.echo("")


@click.group('ads')
def ads_group():
    """Ad maintenance commands."""


@ads_group.command('expire')
@with_appcontext
def expire_ads_cli():
    """Expire approved ads whose package duration has elapsed."""
    ids = ad_service.expire_ads()
    if not ids:
        click.echo("No ads to expire.")
        return
    click.echo(f"PASS Expired {len(ids)} ad(s): {', '.join(str(i) for i in ids)}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(ads_group)
