# Overview: Flask CLI groups for bootstrapping the database, managing staff and checking stock.

# backend/tradedesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init
#   Idempotent: create all tables and the default admin user.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
# - python -m flask users create --username alice --email alice@tradedesk.local --full-name "Alice" --role salesperson
#   Prompts for the password if --password is omitted.
#
# Stock:
# - python -m flask stock low [--threshold 5]
#   List products at or below their restock level.
#
# Maintenance:
# - python -m flask sessions cleanup
#   Delete expired/revoked sessions older than 30 days.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services import auth_service, session_service, stock_service
from .validation import ConflictError, ValidationError


DEFAULT_ADMIN = {
    "username": "admin",
    "email": "admin@tradedesk.local",
    "full_name": "Administrator",
    "password": "Password123!",
    "role": "admin",
}


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create all tables and the default admin user.

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing TradeDesk...")
    db.create_all()
    click.echo("PASS Tables created")

    existing = db.session.query(User).filter_by(username=DEFAULT_ADMIN["username"]).first()
    if existing:
        click.echo(f"WARN  User '{existing.username}' already exists, skipping...")
    else:
        auth_service.create_user(**DEFAULT_ADMIN)
        click.echo(f"PASS Created user: {DEFAULT_ADMIN['username']} ({DEFAULT_ADMIN['email']}) with role 'admin'")
        click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
        click.echo(f"   admin -> {DEFAULT_ADMIN['email']} / {DEFAULT_ADMIN['password']}")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destroying all data')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--full-name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(['salesperson', 'manager', 'admin']), default='salesperson', show_default=True)
@with_appcontext
def create_user_cli(username, email, full_name, password, role):
    """
    Create a new user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter, lowercase letter, digit and special character
    """
    try:
        user = auth_service.create_user(
            username=username,
            email=email,
            password=password,
            full_name=full_name,
            role=role,
        )
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Created user: {user.username} (ID: {user.id}) with role '{user.role}'")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = auth_service.list_users()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<30} {'Role':<12} {'Active'}")
    click.echo("="*90)
    for user in users:
        active_str = "yes" if user.is_active else "no"
        click.echo(f"{user.id:<5} {user.username:<20} {user.email:<30} {user.role:<12} {active_str}")
    click.echo("="*90 + "\n")


@click.group('stock')
def stock_group():
    """Stock inspection commands."""


@stock_group.command('low')
@click.option('--threshold', type=int, default=None, help='Override each product min_stock')
@with_appcontext
def low_stock(threshold):
    """List products at or below their restock level."""
    products = stock_service.get_low_stock_products(threshold)
    if not products:
        click.echo("No low-stock products.")
        return
    for p in products:
        click.echo(f"{p.sku:<20} {p.name:<30} stock={p.stock:<6} min={p.min_stock}")


@click.group('sessions')
def sessions_group():
    """Session maintenance commands."""


@sessions_group.command('cleanup')
@with_appcontext
def cleanup_sessions():
    """Delete expired and revoked sessions older than 30 days."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"PASS Deleted {deleted} sessions")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(stock_group)
    app.cli.add_command(sessions_group)
