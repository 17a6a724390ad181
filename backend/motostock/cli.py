# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/motostock/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, demo locations, one user per role and 20 motorcycles.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system cleanup-sessions --days 30
#   Delete expired or revoked sessions older than the retention window.
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role, location and active status.
# - python -m flask users create --name "Jane" --email jane@binawoo.com --role BRANCH_MANAGER --location-code loc_br_2
#   Create a user (prompts for the password).
#
# Stock inspection:
# - python -m flask stock verify
#   Check every motorcycle against the stock invariants; exits non-zero on violations.
# - python -m flask stock levels
#   Counts per status per location.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Location, Role, User
from .services import seed_service, session_service, stock_service
from .services.audit_service import log_action
from .services.auth_service import create_user
from .services.errors import MotostockError
from .services.location_service import get_location_by_code


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--password', default=seed_service.DEFAULT_PASSWORD, show_default=True,
              help='Password for the demo users')
@with_appcontext
def init_system(password):
    """
    Initialize the system with the demo dataset.

    Creates:
    - Locations: Central Warehouse (loc_wh_1), Downtown Branch (loc_br_1),
      Northside Branch (loc_br_2)
    - Users: admin / warehouse / branch1 / sales1 @binawoo.com
    - Motorcycles BW-1000..BW-1019 (first 10 in the warehouse, rest at Downtown)

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing Motostock...")
    db.create_all()

    try:
        created = seed_service.seed_demo_data(password=password)
        db.session.commit()
    except MotostockError as e:
        db.session.rollback()
        raise click.ClickException(e.message)

    for kind, count in created.items():
        click.echo(f"PASS Created {count} {kind}")

    click.echo("\n" + "="*60)
    click.echo("DONE Motostock initialized")
    click.echo("="*60)
    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    for name, email, role, _ in seed_service.DEMO_USERS:
        click.echo(f"   {role:<18} -> {email:<24} / {password}")
    click.echo("")


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

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@system_group.command('cleanup-sessions')
@click.option('--days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions(days):
    """Delete expired or revoked sessions older than --days."""
    deleted = session_service.cleanup_expired_sessions(days=days)
    click.echo(f"Deleted {deleted} sessions older than {days} days.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Full name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(Role.ALL)), prompt=True, help='Role')
@click.option('--location-code', default=None, help='Location code (required unless ADMIN)')
@with_appcontext
def create_user_cli(name, email, password, role, location_code):
    """
    Create a new user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    location_id = None
    if location_code:
        location = get_location_by_code(location_code)
        if not location:
            raise click.ClickException(f"Location {location_code} not found")
        location_id = location.id

    try:
        user = create_user(name=name, email=email, password=password, role=role, location_id=location_id)
        log_action(
            user_id=None,
            action="USER_CREATED",
            details=f"Created user {user.email} ({user.role}) from the command line",
            entity_type="user",
            entity_id=user.id,
        )
        db.session.commit()
    except MotostockError as e:
        db.session.rollback()
        raise click.ClickException(e.message)

    click.echo(f"PASS Created user: {user.email} with role '{user.role}'")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their role and location."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    locations = {loc.id: loc.code for loc in db.session.query(Location).all()}

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<5} {'Name':<20} {'Email':<30} {'Role':<18} {'Location':<10} {'Active'}")
    click.echo("="*100)

    for user in users:
        location = locations.get(user.location_id, "-")
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.name:<20} {user.email:<30} {user.role:<18} {location:<10} {active_str}")

    click.echo("="*100 + "\n")


@click.group('stock')
def stock_group():
    """Stock consistency commands."""


@stock_group.command('verify')
@with_appcontext
def verify_stock():
    """Check every motorcycle's status/location/sale fields for consistency."""
    violations = stock_service.verify_all()
    if not violations:
        click.echo("PASS All motorcycles are consistent")
        return

    for chassis, problems in violations.items():
        click.echo(f"FAIL {chassis}: {'; '.join(problems)}")
    raise click.ClickException(f"{len(violations)} motorcycle(s) violate stock invariants")


@stock_group.command('levels')
@with_appcontext
def stock_levels():
    """Print counts per status per location."""
    locations = {loc.id: loc.code for loc in db.session.query(Location).all()}
    levels = stock_service.stock_levels()
    if not levels:
        click.echo("No motorcycles found.")
        return
    for key, counts in sorted(levels.items(), key=lambda item: str(locations.get(item[0], item[0]))):
        summary = ", ".join(f"{status}={count}" for status, count in counts.items() if count)
        click.echo(f"{locations.get(key, key):<12} {summary}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(stock_group)
