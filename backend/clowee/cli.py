# Overview: Flask CLI command groups for bootstrap, inspection, and settlement previews.

# backend/clowee/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init
#   Create all tables and a default admin user (idempotent).
#
# Users:
# - python -m flask users list
# - python -m flask users create --username ops --name "Ops Desk" --role accountant
#
# Machines and settlements:
# - python -m flask machines list [--all]
# - python -m flask settlements compute --machine-id 1 --start 2025-01-01 --end 2025-01-15
#   Print the settlement breakdown without saving it.

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import CloweeError
from .extensions import db
from .models import User, ALL_ROLES, ROLE_ADMIN
from .monitoring import get_monitor
from .services import machine_service
from .services.settlement_service import SettlementCalculator
from .currency import format_currency_bdt


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create the schema and a default admin user.

    Safe to re-run: existing tables and users are left alone.
    """
    click.echo("START Initializing Clowee settlement service...")
    db.create_all()
    click.echo("PASS Tables ready")

    admin = db.session.query(User).filter_by(username="admin").first()
    if admin:
        click.echo(f"PASS Using existing admin user (ID: {admin.id})")
    else:
        admin = User(username="admin", name="Administrator", role=ROLE_ADMIN)
        db.session.add(admin)
        db.session.commit()
        click.echo(f"PASS Created admin user (ID: {admin.id})")

    click.echo("DONE System initialized")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--name', prompt=True, help='Display name')
@click.option('--role', type=click.Choice(list(ALL_ROLES)), default=ROLE_ADMIN, help='Role')
@with_appcontext
def create_user_cli(username, name, role):
    """Create an operator account."""
    existing = db.session.query(User).filter_by(username=username).first()
    if existing:
        click.echo(f"FAIL User '{username}' already exists")
        return

    user = User(username=username, name=name, role=role)
    db.session.add(user)
    db.session.commit()
    click.echo(f"PASS Created user: {user.username} (ID: {user.id}, role: {user.role})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.id).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 70)
    click.echo(f"{'ID':<5} {'Username':<20} {'Name':<25} {'Role':<12} {'Active'}")
    click.echo("=" * 70)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.username:<20} {user.name:<25} {user.role:<12} {active_str}")
    click.echo("=" * 70 + "\n")


@click.group('machines')
def machines_group():
    """Machine inspection commands."""


@machines_group.command('list')
@click.option('--all', 'include_inactive', is_flag=True, help='Include deactivated machines')
@with_appcontext
def list_machines(include_inactive):
    """List machines with their current share settings."""
    machines = machine_service.list_machines(include_inactive=include_inactive)
    if not machines:
        click.echo("No machines found.")
        return

    for m in machines:
        status = "active" if m.is_active else "inactive"
        click.echo(
            f"{m.id:<5} {m.name:<25} {m.location:<25} "
            f"owner {m.owner_profit_share_percentage:g}% / clowee {m.clowee_profit_share_percentage:g}% "
            f"[{status}]"
        )


@click.group('settlements')
def settlements_group():
    """Settlement preview commands."""


@settlements_group.command('compute')
@click.option('--machine-id', type=int, required=True)
@click.option('--start', 'start_date', required=True, help='Period start (YYYY-MM-DD)')
@click.option('--end', 'end_date', required=True, help='Period end (YYYY-MM-DD)')
@with_appcontext
def compute_settlement(machine_id, start_date, end_date):
    """Print the settlement breakdown for a period without saving it."""
    calculator = SettlementCalculator.for_session(db.session, monitor=get_monitor(current_app))
    try:
        breakdown = calculator.compute_settlement(machine_id, start_date, end_date)
    except CloweeError as e:
        click.echo(f"FAIL {e.message}")
        raise SystemExit(1)

    click.echo(f"Machine {machine_id}: {breakdown.start_date} to {breakdown.end_date}")
    click.echo(f"  Coins / prizes:       {breakdown.coins} / {breakdown.prizes}")
    rows = [
        ("Total income", breakdown.total_income),
        ("Prize cost", breakdown.prize_cost),
        ("Electricity", breakdown.electricity_cost),
        ("VAT", breakdown.vat_amount),
        ("Maintenance", breakdown.maintenance_cost),
        ("Profit base", breakdown.profit_base),
        ("Clowee share", breakdown.profit_share_amount),
        ("Owner share", breakdown.owner_profit_share_amount),
        ("Pay to Clowee", breakdown.pay_to_clowee),
    ]
    for label, amount in rows:
        click.echo(f"  {label + ':':<21} {format_currency_bdt(amount)}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(machines_group)
    app.cli.add_command(settlements_group)
