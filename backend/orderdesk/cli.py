# Overview: Flask CLI command groups for bootstrap, user management and maintenance.

# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init [--no-demo-users]
#   Idempotent: creates tables, payment terms, carriers, document sequences and demo users.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list [--role client]
# - python -m flask users create --email sales@example.com --password "Password123!" --role sales
#
# Invoices:
# - python -m flask invoices mark-overdue [--as-of 2024-02-01]
#   Flip sent/viewed invoices whose due date has passed to overdue.
#
# Maintenance:
# - python -m flask sessions cleanup --retention-days 30
# - python -m flask maintenance cleanup-security-events --retention-days 90

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Customer, User
from .permissions import ROLES, ROLE_CLIENT
from .services.auth_service import create_user, PasswordValidationError, UserError
from .services import invoice_service, permission_service, session_service
from .services.seed_service import seed_reference_data
from .time_utils import parse_iso_date


DEMO_PASSWORD = "Password123!"

DEMO_USERS = (
    ("admin@orderdesk.local", "Admin User", "admin"),
    ("sales@orderdesk.local", "Sales User", "sales"),
    ("ops@orderdesk.local", "Operations User", "ops"),
    ("finance@orderdesk.local", "Finance User", "finance"),
    ("client@orderdesk.local", "Client User", "client"),
)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--no-demo-users', is_flag=True, help='Skip the demo account per role')
@with_appcontext
def init_system(no_demo_users):
    """
    Create tables and reference data; optionally one demo user per role.

    All demo passwords default to "Password123!". Change them in production.
    """
    click.echo("START Initializing OrderDesk...")

    db.create_all()
    counts = seed_reference_data()
    click.echo(
        f"PASS Reference data: {counts['payment_terms']} payment terms, "
        f"{counts['carriers']} carriers, {counts['document_sequences']} document sequences created"
    )

    if no_demo_users:
        click.echo("DONE")
        return

    click.echo("\nUSERS Creating demo users...")
    demo_customer = db.session.query(Customer).filter_by(company_name="Demo Client Co").first()
    if demo_customer is None:
        demo_customer = Customer(
            company_name="Demo Client Co",
            contact_name="Client User",
            email="client@orderdesk.local",
            is_active=True,
        )
        db.session.add(demo_customer)
        db.session.commit()
        click.echo(f"PASS Created demo customer: {demo_customer.company_name} (ID: {demo_customer.id})")

    for email, full_name, role in DEMO_USERS:
        if db.session.query(User).filter_by(email=email).first():
            click.echo(f"WARN  User '{email}' already exists, skipping...")
            continue
        try:
            create_user(
                email=email,
                password=DEMO_PASSWORD,
                role=role,
                full_name=full_name,
                customer_id=demo_customer.id if role == ROLE_CLIENT else None,
            )
            click.echo(f"PASS Created user: {email} with role '{role}'")
        except (PasswordValidationError, UserError) as e:
            click.echo(f"FAIL Failed to create user '{email}': {str(e)}")

    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    for email, _, role in DEMO_USERS:
        click.echo(f"   {role:<8} -> {email:<26} / {DEMO_PASSWORD}")
    click.echo("")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """DANGER: Drop all tables and recreate the schema. Deletes all data."""
    if not yes:
        click.confirm("This will DELETE ALL DATA. Continue?", abort=True)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset. Run: python -m flask system init")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', prompt=True, type=click.Choice(list(ROLES)))
@click.option('--full-name', default=None)
@click.option('--customer-id', type=int, default=None, help='Required for client users')
@with_appcontext
def create_user_cli(email, password, role, full_name, customer_id):
    """Create a user (prompts if options are omitted)."""
    try:
        user = create_user(
            email=email,
            password=password,
            role=role,
            full_name=full_name,
            customer_id=customer_id,
        )
    except (PasswordValidationError, UserError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user {user.email} (ID: {user.id}) with role '{user.role}'")


@users_group.command('list')
@click.option('--role', type=click.Choice(list(ROLES)), default=None)
@with_appcontext
def list_users(role):
    """List all users with their role and active status."""
    query = db.session.query(User)
    if role:
        query = query.filter_by(role=role)
    users = query.order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Email':<32} {'Role':<9} {'Customer':<9} {'Active':<8} {'Name'}")
    click.echo("="*90)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        customer = user.customer_id if user.customer_id is not None else "-"
        click.echo(f"{user.id:<5} {user.email:<32} {user.role:<9} {customer!s:<9} {active_str:<8} {user.full_name or ''}")
    click.echo("="*90 + "\n")


@click.group('invoices')
def invoices_group():
    """Invoice maintenance commands."""


@invoices_group.command('mark-overdue')
@click.option('--as-of', default=None, help='Reference day (YYYY-MM-DD); defaults to today (UTC)')
@with_appcontext
def mark_overdue(as_of):
    """Set sent/viewed invoices with a due date before AS_OF to overdue."""
    try:
        as_of_date = parse_iso_date(as_of) if as_of else None
    except ValueError:
        raise click.BadParameter("must be YYYY-MM-DD", param_hint="--as-of")

    invoices = invoice_service.mark_overdue_invoices(as_of_date)
    for invoice in invoices:
        click.echo(f"OVERDUE {invoice.invoice_number} (due {invoice.due_date.isoformat()})")
    click.echo(f"PASS Marked {len(invoices)} invoice(s) overdue")


@click.group('sessions')
def sessions_group():
    """Session maintenance commands."""


@sessions_group.command('cleanup')
@click.option('--retention-days', default=30, show_default=True, type=int)
@with_appcontext
def cleanup_sessions(retention_days):
    """Delete expired or revoked sessions older than the retention window."""
    deleted = session_service.cleanup_expired_sessions(retention_days=retention_days)
    click.echo(f"PASS Deleted {deleted} session(s)")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-security-events')
@click.option('--retention-days', default=90, show_default=True, type=int)
@with_appcontext
def cleanup_security_events(retention_days):
    """Delete security events older than the retention window."""
    deleted = permission_service.cleanup_security_events(retention_days=retention_days)
    click.echo(f"PASS Deleted {deleted} security event(s)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(invoices_group)
    app.cli.add_command(sessions_group)
    app.cli.add_command(maintenance_group)
