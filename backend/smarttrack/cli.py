# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/smarttrack/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to smarttrack (PowerShell: $env:FLASK_APP="smarttrack").
# - Use: python -m flask <group> <command> [options]
#
# Database:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Staff:
# - python -m flask staff create --name "Alice" --email alice@example.com --username alice --password "Password123!" [--admin]
#   Create a staff account (prompts if options are omitted).
# - python -m flask staff list
#   List staff accounts.
#
# Stock:
# - python -m flask stock list
#   Print current quantities.
#
# Email:
# - python -m flask notify test --to ops@example.com
#   Send a test message through the configured MAIL_TRANSPORT.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models._numbers import quantity_to_json
from .services import inventory_service, staff_service
from .services.notifier import Message, get_notifier, render_email
from .time_utils import to_local_display, utcnow
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """Database bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db_command():
    """Create all tables."""
    db.create_all()
    click.echo("Database initialized.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm dropping all data.')
@with_appcontext
def reset_db_command(yes):
    """Drop and recreate all tables."""
    if not yes:
        raise click.UsageError("Refusing to reset without --yes")
    db.drop_all()
    db.create_all()
    click.echo("Database reset.")


@click.group('staff')
def staff_group():
    """Staff account commands."""


@staff_group.command('create')
@click.option('--name', prompt=True)
@click.option('--email', prompt=True)
@click.option('--username', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--phone', default=None)
@click.option('--admin', 'is_admin', is_flag=True, help='Grant admin access.')
@with_appcontext
def create_staff_command(name, email, username, password, phone, is_admin):
    """Create a staff account."""
    try:
        staff = staff_service.create_staff(
            name=name,
            email=email,
            username=username,
            password=password,
            phone=phone,
            is_admin=is_admin,
        )
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))
    click.echo(f"Created {'admin' if staff.is_admin else 'staff'} {staff.username} (id={staff.id})")


@staff_group.command('list')
@with_appcontext
def list_staff_command():
    """List staff accounts."""
    for staff in staff_service.list_staff():
        flags = []
        if staff.is_admin:
            flags.append("admin")
        if not staff.is_active:
            flags.append("inactive")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        click.echo(f"{staff.id:>4}  {staff.username:<20} {staff.name} <{staff.email}>{suffix}")


@click.group('stock')
def stock_group():
    """Stock inspection commands."""


@stock_group.command('list')
@with_appcontext
def list_stock_command():
    """Print current quantities."""
    low = current_app.config["LOW_STOCK_THRESHOLD"]
    for stock in inventory_service.list_stock():
        marker = "  LOW" if stock.quantity < low else ""
        click.echo(f"{stock.name:<30} {quantity_to_json(stock.quantity):>12} kg{marker}")


@click.group('notify')
def notify_group():
    """Outbound email commands."""


@notify_group.command('test')
@click.option('--to', 'recipient', default=None, help='Defaults to ADMIN_EMAIL.')
@with_appcontext
def notify_test_command(recipient):
    """Send a test message and print the delivery result."""
    notifier = get_notifier()
    text, html = render_email(
        "test_message",
        transport=notifier.transport.name,
        occurred_at=to_local_display(utcnow()),
    )
    result = notifier.send(Message(
        recipient=recipient or current_app.config.get("ADMIN_EMAIL"),
        subject="SmartTrack test message",
        body=text,
        html=html,
    ))
    if result.delivered:
        click.echo(f"Delivered via {notifier.transport.name} (message_id={result.message_id})")
    else:
        raise click.ClickException(f"Delivery failed via {notifier.transport.name}: {result.reason}")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(staff_group)
    app.cli.add_command(stock_group)
    app.cli.add_command(notify_group)
