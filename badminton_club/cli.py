# cli.py
"""
Flask CLI commands for running the club.

Example usage:
    flask init-db
    flask seed-sessions
    flask create-operator alice
    flask confirm-payment --reference MB7QX202610231930
    flask next-session
    flask canonicalise-session-times --dry-run
"""

import click
from flask.cli import with_appcontext

from badminton_club.extensions import db


@click.command("init-db")
@with_appcontext
def init_db():
    """Create all database tables."""
    # Import models so every table is registered on the metadata
    from badminton_club import models  # noqa: F401

    db.create_all()
    click.echo("Database tables created.")


@click.command("seed-sessions")
@with_appcontext
def seed_sessions():
    """Create the weekly sessions from DEFAULT_SESSIONS (existing ones are kept)."""
    from badminton_club.services.session_catalog_service import SessionCatalogService

    result = SessionCatalogService.seed_sessions()
    if not result['success']:
        click.echo(f"Error: {result['message']}", err=True)
        raise SystemExit(1)

    click.echo(f"Created {result['created_count']} sessions "
               f"({result['existing_count']} already existed).")


@click.command("create-operator")
@click.argument("username")
@click.password_option(help="Operator password (prompted when omitted)")
@with_appcontext
def create_operator(username, password):
    """Create an operator account, or reset the password of an existing one."""
    from badminton_club.models import Operator

    username = username.strip().lower()
    try:
        operator = Operator.query.filter_by(username=username).first()
        created = operator is None
        if created:
            operator = Operator(username=username)
            db.session.add(operator)

        operator.set_password(password)
        operator.is_active = True
        db.session.commit()

        click.echo(f"Operator '{username}' {'created' if created else 'updated'}.")

    except Exception as e:
        db.session.rollback()
        click.echo(f"Error saving operator: {str(e)}", err=True)
        raise


@click.command("confirm-payment")
@click.option("--booking-id", help="Booking ID to confirm")
@click.option("--reference", help="Bank transfer reference to match against pending bookings")
@with_appcontext
def confirm_payment(booking_id, reference):
    """Confirm a booking's payment by booking ID or payment reference."""
    from badminton_club.services.payment_service import PaymentService

    if not booking_id and not reference:
        click.echo("Error: pass --booking-id or --reference", err=True)
        raise SystemExit(1)

    result = PaymentService.confirm_payment(booking_id=booking_id, reference=reference, confirmed_by='cli')
    if not result['success']:
        click.echo(f"Error: {result['message']}", err=True)
        raise SystemExit(1)

    booking = result['booking']
    click.echo(f"{result['message']}: booking {booking['id']} "
               f"({booking['player_id']} on {booking['session_date']} {booking['session_time']})")
    if result.get('over_capacity'):
        click.echo("Warning: this session is now over capacity.")


@click.command("next-session")
@with_appcontext
def next_session():
    """Show the next session and who is confirmed for it."""
    from badminton_club.services.next_session_service import NextSessionService

    result = NextSessionService.get_next_session_roster()
    if not result['success']:
        click.echo(f"Error: {result['message']}", err=True)
        raise SystemExit(1)

    if not result['date']:
        click.echo("No upcoming session.")
        return

    session = result['session']
    click.echo(f"{session['day_of_week']} {result['date']} {session['time_range']}")
    click.echo(f"Confirmed: {len(result['players'])}, spots left: {result['available_spots']}")
    for index, name in enumerate(result['players'], start=1):
        click.echo(f"  {index:2d}. {name}")


@click.command("canonicalise-session-times")
@click.option("--dry-run", is_flag=True, help="Show what would be done without making changes")
@with_appcontext
def canonicalise_session_times(dry_run):
    """Rewrite legacy bookings that stored only a start time to 'HH:MM-HH:MM'."""
    from badminton_club.services.session_catalog_service import SessionCatalogService

    result = SessionCatalogService.canonicalise_session_times(dry_run=dry_run)

    for change in result['updated']:
        click.echo(f"  {change['id']}: {change['from']} -> {change['to']}")

    verb = "Would update" if dry_run else "Updated"
    click.echo(f"{verb} {result['updated_count']} bookings; "
               f"{result['unresolved_count']} could not be resolved.")
    for booking_id in result['unresolved']:
        click.echo(f"  unresolved: {booking_id}")


def register_cli_commands(app):
    """Register all CLI commands with the app."""
    app.cli.add_command(init_db)
    app.cli.add_command(seed_sessions)
    app.cli.add_command(create_operator)
    app.cli.add_command(confirm_payment)
    app.cli.add_command(next_session)
    app.cli.add_command(canonicalise_session_times)
