"""Booking record commands."""

import click

from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.errors import StoreError
from ledgerkit.utils.date_parser import parse_date


@click.group()
def booking_group():
    """Manage booking records referenced by client expenses."""
    pass


@booking_group.command("add")
@click.option("--boat", "boat_name", help="Boat name")
@click.option("--client", "client_name", help="Client name")
@click.option("--date", "booking_date", help="Booking date")
@click.option("--company", "boat_company", help="Boat company")
@click.pass_context
def add_booking(
    ctx,
    boat_name: str | None,
    client_name: str | None,
    booking_date: str | None,
    boat_company: str | None,
) -> None:
    """Record a booking so expenses can link to it.

    Examples:
        ledgerkit booking add --boat "Blue Lagoon" --client "J. Smith" --date 2024-06-14
    """
    db = ctx.obj["db"]

    parsed_date = None
    if booking_date:
        try:
            parsed_date = parse_date(booking_date)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    try:
        booking_id = db.create_booking(
            boat_name=boat_name,
            client_name=client_name,
            booking_date=parsed_date,
            boat_company=boat_company,
        )
    except StoreError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created booking {booking_id}")


def register_commands(cli: click.Group) -> None:
    """Register booking commands with main CLI."""
    cli.add_command(booking_group, name="booking")
