"""CSV export command."""

import csv
import sys

import click

from ledgerkit.cli.filters import build_filter_spec, filter_options
from ledgerkit.cli.ledger_context import get_ledger, run_or_exit
from ledgerkit.domain.entities import ExportRow
from ledgerkit.domain.export import EXPORT_COLUMNS
from ledgerkit.utils.date_parser import format_display_date


def _csv_values(row: ExportRow) -> list[str]:
    return [
        format_display_date(row.date),
        row.category.value,
        row.category_label or "",
        row.description or "",
        f"{row.amount:.2f}",
        row.payment_status.value,
        row.payment_method or "",
        row.boat_name or "",
        format_display_date(row.booking_date),
        row.boat_company or "",
        row.client_name or "",
        row.invoice_number or "",
        "yes" if row.is_sub_entry else "",
        row.parent_description or "",
    ]


@click.command("export")
@filter_options
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True),
    help="CSV file to write (defaults to standard output)",
)
@click.pass_context
def export_csv(ctx, output: str | None, **filters):
    """Export the filtered ledger as CSV, sub-entries included.

    Examples:
        ledgerkit export --show client --this-month -o client_expenses.csv
    """
    selector, spec = build_filter_spec(ctx, filters)
    ledger = get_ledger(ctx)
    run_or_exit(ctx, ledger.reconcile())
    rows = ledger.export_rows(selector, spec)

    if output:
        with open(output, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(EXPORT_COLUMNS)
            writer.writerows(_csv_values(row) for row in rows)
        click.echo(f"Exported {len(rows)} row(s) to {output}")
    else:
        writer = csv.writer(sys.stdout)
        writer.writerow(EXPORT_COLUMNS)
        writer.writerows(_csv_values(row) for row in rows)


def register_commands(cli):
    """Register export command with main CLI."""
    cli.add_command(export_csv)
