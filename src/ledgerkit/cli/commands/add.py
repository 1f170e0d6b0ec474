"""Add expense command."""

import click

from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.cli.ledger_context import format_amount
from ledgerkit.domain.entities import ExpenseCategory, PaymentStatus
from ledgerkit.domain.errors import DomainError, StoreError
from ledgerkit.domain.expense import ExpenseService
from ledgerkit.utils.amount_parser import parse_amount
from ledgerkit.utils.date_parser import format_display_date, parse_date


@click.command("add")
@click.option(
    "--category",
    required=True,
    type=click.Choice([c.value for c in ExpenseCategory], case_sensitive=False),
    help="Expense category",
)
@click.option("--amount", required=True, help="Expense amount (e.g., 123.45 or 1.234,56)")
@click.option(
    "--date",
    default="today",
    show_default=True,
    help="Expense date (YYYY-MM-DD, DD/MM/YYYY or relative like 'today', 'yesterday')",
)
@click.option("--description", help="Expense description")
@click.option("--label", help="Category label (e.g., 'Fuel', 'Marina fees')")
@click.option(
    "--status",
    type=click.Choice([s.value for s in PaymentStatus]),
    default=PaymentStatus.PENDING.value,
    show_default=True,
    help="Payment status",
)
@click.option("--parent", help="ID of the root expense to attach this sub-entry to")
@click.option("--booking", help="ID of the linked booking")
@click.option("--document", help="Reference of the attached receipt or document")
@click.option("--payment-method", help="Payment method (e.g., 'card', 'transfer')")
@click.option("--invoice-number", help="Invoice number")
@click.option("--due-date", help="Due date")
@click.option("--added-by", help="Name of the person recording the expense")
@click.pass_context
def add_expense(
    ctx,
    category: str,
    amount: str,
    date: str,
    description: str | None,
    label: str | None,
    status: str,
    parent: str | None,
    booking: str | None,
    document: str | None,
    payment_method: str | None,
    invoice_number: str | None,
    due_date: str | None,
    added_by: str | None,
):
    """Add an expense or a sub-entry of an existing expense.

    Examples:
        ledgerkit add --category company --amount 120.50 --label Fuel
        ledgerkit add --category client --amount 80 --booking 3f2a... --date 14/06/2024
        ledgerkit add --category company --amount 20 --parent 9c1e...
    """
    db = ctx.obj["db"]
    service = ExpenseService(db)

    # Parse date
    try:
        expense_date = parse_date(date)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)

    due = None
    if due_date:
        try:
            due = parse_date(due_date)
        except ValueError as e:
            click.echo(f"Error: Invalid due date format: {e}", err=True)
            ctx.exit(1)

    # Parse amount
    try:
        expense_amount = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        expense_id = service.create_expense(
            category=category,
            amount=expense_amount,
            date=expense_date,
            description=description,
            category_label=label,
            payment_status=status,
            parent_id=parent,
            booking_id=booking,
            document_ref=document,
            payment_method=payment_method,
            invoice_number=invoice_number,
            due_date=due,
            added_by=added_by,
        )
    except (DomainError, StoreError) as e:
        handle_domain_error(ctx, e)

    expense = service.get_expense(expense_id)
    click.echo(f"Created expense {expense_id}")
    click.echo(f"  Category: {expense.category.value}")
    click.echo(f"  Date: {format_display_date(expense.date)}")
    click.echo(f"  Amount: {format_amount(expense.amount)}")
    if description:
        click.echo(f"  Description: {description}")
    if parent:
        click.echo(f"  Sub-entry of: {parent}")
    if expense.category.value != category.lower():
        click.echo(f"  Note: category set to '{expense.category.value}' to match its booking or root")


def register_commands(cli):
    """Register add command with main CLI."""
    cli.add_command(add_expense)
