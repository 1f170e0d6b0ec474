"""Expense mutation commands."""

import click

from ledgerkit.cli.ledger_context import get_ledger, run_or_exit
from ledgerkit.domain.entities import BulkResult, PaymentStatus
from ledgerkit.domain.ledger import LedgerService


def _echo_bulk_result(result: BulkResult, verb: str) -> None:
    for entry_id in result.succeeded:
        click.echo(f"{verb} {entry_id}")
    for entry_id, message in result.failed.items():
        click.echo(f"Failed {entry_id}: {message}", err=True)
    for entry_id in result.skipped:
        click.echo(f"Skipped {entry_id}", err=True)
    click.echo(
        f"{len(result.succeeded)} succeeded, {len(result.failed)} failed"
        + (f", {len(result.skipped)} skipped" if result.skipped else "")
    )


async def _set_status(ledger: LedgerService, entry_ids, status: PaymentStatus) -> BulkResult:
    result = await ledger.set_status(entry_ids, status)
    await ledger.drain()
    return result


async def _delete(ledger: LedgerService, entry_ids) -> BulkResult:
    result = await ledger.delete(entry_ids)
    await ledger.drain()
    return result


async def _toggle(ledger: LedgerService, entry_id: str) -> PaymentStatus:
    status = await ledger.toggle_status(entry_id)
    await ledger.drain()
    return status


@click.command("status")
@click.argument("status", type=click.Choice([s.value for s in PaymentStatus]))
@click.argument("entry_ids", nargs=-1, required=True)
@click.pass_context
def set_status(ctx, status: str, entry_ids: tuple[str, ...]) -> None:
    """Set the payment status of one or more expenses.

    Sub-entries keep their own status.

    Examples:
        ledgerkit status paid 9c1e... 3f2a...
    """
    ledger = get_ledger(ctx)
    result = run_or_exit(ctx, _set_status(ledger, entry_ids, PaymentStatus(status)))
    _echo_bulk_result(result, "Updated")
    if result.failed:
        ctx.exit(1)


@click.command("toggle")
@click.argument("entry_id")
@click.pass_context
def toggle_status(ctx, entry_id: str) -> None:
    """Flip an expense between pending and paid.

    Examples:
        ledgerkit toggle 9c1e...
    """
    ledger = get_ledger(ctx)
    status = run_or_exit(ctx, _toggle(ledger, entry_id))
    click.echo(f"Expense {entry_id} is now {status.value}")


@click.command("delete")
@click.argument("entry_ids", nargs=-1, required=True)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_expenses(ctx, entry_ids: tuple[str, ...], yes: bool) -> None:
    """Delete one or more expenses.

    Sub-entries of a deleted expense become standalone expenses.

    Examples:
        ledgerkit delete 9c1e... 3f2a...
    """
    # Confirm deletion
    if not yes and not click.confirm(f"Are you sure you want to delete {len(entry_ids)} expense(s)?"):
        click.echo("Deletion cancelled.")
        return

    ledger = get_ledger(ctx)
    result = run_or_exit(ctx, _delete(ledger, entry_ids))
    _echo_bulk_result(result, "Deleted")
    if result.failed:
        ctx.exit(1)


def register_commands(cli: click.Group) -> None:
    """Register expense commands with main CLI."""
    cli.add_command(set_status)
    cli.add_command(toggle_status)
    cli.add_command(delete_expenses)
