"""CLI helpers for building the ledger and running its coroutines."""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any, Coroutine, Optional, TypeVar

import click

from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.entities import LedgerNode
from ledgerkit.domain.errors import DomainError, StoreError
from ledgerkit.domain.ledger import LedgerService
from ledgerkit.utils.date_parser import format_display_date

T = TypeVar("T")


def get_ledger(ctx: click.Context) -> LedgerService:
    """Return the ledger for this invocation, creating it on first use."""
    ledger = ctx.obj.get("ledger")
    if ledger is None:
        ledger = LedgerService(ctx.obj["db"], ctx.obj["config"])
        ctx.obj["ledger"] = ledger
    return ledger


def run_or_exit(ctx: click.Context, coro: Coroutine[Any, Any, T]) -> T:
    """Run a ledger coroutine, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return asyncio.run(coro)
    except (DomainError, StoreError) as exc:
        handle_domain_error(ctx, exc)


def format_amount(amount: Optional[Decimal]) -> str:
    """Format an amount for display."""
    if amount is None:
        return ""
    return f"€{amount:,.2f}"


def echo_node_table(nodes: list[LedgerNode], show_children: bool = False) -> None:
    """Print roots as a table, optionally with their sub-entries indented."""
    click.echo("-" * 110)
    click.echo(
        f"{'ID':<34} {'Date':<11} {'Category':<9} {'Status':<8} "
        f"{'Total':>12}  {'Label':<15} {'Description':<20}"
    )
    click.echo("-" * 110)
    for node in nodes:
        entry = node.entry
        marker = "*" if node.is_orphan else ""
        click.echo(
            f"{entry.id + marker:<34} {format_display_date(entry.date):<11} "
            f"{entry.category.value:<9} {entry.payment_status.value:<8} "
            f"{format_amount(node.total_amount):>12}  {(entry.category_label or '')[:15]:<15} "
            f"{(entry.description or '')[:20]:<20}"
        )
        if show_children:
            for child in node.children:
                click.echo(
                    f"  {child.id:<32} {format_display_date(child.date):<11} "
                    f"{child.category.value:<9} {child.payment_status.value:<8} "
                    f"{format_amount(child.amount):>12}  {(child.category_label or '')[:15]:<15} "
                    f"{(child.description or '')[:20]:<20}"
                )
