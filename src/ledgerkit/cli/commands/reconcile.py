"""Reconciliation commands."""

import asyncio

import click

from ledgerkit.cli.ledger_context import format_amount, get_ledger, run_or_exit
from ledgerkit.domain.entities import ReconciledView
from ledgerkit.domain.ledger import LedgerService


@click.command("reconcile")
@click.pass_context
def reconcile(ctx):
    """Run one reconciliation pass and persist category corrections.

    Examples:
        ledgerkit reconcile
    """
    ledger = get_ledger(ctx)
    view = run_or_exit(ctx, ledger.reconcile())

    orphans = sum(1 for node in view.roots if node.is_orphan)
    click.echo(f"Reconciled {len(view.entries)} entr{'y' if len(view.entries) == 1 else 'ies'} "
               f"into {len(view.roots)} root(s)")
    if orphans:
        click.echo(f"  {orphans} orphaned sub-entr{'y' if orphans == 1 else 'ies'} shown as standalone")

    if not view.corrections:
        click.echo("No corrections needed.")
        return

    click.echo(f"Corrected {len(view.corrections)} categor{'y' if len(view.corrections) == 1 else 'ies'}:")
    for correction in view.corrections:
        click.echo(
            f"  {correction.entry_id}: {correction.previous!r} -> "
            f"{correction.category.value} ({correction.reason.value})"
        )

    failed = ledger.reconciler.failed_write_backs
    if failed:
        click.echo(f"{len(failed)} correction(s) could not be saved and will be retried.", err=True)


async def _watch(ledger: LedgerService, duration: float) -> bool:
    def on_view(view: ReconciledView) -> None:
        stats = ledger.stats()
        click.echo(
            f"[generation {view.generation}] {stats.total.count} root(s), "
            f"total {format_amount(stats.total.amount)}, {len(view.corrections)} correction(s)"
        )

    unsubscribe = ledger.reconciler.subscribe(on_view)
    try:
        subscription = await ledger.start_subscription()
        if subscription is None:
            return False
        try:
            await asyncio.sleep(duration)
        finally:
            await subscription.stop()
            await ledger.drain()
    finally:
        unsubscribe()
    return True


@click.command("watch")
@click.option(
    "--duration",
    type=float,
    default=60.0,
    show_default=True,
    help="Seconds to keep watching",
)
@click.option("--interval", type=float, help="Seconds between polls (overrides LEDGERKIT_POLL_INTERVAL)")
@click.pass_context
def watch(ctx, duration: float, interval: float | None):
    """Follow the store and print a line whenever the ledger changes.

    Examples:
        ledgerkit watch --duration 300 --interval 2
    """
    ledger = get_ledger(ctx)
    if interval is not None:
        try:
            ledger.config = ledger.config.with_overrides(poll_interval_seconds=interval)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)

    if not run_or_exit(ctx, _watch(ledger, duration)):
        click.echo("Error: Could not connect to the ledger store; data is unavailable.", err=True)
        ctx.exit(1)


def register_commands(cli):
    """Register reconciliation commands with main CLI."""
    cli.add_command(reconcile)
    cli.add_command(watch)
