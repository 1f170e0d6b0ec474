"""Ledger listing command."""

import click
from click.core import ParameterSource

from ledgerkit.cli.filters import build_filter_spec, filter_options
from ledgerkit.cli.ledger_context import echo_node_table, get_ledger, run_or_exit
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.config import ConfigError
from ledgerkit.domain.errors import StoreError, ValidationError


@click.command("list")
@filter_options
@click.option("--page", type=int, default=1, show_default=True, help="Page number")
@click.option("--page-size", type=int, help="Entries per page (overrides LEDGERKIT_PAGE_SIZE)")
@click.option(
    "--mode",
    type=click.Choice(["client", "server"]),
    help="Pagination mode (overrides LEDGERKIT_PAGINATION_MODE)",
)
@click.option("--tree", is_flag=True, help="Show sub-entries under their root")
@click.pass_context
def list_entries(ctx, page: int, page_size: int | None, mode: str | None, tree: bool, **filters):
    """List reconciled ledger entries.

    Client mode filters and sorts the whole ledger. Server mode reads pages
    of matching roots straight from the store, newest first; it cannot
    re-sort, and earlier pages cannot be revisited without starting over.

    Examples:
        ledgerkit list --show client --min-amount 50
        ledgerkit list --search "blue lagoon" --sort amount --direction asc
        ledgerkit list --mode server --show client --page 2
    """
    ledger = get_ledger(ctx)
    if page_size is not None or mode is not None:
        try:
            ledger.config = ledger.config.with_overrides(page_size=page_size, pagination_mode=mode)
        except ConfigError as e:
            handle_domain_error(ctx, e)

    if page < 1:
        click.echo("Error: --page must be at least 1", err=True)
        ctx.exit(1)

    selector, spec = build_filter_spec(ctx, filters)

    if ledger.config.pagination_mode == "server":
        if any(
            ctx.get_parameter_source(name) not in (None, ParameterSource.DEFAULT)
            for name in ("sort", "direction")
        ):
            click.echo("Error: --sort and --direction are not available in server mode", err=True)
            ctx.exit(1)
        paginator = ledger.server_paginator(selector, spec)
        try:
            result = paginator.go_to(page)
        except StoreError as e:
            handle_domain_error(ctx, e)
        if result.number != page:
            click.echo(f"Only {result.number} page(s) available.")
        if not result.items:
            click.echo("No entries found.")
            return
        click.echo(f"\nPage {result.number}{' (more available)' if result.has_next else ''}:")
        echo_node_table(list(result.items), show_children=tree)
        return

    run_or_exit(ctx, ledger.reconcile())

    paginator = ledger.client_paginator(selector, spec)
    if paginator.total_items == 0:
        click.echo("No entries found.")
        return

    try:
        result = paginator.page(page)
    except ValidationError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    if not result.items:
        click.echo(f"Page {page} is empty; there are {result.total_pages} page(s).")
        return

    click.echo(
        f"\nFound {result.total_items} entr{'y' if result.total_items == 1 else 'ies'} "
        f"(page {result.number} of {result.total_pages}):"
    )
    echo_node_table(list(result.items), show_children=tree)


def register_commands(cli):
    """Register list command with main CLI."""
    cli.add_command(list_entries)
