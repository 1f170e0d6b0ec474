"""Summary command."""

import click

from ledgerkit.cli.ledger_context import format_amount, get_ledger, run_or_exit
from ledgerkit.domain.summary import build_label_breakdown, build_status_breakdown


@click.command("summary")
@click.option("--by-label", is_flag=True, help="Break totals down by category label")
@click.option("--by-status", is_flag=True, help="Break totals down by payment status")
@click.pass_context
def summary(ctx, by_label: bool, by_status: bool):
    """Show per-category counts and totals for the whole ledger.

    Counts are of root entries; totals include sub-entries.

    Examples:
        ledgerkit summary
        ledgerkit summary --by-label --by-status
    """
    ledger = get_ledger(ctx)
    view = run_or_exit(ctx, ledger.reconcile())
    stats = ledger.stats()

    click.echo(f"{'Category':<12} {'Count':>7} {'Amount':>16}")
    click.echo("-" * 37)
    for name, bucket in stats.as_dict().items():
        if name == "total":
            continue
        click.echo(f"{name:<12} {bucket.count:>7} {format_amount(bucket.amount):>16}")
    click.echo("-" * 37)
    click.echo(f"{'total':<12} {stats.total.count:>7} {format_amount(stats.total.amount):>16}")

    if by_label:
        click.echo()
        click.echo(f"{'Label':<30} {'Category':<10} {'Count':>7} {'Amount':>16}")
        click.echo("-" * 66)
        for row in build_label_breakdown(view.roots):
            click.echo(
                f"{row['label'][:30]:<30} {row['category'].value:<10} "
                f"{row['count']:>7} {format_amount(row['amount']):>16}"
            )

    if by_status:
        click.echo()
        click.echo(f"{'Status':<12} {'Roots':>7} {'Amount':>16}")
        click.echo("-" * 37)
        for status, bucket in build_status_breakdown(view.roots).items():
            click.echo(f"{status.value:<12} {bucket.count:>7} {format_amount(bucket.amount):>16}")


def register_commands(cli):
    """Register summary command with main CLI."""
    cli.add_command(summary)
