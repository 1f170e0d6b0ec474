"""CLI helpers for filter options and date range resolution."""

from datetime import date
from decimal import Decimal
from typing import Any, Callable, Optional

import click

from ledgerkit.domain.entities import PaymentStatus
from ledgerkit.domain.filtering import CategorySelector, FilterSpec, SortDirection, SortKey
from ledgerkit.utils.amount_parser import parse_amount
from ledgerkit.utils.date_parser import get_date_range, parse_date

PERIODS = ("this-month", "this-year", "this-week", "last-month", "last-year", "last-week")

_FILTER_OPTIONS = [
    click.option(
        "--show",
        type=click.Choice([s.value for s in CategorySelector]),
        default=CategorySelector.ALL.value,
        show_default=True,
        help="Category to show",
    ),
    click.option("--search", help="Text to find in label, description or booking details"),
    click.option("--start-date", help="Start date (YYYY-MM-DD, DD/MM/YYYY or relative like 'last month')"),
    click.option("--end-date", help="End date (YYYY-MM-DD, DD/MM/YYYY or relative like 'today')"),
    click.option("--this-month", is_flag=True, help="Filter to current month"),
    click.option("--this-year", is_flag=True, help="Filter to current year"),
    click.option("--this-week", is_flag=True, help="Filter to current week"),
    click.option("--last-month", is_flag=True, help="Filter to previous month"),
    click.option("--last-year", is_flag=True, help="Filter to previous year"),
    click.option("--last-week", is_flag=True, help="Filter to previous week"),
    click.option("--min-amount", help="Minimum amount of the entry itself"),
    click.option("--max-amount", help="Maximum amount of the entry itself"),
    click.option("--status", type=click.Choice([s.value for s in PaymentStatus]), help="Payment status"),
    click.option("--label", "labels", multiple=True, help="Category label (repeatable)"),
    click.option(
        "--with-document/--without-document",
        "has_document",
        default=None,
        help="Only entries with (or without) an attached document",
    ),
    click.option(
        "--with-booking/--without-booking",
        "has_booking",
        default=None,
        help="Only entries with (or without) a linked booking",
    ),
    click.option(
        "--sort",
        type=click.Choice([k.value for k in SortKey]),
        default=SortKey.DATE.value,
        show_default=True,
        help="Sort key",
    ),
    click.option(
        "--direction",
        type=click.Choice([d.value for d in SortDirection]),
        default=SortDirection.DESC.value,
        show_default=True,
        help="Sort direction",
    ),
]


def filter_options(func: Callable) -> Callable:
    """Add the working-view filter options to a command."""
    for option in reversed(_FILTER_OPTIONS):
        func = option(func)
    return func


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
) -> tuple[date | None, date | None]:
    """Resolve CLI date range from period flags or explicit dates."""
    period_count = sum(1 for is_set in period_flags.values() if is_set)

    if period_count > 1:
        click.echo(
            "Error: Only one period option (--this-month, --this-year, --this-week, --last-month, --last-year, --last-week) can be specified at a time.",
            err=True,
        )
        ctx.exit(1)

    if period_count > 0 and (start_date or end_date):
        click.echo(
            "Error: Period options (--this-month, --this-year, etc.) cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    start = None
    end = None

    if period_count == 1:
        for period, is_set in period_flags.items():
            if is_set:
                start, end = get_date_range(period)
                break
    else:
        if start_date:
            try:
                start = parse_date(start_date)
            except ValueError as e:
                click.echo(f"Error: Invalid start date: {e}", err=True)
                ctx.exit(1)

        if end_date:
            try:
                end = parse_date(end_date)
            except ValueError as e:
                click.echo(f"Error: Invalid end date: {e}", err=True)
                ctx.exit(1)

    return start, end


def _parse_amount_option(ctx, name: str, value: Optional[str]) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {name}: {e}", err=True)
        ctx.exit(1)


def build_filter_spec(ctx, filters: dict[str, Any]) -> tuple[CategorySelector, FilterSpec]:
    """Turn the values of ``filter_options`` into a selector and filter spec."""
    period_flags = {period: filters.get(period.replace("-", "_"), False) for period in PERIODS}
    start, end = resolve_cli_date_range(
        ctx,
        start_date=filters.get("start_date"),
        end_date=filters.get("end_date"),
        period_flags=period_flags,
    )

    status = filters.get("status")
    spec = FilterSpec(
        query=filters.get("search"),
        date_from=start,
        date_to=end,
        min_amount=_parse_amount_option(ctx, "minimum amount", filters.get("min_amount")),
        max_amount=_parse_amount_option(ctx, "maximum amount", filters.get("max_amount")),
        payment_status=PaymentStatus(status) if status else None,
        category_labels=frozenset(filters.get("labels") or ()),
        has_document=filters.get("has_document"),
        has_booking=filters.get("has_booking"),
        sort_key=SortKey(filters.get("sort", SortKey.DATE.value)),
        sort_direction=SortDirection(filters.get("direction", SortDirection.DESC.value)),
    )
    return CategorySelector(filters.get("show", CategorySelector.ALL.value)), spec
