"""Filtering and sorting of reconciled roots into a working view."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from ledgerkit.domain.entities import (
    BookingInfo,
    ExpenseCategory,
    LedgerNode,
    PaymentStatus,
)
from ledgerkit.utils.date_parser import format_display_date


class CategorySelector(str, Enum):
    """Exclusive category selector for the working view."""

    ALL = "all"
    COMPANY = "company"
    CLIENT = "client"
    INVOICE = "invoice"

    @property
    def category(self) -> Optional[ExpenseCategory]:
        if self is CategorySelector.ALL:
            return None
        return ExpenseCategory(self.value)


class SortKey(str, Enum):
    """Field the working view is sorted by."""

    DATE = "date"
    AMOUNT = "amount"
    LABEL = "label"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class FilterSpec:
    """Filter and sort settings for the working view.

    Every field left at its default is a no-op stage.
    """

    query: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    payment_status: Optional[PaymentStatus] = None
    category_labels: frozenset[str] = field(default_factory=frozenset)
    has_document: Optional[bool] = None
    has_booking: Optional[bool] = None
    sort_key: SortKey = SortKey.DATE
    sort_direction: SortDirection = SortDirection.DESC


def _booking_search_fields(booking: BookingInfo) -> list[str]:
    fields = [booking.boat_name, booking.client_name, booking.boat_company]
    if booking.booking_date is not None:
        fields.append(booking.booking_date.isoformat())
        fields.append(format_display_date(booking.booking_date))
    return [f for f in fields if f]


def matches_query(
    node: LedgerNode, query: str, bookings: Mapping[str, BookingInfo]
) -> bool:
    """Return True if ``query`` occurs in the root's searchable text."""
    needle = query.strip().lower()
    if not needle:
        return True

    entry = node.entry
    haystack = [entry.category_label, entry.description]
    booking = bookings.get(entry.booking_id) if entry.booking_id else None
    if booking is not None:
        haystack.extend(_booking_search_fields(booking))

    return any(needle in text.lower() for text in haystack if text)


def _in_date_range(node: LedgerNode, spec: FilterSpec) -> bool:
    entry_date = node.entry.date
    if entry_date is None:
        return False
    if spec.date_from is not None and entry_date < spec.date_from:
        return False
    if spec.date_to is not None and entry_date > spec.date_to:
        return False
    return True


def _in_amount_range(node: LedgerNode, spec: FilterSpec) -> bool:
    amount = node.entry.amount
    if spec.min_amount is not None and amount < spec.min_amount:
        return False
    if spec.max_amount is not None and amount > spec.max_amount:
        return False
    return True


def _filter_stages(
    selector: CategorySelector, spec: FilterSpec, bookings: Mapping[str, BookingInfo]
) -> list[Callable[[LedgerNode], bool]]:
    """Build the active filter stages in their fixed order."""
    stages: list[Callable[[LedgerNode], bool]] = []

    category = selector.category
    if category is not None:
        stages.append(lambda n: n.entry.category is category)

    if spec.query and spec.query.strip():
        stages.append(lambda n: matches_query(n, spec.query, bookings))

    if spec.date_from is not None or spec.date_to is not None:
        stages.append(lambda n: _in_date_range(n, spec))

    if spec.min_amount is not None or spec.max_amount is not None:
        stages.append(lambda n: _in_amount_range(n, spec))

    if spec.payment_status is not None:
        stages.append(lambda n: n.entry.payment_status is spec.payment_status)

    if spec.category_labels:
        stages.append(lambda n: n.entry.category_label in spec.category_labels)

    if spec.has_document is not None:
        stages.append(lambda n: (n.entry.document_ref is not None) is spec.has_document)

    if spec.has_booking is not None:
        stages.append(lambda n: (n.entry.booking_id is not None) is spec.has_booking)

    return stages


def _sort_value(node: LedgerNode, key: SortKey) -> Any:
    entry = node.entry
    if key is SortKey.DATE:
        return entry.date
    if key is SortKey.AMOUNT:
        return entry.amount
    if entry.category_label is None:
        return None
    return entry.category_label.lower()


def sort_nodes(
    nodes: Iterable[LedgerNode],
    key: SortKey = SortKey.DATE,
    direction: SortDirection = SortDirection.DESC,
) -> list[LedgerNode]:
    """Sort roots by ``key``; ties are ordered by id, missing values last."""
    ordered = sorted(nodes, key=lambda n: n.id)
    present = [n for n in ordered if _sort_value(n, key) is not None]
    missing = [n for n in ordered if _sort_value(n, key) is None]
    # sort() stays stable with reverse=True, so id order survives within ties
    present.sort(key=lambda n: _sort_value(n, key), reverse=direction is SortDirection.DESC)
    return present + missing


def apply_filters(
    nodes: Sequence[LedgerNode],
    selector: CategorySelector = CategorySelector.ALL,
    spec: Optional[FilterSpec] = None,
    bookings: Optional[Mapping[str, BookingInfo]] = None,
) -> list[LedgerNode]:
    """Produce the working view from reconciled roots.

    Stages run in a fixed order: category selector, free-text query, date
    range, amount range, payment status, category-label set, document
    presence, booking presence. The result is then sorted.

    Args:
        nodes: Reconciled roots
        selector: Exclusive category selector
        spec: Filter and sort settings
        bookings: Booking records by id, used by the free-text query

    Returns:
        Filtered and sorted roots
    """
    spec = spec or FilterSpec()
    bookings = bookings or {}

    result = list(nodes)
    for stage in _filter_stages(selector, spec, bookings):
        result = [n for n in result if stage(n)]

    return sort_nodes(result, spec.sort_key, spec.sort_direction)


def node_filter(
    selector: CategorySelector = CategorySelector.ALL,
    spec: Optional[FilterSpec] = None,
    bookings: Optional[Mapping[str, BookingInfo]] = None,
) -> Callable[[LedgerNode], bool]:
    """Combine the filter stages of ``apply_filters`` into one predicate.

    Used where roots arrive in batches and cannot be sorted as a whole.
    """
    stages = _filter_stages(selector, spec or FilterSpec(), bookings or {})
    return lambda node: all(stage(node) for stage in stages)
