"""Flat export rows for a working view."""

from typing import Iterable, Mapping, Optional

from ledgerkit.domain.entities import BookingInfo, Entry, ExportRow, LedgerNode

EXPORT_COLUMNS = (
    "Date",
    "Type",
    "Category",
    "Description",
    "Amount",
    "Payment Status",
    "Payment Method",
    "Boat Name",
    "Booking Date",
    "Boat Company",
    "Client Name",
    "Invoice Number",
    "Sub-entry",
    "Parent Description",
)


def _row(
    entry: Entry,
    booking: Optional[BookingInfo],
    parent: Optional[Entry] = None,
) -> ExportRow:
    return ExportRow(
        entry_id=entry.id,
        date=entry.date,
        category=entry.category,
        category_label=entry.category_label,
        description=entry.description,
        amount=entry.amount,
        payment_status=entry.payment_status,
        payment_method=entry.payment_method,
        invoice_number=entry.invoice_number,
        boat_name=booking.boat_name if booking else None,
        booking_date=booking.booking_date if booking else None,
        boat_company=booking.boat_company if booking else None,
        client_name=booking.client_name if booking else None,
        is_sub_entry=parent is not None,
        parent_description=parent.description if parent is not None else None,
    )


def build_export_rows(
    nodes: Iterable[LedgerNode],
    bookings: Optional[Mapping[str, BookingInfo]] = None,
) -> list[ExportRow]:
    """Flatten roots into rows: each root followed by its sub-entries.

    Args:
        nodes: Roots in display order
        bookings: Booking records by id

    Returns:
        One row per root and one per sub-entry
    """
    bookings = bookings or {}
    rows: list[ExportRow] = []
    for node in nodes:
        root = node.entry
        rows.append(_row(root, bookings.get(root.booking_id) if root.booking_id else None))
        for child in node.children:
            booking = bookings.get(child.booking_id) if child.booking_id else None
            rows.append(_row(child, booking, parent=root))
    return rows
