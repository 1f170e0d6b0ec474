"""Mapper functions to convert SQLAlchemy models into domain values.

Expenses map to ``RawEntry`` rather than ``Entry``: the store keeps whatever
was written, and only the normalizer decides what it means.
"""

from ledgerkit.domain import entities as domain
from ledgerkit.database.models import (
    Booking as ORMBooking,
    Expense as ORMExpense,
)


def expense_to_raw(orm_expense: ORMExpense) -> domain.RawEntry:
    """Convert SQLAlchemy Expense model to a RawEntry."""
    return domain.RawEntry(
        id=orm_expense.id,
        type=orm_expense.type,
        amount=orm_expense.amount,
        date=orm_expense.date,
        created_at=orm_expense.timestamp,
        payment_status=orm_expense.payment_status,
        parent_id=orm_expense.parent_id,
        booking_id=orm_expense.booking_id,
        document_ref=orm_expense.document_ref,
        description=orm_expense.description,
        category_label=orm_expense.category_label,
        payment_method=orm_expense.payment_method,
        invoice_number=orm_expense.invoice_number,
        due_date=orm_expense.due_date,
        added_by=orm_expense.added_by,
    )


def booking_to_domain(orm_booking: ORMBooking) -> domain.BookingInfo:
    """Convert SQLAlchemy Booking model to a BookingInfo entity."""
    return domain.BookingInfo(
        id=orm_booking.id,
        boat_name=orm_booking.boat_name,
        client_name=orm_booking.client_name,
        booking_date=orm_booking.booking_date,
        boat_company=orm_booking.boat_company,
    )
