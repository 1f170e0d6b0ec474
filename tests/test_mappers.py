"""Tests for database mappers."""

from datetime import date, datetime
from decimal import Decimal

from ledgerkit.database.mappers import booking_to_domain, expense_to_raw
from ledgerkit.database.models import Booking as ORMBooking, Expense as ORMExpense
from ledgerkit.domain.entities import BookingInfo, RawEntry


class TestExpenseMapper:
    """Tests for Expense mapper."""

    def test_expense_to_raw(self):
        """Test converting ORM Expense to a RawEntry."""
        timestamp = datetime(2024, 6, 1, 9, 30)
        orm_expense = ORMExpense(
            id="abc",
            type="Client",
            amount=Decimal("12.50"),
            date="2024-06-01",
            timestamp=timestamp,
            payment_status="paid",
            parent_id="root",
            booking_id="bk_1",
            document_ref="receipts/abc.pdf",
            description="Ice",
            category_label="Food",
            payment_method="cash",
            invoice_number="INV-3",
            due_date="2024-06-30",
            added_by="Maria",
        )

        raw = expense_to_raw(orm_expense)

        assert isinstance(raw, RawEntry)
        assert raw.id == "abc"
        assert raw.created_at == timestamp
        assert raw.parent_id == "root"
        assert raw.document_ref == "receipts/abc.pdf"
        assert raw.due_date == "2024-06-30"

    def test_values_are_not_coerced(self):
        """Test that stored values pass through unvalidated."""
        raw = expense_to_raw(ORMExpense(id="x", type="bogus", amount=None, date="not a date"))

        assert raw.type == "bogus"
        assert raw.amount is None
        assert raw.date == "not a date"


class TestBookingMapper:
    """Tests for Booking mapper."""

    def test_booking_to_domain(self):
        """Test converting ORM Booking to BookingInfo."""
        orm_booking = ORMBooking(
            id="bk_1",
            boat_name="Blue Lagoon",
            client_name="Jane Smith",
            booking_date=date(2024, 6, 14),
            boat_company="Sea Charters",
        )

        booking = booking_to_domain(orm_booking)

        assert booking == BookingInfo(
            id="bk_1",
            boat_name="Blue Lagoon",
            client_name="Jane Smith",
            booking_date=date(2024, 6, 14),
            boat_company="Sea Charters",
        )
