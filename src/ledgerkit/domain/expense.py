"""Expense domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import Entry, ExpenseCategory, PaymentStatus
from ledgerkit.domain.errors import (
    NotFoundError,
    ValidationError,
    expense_not_found,
    invalid_category,
    invalid_payment_status,
    negative_amount,
    parent_is_sub_entry,
    parent_not_found,
)
from ledgerkit.domain.normalizer import normalize_entry, parse_category, parse_payment_status

logger = logging.getLogger(__name__)


class ExpenseService:
    """Service for operator actions on single expenses."""

    def __init__(self, db: Database):
        """Initialize expense service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_expense(
        self,
        category: Any,
        amount: Decimal,
        date: Optional[date] = None,
        description: Optional[str] = None,
        category_label: Optional[str] = None,
        payment_status: Any = PaymentStatus.PENDING,
        parent_id: Optional[str] = None,
        booking_id: Optional[str] = None,
        document_ref: Optional[str] = None,
        payment_method: Optional[str] = None,
        invoice_number: Optional[str] = None,
        due_date: Optional[date] = None,
        added_by: Optional[str] = None,
    ) -> str:
        """Create an expense.

        The supplied category is validated, then a booking forces ``client``
        and a sub-entry takes its root's category.

        Args:
            category: Category name (company, client or invoice)
            amount: Non-negative amount
            date: Business date
            description: Optional description
            category_label: Optional free-text grouping tag
            payment_status: Initial payment status
            parent_id: Optional root entry to attach to
            booking_id: Optional linked booking
            document_ref: Optional attached document reference
            payment_method: Optional payment method
            invoice_number: Optional invoice number
            due_date: Optional due date
            added_by: Optional name of the operator

        Returns:
            Expense ID

        Raises:
            ValidationError: If the category, amount, status or parent is invalid
        """
        resolved = parse_category(category)
        if resolved is None:
            raise ValidationError(invalid_category(category))

        if amount < 0:
            raise ValidationError(negative_amount(amount))

        status = parse_payment_status(payment_status)
        if status is None:
            raise ValidationError(invalid_payment_status(payment_status))

        booking_id = booking_id or None
        parent_id = parent_id or None

        if parent_id is not None:
            parent = self.db.get_entry(parent_id)
            if parent is None:
                raise ValidationError(parent_not_found(parent_id))
            if parent.parent_id:
                raise ValidationError(parent_is_sub_entry(parent_id))
            if booking_id is None:
                resolved = normalize_entry(parent).entry.category

        if booking_id is not None and resolved is not ExpenseCategory.CLIENT:
            logger.info(
                "Booking-linked expense stored as client",
                extra={"requested": resolved.value, "booking_id": booking_id},
            )
            resolved = ExpenseCategory.CLIENT

        expense_id = self.db.create_entry(
            type=resolved,
            amount=amount,
            date=date,
            description=description,
            category_label=category_label,
            payment_status=status,
            parent_id=parent_id,
            booking_id=booking_id,
            document_ref=document_ref,
            payment_method=payment_method,
            invoice_number=invoice_number,
            due_date=due_date,
            added_by=added_by,
        )
        logger.info(
            "Created expense",
            extra={"entry_id": expense_id, "category": resolved.value, "parent_id": parent_id},
        )
        return expense_id

    def get_expense(self, expense_id: str) -> Optional[Entry]:
        """Get the normalized expense by ID, or None if it does not exist."""
        raw = self.db.get_entry(expense_id)
        if raw is None:
            return None
        return normalize_entry(raw).entry

    def toggle_payment_status(self, expense_id: str) -> PaymentStatus:
        """Flip an expense between pending and paid.

        Returns:
            The new payment status

        Raises:
            NotFoundError: If the expense doesn't exist
        """
        raw = self.db.get_entry(expense_id)
        if raw is None:
            raise NotFoundError(expense_not_found(expense_id))

        current = parse_payment_status(raw.payment_status) or PaymentStatus.PENDING
        new_status = current.toggled()
        self.db.update_payment_status(expense_id, new_status)
        return new_status
