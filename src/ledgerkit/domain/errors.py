"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class StoreError(Exception):
    """Backing store could not complete a read or write."""


class SubscriptionError(StoreError):
    """The backing-store subscription could not be established."""


def expense_not_found(entry_id: str) -> str:
    """Return message for missing entry."""
    return f"Expense {entry_id} not found"


def parent_not_found(parent_id: str) -> str:
    """Return message for a missing parent entry."""
    return f"Parent expense {parent_id} not found"


def parent_is_sub_entry(parent_id: str) -> str:
    """Return message when the requested parent is itself a sub-entry."""
    return f"Expense {parent_id} is a sub-entry and cannot have sub-entries"


def invalid_category(value: object) -> str:
    """Return message for an unknown category value."""
    return f"Invalid category '{value}'. Expected one of: company, client, invoice"


def invalid_payment_status(value: object) -> str:
    """Return message for an unknown payment status."""
    return f"Invalid payment status '{value}'. Expected one of: pending, paid"


def negative_amount(amount: object) -> str:
    """Return message for a negative amount."""
    return f"Amount must not be negative (got {amount})"
