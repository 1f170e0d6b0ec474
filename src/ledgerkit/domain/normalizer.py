"""Record normalization for raw store entries.

This module is the single place where loosely-typed store values are coerced
into domain values. Invalid input never raises: every raw entry yields a
usable ``Entry``.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from dateutil import parser as date_parser

from ledgerkit.domain.entities import (
    CategoryCorrection,
    CorrectionReason,
    Entry,
    ExpenseCategory,
    PaymentStatus,
    RawEntry,
)
from ledgerkit.utils.amount_parser import coerce_amount
from ledgerkit.utils.date_parser import coerce_store_date

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = ExpenseCategory.COMPANY


@dataclass(frozen=True)
class NormalizedRecord:
    """Normalizer output for one raw entry."""

    entry: Entry
    was_corrected: bool = False
    correction: Optional[CategoryCorrection] = None


def parse_category(value: Any) -> Optional[ExpenseCategory]:
    """Return the canonical category for ``value``, or None if unknown."""
    if isinstance(value, ExpenseCategory):
        return value
    if not isinstance(value, str):
        return None
    try:
        return ExpenseCategory(value.strip().lower())
    except ValueError:
        return None


def parse_payment_status(value: Any) -> Optional[PaymentStatus]:
    """Return the canonical payment status for ``value``, or None if unknown."""
    if isinstance(value, PaymentStatus):
        return value
    if not isinstance(value, str):
        return None
    try:
        return PaymentStatus(value.strip().lower())
    except ValueError:
        return None


def normalize_category(raw_type: Any, booking_id: Optional[str]) -> tuple[ExpenseCategory, Optional[CorrectionReason]]:
    """Apply the category rules to a raw type value.

    Returns:
        Tuple of (canonical category, reason) where reason is None when the
        stored value is already canonical.
    """
    category = parse_category(raw_type)
    reason = None
    if category is None:
        category = DEFAULT_CATEGORY
        reason = CorrectionReason.INVALID_CATEGORY

    if booking_id and category is not ExpenseCategory.CLIENT:
        category = ExpenseCategory.CLIENT
        reason = CorrectionReason.BOOKING_REQUIRES_CLIENT

    if reason is None and raw_type != category.value:
        # Known value in a non-canonical spelling, e.g. "Client"
        reason = CorrectionReason.INVALID_CATEGORY

    return category, reason


def _normalize_amount(raw: RawEntry) -> Decimal:
    try:
        amount = coerce_amount(raw.amount)
    except ValueError:
        logger.warning(
            "Unparseable amount defaulted to 0",
            extra={"entry_id": raw.id, "amount": repr(raw.amount)},
        )
        return Decimal("0")
    if amount < 0:
        logger.warning(
            "Negative amount stored as its magnitude",
            extra={"entry_id": raw.id, "amount": str(amount)},
        )
        return -amount
    return amount


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; ingestion times are always UTC
    if value is None or not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _clean_ref(value: Any) -> Optional[str]:
    # The store uses "" and None interchangeably for unset references
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _clean_text(value: Any) -> Optional[str]:
    # Documents written by other clients may hold numbers in text fields
    if value is None or isinstance(value, str):
        return value
    return str(value)


def normalize_entry(raw: RawEntry) -> NormalizedRecord:
    """Normalize one raw entry.

    Coerces the category (unknown or missing values become ``company``;
    a booking forces ``client``), the amount, dates, and payment status.
    Text fields that hold other values are turned into strings.
    Only category changes are reported as corrections to write back.

    Args:
        raw: Entry as received from the backing store

    Returns:
        NormalizedRecord with the entry and an optional correction
    """
    booking_id = _clean_ref(raw.booking_id)
    category, reason = normalize_category(raw.type, booking_id)

    status = parse_payment_status(raw.payment_status) or PaymentStatus.PENDING

    parent_id = _clean_ref(raw.parent_id)
    entry = Entry(
        id=raw.id,
        category=category,
        amount=_normalize_amount(raw),
        date=coerce_store_date(raw.date),
        created_at=_as_utc(raw.created_at),
        payment_status=status,
        parent_id=parent_id,
        booking_id=booking_id,
        document_ref=_clean_ref(raw.document_ref),
        description=_clean_text(raw.description),
        category_label=_clean_text(raw.category_label),
        payment_method=_clean_text(raw.payment_method),
        invoice_number=_clean_text(raw.invoice_number),
        due_date=coerce_store_date(raw.due_date),
        added_by=_clean_text(raw.added_by),
    )

    if reason is None:
        return NormalizedRecord(entry=entry)

    logger.warning(
        "Entry category corrected",
        extra={
            "entry_id": raw.id,
            "stored": repr(raw.type),
            "category": category.value,
            "reason": reason.value,
        },
    )
    correction = CategoryCorrection(
        entry_id=raw.id, previous=raw.type, category=category, reason=reason
    )
    return NormalizedRecord(entry=entry, was_corrected=True, correction=correction)


def raw_entry_from_document(document: Mapping[str, Any]) -> RawEntry:
    """Build a RawEntry from a store document using its camelCase field names.

    ``imageURL`` and ``documentRef`` are accepted as aliases, as are
    ``timestamp`` and ``createdAt``, and ``category`` and ``categoryLabel``.
    """

    def first(*keys: str) -> Any:
        for key in keys:
            if document.get(key) not in (None, ""):
                return document[key]
        return None

    created_at = first("timestamp", "createdAt", "created_at")
    if isinstance(created_at, str):
        try:
            created_at = date_parser.isoparse(created_at)
        except ValueError:
            created_at = None
    elif not isinstance(created_at, datetime):
        created_at = None

    return RawEntry(
        id=str(document["id"]),
        type=document.get("type"),
        amount=document.get("amount"),
        date=document.get("date"),
        created_at=created_at,
        payment_status=document.get("paymentStatus"),
        parent_id=first("parentId", "parent_id"),
        booking_id=first("bookingId", "booking_id"),
        document_ref=first("documentRef", "imageURL", "document_ref"),
        description=document.get("description"),
        category_label=first("categoryLabel", "category", "category_label"),
        payment_method=first("paymentMethod", "payment_method"),
        invoice_number=first("invoiceNumber", "invoice_number"),
        due_date=first("dueDate", "due_date"),
        added_by=first("addedBy", "added_by"),
    )
