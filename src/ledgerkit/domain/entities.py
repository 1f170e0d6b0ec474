"""Domain model entities for ledgerkit.

These are pure data classes representing business concepts, independent of
the backing store schema. Raw store documents are converted to ``RawEntry``
values and only become ``Entry`` values after normalization.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class ExpenseCategory(str, Enum):
    """Business category of an entry."""

    COMPANY = "company"
    CLIENT = "client"
    INVOICE = "invoice"


class PaymentStatus(str, Enum):
    """Payment status of an entry."""

    PENDING = "pending"
    PAID = "paid"

    def toggled(self) -> "PaymentStatus":
        if self is PaymentStatus.PAID:
            return PaymentStatus.PENDING
        return PaymentStatus.PAID


class CorrectionReason(str, Enum):
    """Why a category was rewritten during reconciliation."""

    INVALID_CATEGORY = "invalid_category"
    BOOKING_REQUIRES_CLIENT = "booking_requires_client"
    PARENT_MISMATCH = "parent_mismatch"


@dataclass(frozen=True)
class RawEntry:
    """Entry as received from the backing store, before normalization.

    ``type`` and ``amount`` hold whatever the store returned; only the
    normalizer coerces them.
    """

    id: str
    type: Any = None
    amount: Any = None
    date: Any = None
    created_at: Optional[datetime] = None
    payment_status: Any = None
    parent_id: Optional[str] = None
    booking_id: Optional[str] = None
    document_ref: Optional[str] = None
    description: Optional[str] = None
    category_label: Optional[str] = None
    payment_method: Optional[str] = None
    invoice_number: Optional[str] = None
    due_date: Any = None
    added_by: Optional[str] = None


@dataclass(frozen=True)
class Entry:
    """Normalized ledger entry."""

    id: str
    category: ExpenseCategory
    amount: Decimal
    date: Optional[date]
    created_at: Optional[datetime]
    payment_status: PaymentStatus = PaymentStatus.PENDING
    parent_id: Optional[str] = None
    booking_id: Optional[str] = None
    document_ref: Optional[str] = None
    description: Optional[str] = None
    category_label: Optional[str] = None
    payment_method: Optional[str] = None
    invoice_number: Optional[str] = None
    due_date: Optional[date] = None
    added_by: Optional[str] = None

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


@dataclass(frozen=True)
class CategoryCorrection:
    """A category write-back to persist upstream."""

    entry_id: str
    previous: Any
    category: ExpenseCategory
    reason: CorrectionReason


@dataclass(frozen=True)
class LedgerNode:
    """Root entry with its attached sub-entries.

    ``total_amount`` is the root amount plus the sum of its children.
    """

    entry: Entry
    children: tuple[Entry, ...] = ()
    total_amount: Decimal = Decimal("0")
    is_orphan: bool = False

    @property
    def id(self) -> str:
        return self.entry.id

    @property
    def category(self) -> ExpenseCategory:
        return self.entry.category


@dataclass(frozen=True)
class PageCursor:
    """Opaque position marker: the last root returned by a server page."""

    created_at: Optional[datetime]
    entry_id: str


@dataclass(frozen=True)
class BookingInfo:
    """Display fields of an external booking record."""

    id: str
    boat_name: Optional[str] = None
    client_name: Optional[str] = None
    booking_date: Optional[date] = None
    boat_company: Optional[str] = None


@dataclass(frozen=True)
class ReconciledView:
    """Immutable published result of one reconciliation pass."""

    generation: int
    roots: tuple[LedgerNode, ...] = ()
    entries: tuple[Entry, ...] = ()
    corrections: tuple[CategoryCorrection, ...] = ()
    published_at: Optional[datetime] = None


@dataclass(frozen=True)
class CategoryStats:
    """Count of roots and amount (children included) for one bucket."""

    count: int = 0
    amount: Decimal = Decimal("0")


@dataclass(frozen=True)
class LedgerStats:
    """Top-level statistics keyed by ``total`` and each category."""

    total: CategoryStats = field(default_factory=CategoryStats)
    company: CategoryStats = field(default_factory=CategoryStats)
    client: CategoryStats = field(default_factory=CategoryStats)
    invoice: CategoryStats = field(default_factory=CategoryStats)

    def as_dict(self) -> dict[str, CategoryStats]:
        return {
            "total": self.total,
            "company": self.company,
            "client": self.client,
            "invoice": self.invoice,
        }

    def for_category(self, category: ExpenseCategory) -> CategoryStats:
        return getattr(self, category.value)


@dataclass(frozen=True)
class BulkResult:
    """Outcome partition of a bulk mutation.

    ``failed`` maps each failed id to its error message; ``skipped`` holds ids
    never started because the batch was cancelled.
    """

    succeeded: tuple[str, ...] = ()
    failed: dict[str, str] = field(default_factory=dict)
    skipped: tuple[str, ...] = ()

    @property
    def failed_ids(self) -> tuple[str, ...]:
        return tuple(self.failed)


@dataclass(frozen=True)
class ExportRow:
    """Flat row for tabular export."""

    entry_id: str
    date: Optional[date]
    category: ExpenseCategory
    category_label: Optional[str]
    description: Optional[str]
    amount: Decimal
    payment_status: PaymentStatus
    payment_method: Optional[str]
    invoice_number: Optional[str]
    boat_name: Optional[str]
    booking_date: Optional[date]
    boat_company: Optional[str]
    client_name: Optional[str]
    is_sub_entry: bool = False
    parent_description: Optional[str] = None
