"""Abstract backing-store interface."""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Any

# Import entities directly to avoid circular import through domain services
from ledgerkit.domain.entities import (
    BookingInfo,
    ExpenseCategory,
    PageCursor,
    PaymentStatus,
    RawEntry,
)


class Database(ABC):
    """Abstract backing store for ledger entries.

    Reads return ``RawEntry`` values exactly as stored. Writes raise
    ``NotFoundError`` for unknown ids and ``StoreError`` when the store
    itself fails.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Entry reads
    @abstractmethod
    def list_entries(self) -> list[RawEntry]:
        """List all entries ordered by ingestion time, newest first, then by id."""
        pass

    @abstractmethod
    def get_entry(self, entry_id: str) -> Optional[RawEntry]:
        """Get entry by ID."""
        pass

    @abstractmethod
    def list_children(self, parent_ids: Iterable[str]) -> list[RawEntry]:
        """List entries whose parent is one of ``parent_ids``."""
        pass

    @abstractmethod
    def list_root_entries_page(
        self, limit: int, start_after: Optional[PageCursor] = None
    ) -> list[RawEntry]:
        """List up to ``limit`` root entries after a cursor, in ``list_entries`` order.

        Orphaned sub-entries (missing or non-root parent) are listed as roots.
        """
        pass

    # Entry writes
    @abstractmethod
    def create_entry(
        self,
        type: Any,
        amount: Decimal,
        date: Optional[date] = None,
        description: Optional[str] = None,
        category_label: Optional[str] = None,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        parent_id: Optional[str] = None,
        booking_id: Optional[str] = None,
        document_ref: Optional[str] = None,
        payment_method: Optional[str] = None,
        invoice_number: Optional[str] = None,
        due_date: Optional[date] = None,
        added_by: Optional[str] = None,
    ) -> str:
        """Create an entry. Returns the store-assigned entry ID.

        ``type`` is written as given; callers decide whether it is valid.
        """
        pass

    @abstractmethod
    def update_entry_category(self, entry_id: str, category: ExpenseCategory) -> None:
        """Overwrite the stored category of an entry."""
        pass

    @abstractmethod
    def update_payment_status(self, entry_id: str, status: PaymentStatus) -> None:
        """Update the payment status of an entry."""
        pass

    @abstractmethod
    def delete_entry(self, entry_id: str) -> None:
        """Delete an entry."""
        pass

    @abstractmethod
    def detach_children(self, parent_id: str) -> int:
        """Clear ``parent_id`` on every child of an entry. Returns the count."""
        pass

    # Booking operations (read side of an external collaborator)
    @abstractmethod
    def create_booking(
        self,
        boat_name: Optional[str] = None,
        client_name: Optional[str] = None,
        booking_date: Optional[date] = None,
        boat_company: Optional[str] = None,
    ) -> str:
        """Create a booking record. Returns booking ID."""
        pass

    @abstractmethod
    def get_bookings(self, booking_ids: Iterable[str]) -> dict[str, BookingInfo]:
        """Get bookings by ID. Unknown IDs are left out of the result."""
        pass
