"""Ledger facade wiring the reconciliation pipeline together."""

import asyncio
import logging
from typing import Iterable, Optional

from ledgerkit.config import LedgerConfig
from ledgerkit.database.base import Database
from ledgerkit.database.subscription import PollingSubscription
from ledgerkit.domain.bulk import BulkMutationCoordinator
from ledgerkit.domain.entities import (
    BookingInfo,
    BulkResult,
    ExportRow,
    LedgerNode,
    LedgerStats,
    PaymentStatus,
    ReconciledView,
)
from ledgerkit.domain.errors import StoreError, SubscriptionError
from ledgerkit.domain.expense import ExpenseService
from ledgerkit.domain.export import build_export_rows
from ledgerkit.domain.filtering import CategorySelector, FilterSpec, apply_filters
from ledgerkit.domain.pagination import ClientPaginator, ServerPaginator, StorePageSource
from ledgerkit.domain.reconciler import SnapshotReconciler
from ledgerkit.domain.summary import build_stats

logger = logging.getLogger(__name__)


class LedgerService:
    """Entry point for reading and mutating the reconciled ledger.

    Owns the single reconciler that writes the reconciled view, and a bulk
    coordinator that writes to the store only. Mutations refresh the view
    afterwards by pulling a new snapshot.
    """

    def __init__(self, db: Database, config: Optional[LedgerConfig] = None):
        """Initialize ledger service.

        Args:
            db: Database instance
            config: Ledger settings (defaults apply when omitted)
        """
        self.db = db
        self.config = config or LedgerConfig()
        self.reconciler = SnapshotReconciler(
            db, write_back_concurrency=self.config.write_back_concurrency
        )
        self.coordinator = BulkMutationCoordinator(db, max_concurrency=self.config.bulk_concurrency)
        self.expenses = ExpenseService(db)

    @property
    def view(self) -> ReconciledView:
        """The last published reconciled view."""
        return self.reconciler.view

    async def refresh(self) -> ReconciledView:
        """Pull a full snapshot from the store and reconcile it.

        Raises:
            SubscriptionError: If the snapshot cannot be loaded
        """
        try:
            snapshot = await asyncio.to_thread(self.db.list_entries)
        except StoreError as e:
            self.reconciler.mark_degraded(e)
            raise SubscriptionError(f"Could not load snapshot: {e}") from e

        await self.reconciler.receive(snapshot)
        return self.reconciler.view

    async def _refresh_after_write(self) -> None:
        # The write already happened; a failed refresh leaves the view degraded
        try:
            await self.refresh()
        except SubscriptionError as e:
            logger.error("View not refreshed after write", extra={"error": str(e)})

    async def reconcile(self) -> ReconciledView:
        """Refresh and wait for the resulting write-backs to finish."""
        view = await self.refresh()
        await self.drain()
        return view

    async def drain(self) -> None:
        """Wait for outstanding write-backs, e.g. before the event loop closes."""
        await self.reconciler.drain()

    def subscription(self) -> PollingSubscription:
        """Create a polling subscription feeding this ledger's reconciler."""
        return PollingSubscription(
            self.db,
            self.reconciler.receive,
            poll_interval_seconds=self.config.poll_interval_seconds,
        )

    async def start_subscription(self) -> Optional[PollingSubscription]:
        """Start a subscription, or mark the ledger degraded if that fails.

        Returns:
            The running subscription, or None when degraded
        """
        subscription = self.subscription()
        try:
            await subscription.start()
        except SubscriptionError as e:
            self.reconciler.mark_degraded(e)
            return None
        return subscription

    # Read side
    def load_bookings(self, nodes: Iterable[LedgerNode]) -> dict[str, BookingInfo]:
        """Look up the bookings referenced by ``nodes`` and their children."""
        booking_ids = set()
        for node in nodes:
            for entry in (node.entry, *node.children):
                if entry.booking_id:
                    booking_ids.add(entry.booking_id)
        return self.db.get_bookings(booking_ids)

    def working_view(
        self,
        selector: CategorySelector = CategorySelector.ALL,
        spec: Optional[FilterSpec] = None,
        bookings: Optional[dict[str, BookingInfo]] = None,
    ) -> list[LedgerNode]:
        """Filter and sort the published roots."""
        roots = self.view.roots
        if bookings is None and spec is not None and spec.query:
            bookings = self.load_bookings(roots)
        return apply_filters(roots, selector, spec, bookings)

    def stats(self) -> LedgerStats:
        """Per-category statistics over the full reconciled set."""
        return build_stats(self.view.roots)

    def export_rows(
        self,
        selector: CategorySelector = CategorySelector.ALL,
        spec: Optional[FilterSpec] = None,
    ) -> list[ExportRow]:
        """Rows for the filtered working view, sub-entries included."""
        bookings = self.load_bookings(self.view.roots)
        nodes = self.working_view(selector, spec, bookings)
        return build_export_rows(nodes, bookings)

    def client_paginator(
        self,
        selector: CategorySelector = CategorySelector.ALL,
        spec: Optional[FilterSpec] = None,
    ) -> ClientPaginator[LedgerNode]:
        """Client-mode paginator over the filtered working view."""
        return ClientPaginator(self.config.page_size, self.working_view(selector, spec))

    def server_paginator(
        self,
        selector: CategorySelector = CategorySelector.ALL,
        spec: Optional[FilterSpec] = None,
    ) -> ServerPaginator:
        """Server-mode paginator reading filtered roots straight from the store."""
        return ServerPaginator(StorePageSource(self.db, selector, spec), self.config.page_size)

    # Write side
    async def set_status(self, entry_ids: Iterable[str], status: PaymentStatus) -> BulkResult:
        """Bulk-set payment status, then refresh the view."""
        result = await self.coordinator.set_status(entry_ids, status)
        await self._refresh_after_write()
        return result

    async def delete(self, entry_ids: Iterable[str]) -> BulkResult:
        """Bulk-delete entries, then refresh the view."""
        result = await self.coordinator.delete(entry_ids)
        await self._refresh_after_write()
        return result

    async def toggle_status(self, entry_id: str) -> PaymentStatus:
        """Toggle one entry's payment status, then refresh the view."""
        status = await asyncio.to_thread(self.expenses.toggle_payment_status, entry_id)
        await self._refresh_after_write()
        return status
