"""Snapshot reconciliation.

Each full-state push from the backing store is normalized, linked into
roots, and published as an immutable ``ReconciledView``. Category corrections
are persisted upstream as fire-and-forget write-backs that never delay
publication.

State machine:
    IDLE --receive()--> RECONCILING --(all passes finished)--> IDLE

Only the most recently received snapshot is ever published. A pass that
finishes after a newer snapshot arrived still issues its write-backs but does
not publish.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import (
    CategoryCorrection,
    CorrectionReason,
    Entry,
    ExpenseCategory,
    LedgerNode,
    RawEntry,
    ReconciledView,
)
from ledgerkit.domain.errors import NotFoundError, StoreError
from ledgerkit.domain.hierarchy import duplicate_rank, link_entries
from ledgerkit.domain.normalizer import NormalizedRecord, normalize_entry

logger = logging.getLogger(__name__)

Subscriber = Callable[[ReconciledView], None]


class ReconcilerState(str, Enum):
    """Reconciler lifecycle state."""

    IDLE = "idle"
    RECONCILING = "reconciling"


@dataclass(frozen=True)
class ReconciliationResult:
    """Output of the pure reconciliation pipeline for one snapshot."""

    roots: tuple[LedgerNode, ...]
    entries: tuple[Entry, ...]
    corrections: tuple[CategoryCorrection, ...]


def reconcile_snapshot(snapshot: Iterable[RawEntry]) -> ReconciliationResult:
    """Normalize and link a full snapshot.

    Returns one correction per entry whose final category differs from the
    stored value, carrying the last rule that changed it.
    Copies sharing an id collapse to the newest one, whatever their order.
    """
    raws: dict[str, RawEntry] = {}
    records: dict[str, NormalizedRecord] = {}
    for raw in snapshot:
        record = normalize_entry(raw)
        kept = raws.get(raw.id)
        if kept is not None:
            logger.warning("Duplicate entry id in snapshot", extra={"entry_id": raw.id})
            if duplicate_rank(kept, records[raw.id].entry.created_at) >= duplicate_rank(
                raw, record.entry.created_at
            ):
                continue
        raws[raw.id] = raw
        records[raw.id] = record

    reasons: dict[str, CorrectionReason] = {}
    normalized = []
    for entry_id, record in records.items():
        if record.correction is not None:
            reasons[entry_id] = record.correction.reason
        normalized.append(record.entry)

    linked = link_entries(normalized)
    for correction in linked.corrections:
        reasons[correction.entry_id] = correction.reason

    entries = linked.entries()
    corrections = []
    for entry in sorted(entries, key=lambda e: e.id):
        stored = raws[entry.id].type
        if stored != entry.category.value:
            corrections.append(
                CategoryCorrection(
                    entry_id=entry.id,
                    previous=stored,
                    category=entry.category,
                    reason=reasons.get(entry.id, CorrectionReason.INVALID_CATEGORY),
                )
            )

    return ReconciliationResult(
        roots=linked.roots, entries=entries, corrections=tuple(corrections)
    )


class SnapshotReconciler:
    """Single writer of the reconciled ledger state.

    Args:
        db: Backing store used for write-backs
        write_back_concurrency: Maximum number of write-backs in flight
    """

    def __init__(self, db: Database, write_back_concurrency: int = 4):
        self.db = db
        self.write_back_concurrency = write_back_concurrency
        self._write_back_limit = asyncio.Semaphore(write_back_concurrency)

        self._view = ReconciledView(generation=0)
        self._received_generation = 0
        self._active_passes = 0
        self._subscribers: list[Subscriber] = []

        self._write_back_tasks: set[asyncio.Task] = set()
        self._in_flight: dict[str, ExpenseCategory] = {}
        self._failed: dict[str, CategoryCorrection] = {}

        self._degraded_error: Optional[BaseException] = None

        self._write_back_count = 0
        self._superseded_count = 0

    @property
    def state(self) -> ReconcilerState:
        """Current state of the reconciler."""
        if self._active_passes > 0:
            return ReconcilerState.RECONCILING
        return ReconcilerState.IDLE

    @property
    def view(self) -> ReconciledView:
        """The most recently published view."""
        return self._view

    @property
    def received_generation(self) -> int:
        return self._received_generation

    @property
    def failed_write_backs(self) -> dict[str, CategoryCorrection]:
        """Write-backs that failed and will be retried on the next pass."""
        return dict(self._failed)

    @property
    def pending_write_backs(self) -> int:
        return len(self._write_back_tasks)

    @property
    def degraded(self) -> bool:
        """True when the store subscription could not be established."""
        return self._degraded_error is not None

    def mark_degraded(self, error: BaseException) -> None:
        """Record that data availability is degraded."""
        self._degraded_error = error
        logger.error("Ledger data availability degraded", extra={"error": str(error)})

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback invoked with every published view.

        Returns:
            Function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def receive(self, snapshot: Iterable[RawEntry]) -> bool:
        """Reconcile a full snapshot from the backing store.

        Args:
            snapshot: Every entry currently in the store

        Returns:
            True if the resulting view was published, False if a newer
            snapshot arrived while this one was being reconciled
        """
        self._received_generation += 1
        generation = self._received_generation
        self._active_passes += 1
        raws = tuple(snapshot)

        try:
            logger.debug(
                "Reconciling snapshot",
                extra={"generation": generation, "entries": len(raws)},
            )
            result = await asyncio.to_thread(reconcile_snapshot, raws)

            self._schedule_write_backs(result.corrections)

            if generation != self._received_generation:
                self._superseded_count += 1
                logger.info(
                    "Snapshot superseded before publication",
                    extra={"generation": generation, "latest": self._received_generation},
                )
                return False

            self._publish(
                ReconciledView(
                    generation=generation,
                    roots=result.roots,
                    entries=result.entries,
                    corrections=result.corrections,
                    published_at=datetime.now(UTC),
                )
            )
            return True
        finally:
            self._active_passes -= 1

    async def drain(self) -> None:
        """Wait until every scheduled write-back has finished."""
        while self._write_back_tasks:
            await asyncio.gather(*list(self._write_back_tasks), return_exceptions=True)

    def get_stats(self) -> dict[str, Any]:
        """Return reconciler counters."""
        return {
            "state": self.state.value,
            "received_generation": self._received_generation,
            "published_generation": self._view.generation,
            "superseded": self._superseded_count,
            "write_backs": self._write_back_count,
            "pending_write_backs": self.pending_write_backs,
            "failed_write_backs": len(self._failed),
            "degraded": self.degraded,
        }

    def _publish(self, view: ReconciledView) -> None:
        self._view = view
        self._degraded_error = None
        logger.info(
            "Published reconciled view",
            extra={
                "generation": view.generation,
                "roots": len(view.roots),
                "corrections": len(view.corrections),
            },
        )
        for callback in list(self._subscribers):
            try:
                callback(view)
            except Exception:
                # One failing subscriber must not starve the others
                logger.exception("Subscriber failed", extra={"generation": view.generation})

    def _schedule_write_backs(self, corrections: Iterable[CategoryCorrection]) -> None:
        corrections = tuple(corrections)
        current_ids = {c.entry_id for c in corrections}

        # Failures no longer reported by the store are resolved or deleted
        for entry_id in list(self._failed):
            if entry_id not in current_ids:
                del self._failed[entry_id]

        retries = sum(1 for c in corrections if c.entry_id in self._failed)
        if retries:
            logger.info("Retrying failed write-backs", extra={"count": retries})

        for correction in corrections:
            if self._in_flight.get(correction.entry_id) is correction.category:
                continue
            self._in_flight[correction.entry_id] = correction.category
            task = asyncio.create_task(self._write_back(correction))
            self._write_back_tasks.add(task)
            task.add_done_callback(self._write_back_tasks.discard)

    async def _write_back(self, correction: CategoryCorrection) -> None:
        async with self._write_back_limit:
            try:
                await asyncio.to_thread(
                    self.db.update_entry_category, correction.entry_id, correction.category
                )
            except NotFoundError:
                logger.info(
                    "Write-back skipped for deleted entry",
                    extra={"entry_id": correction.entry_id},
                )
                self._failed.pop(correction.entry_id, None)
            except StoreError as e:
                logger.error(
                    "Write-back failed, will retry on next reconciliation",
                    extra={"entry_id": correction.entry_id, "error": str(e)},
                )
                self._failed[correction.entry_id] = correction
            else:
                self._write_back_count += 1
                self._failed.pop(correction.entry_id, None)
            finally:
                if self._in_flight.get(correction.entry_id) is correction.category:
                    del self._in_flight[correction.entry_id]
