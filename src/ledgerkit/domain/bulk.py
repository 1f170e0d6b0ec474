"""Bulk status changes and deletions with per-id outcomes."""

import asyncio
import logging
from typing import Any, Callable, Iterable

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import BulkResult, PaymentStatus
from ledgerkit.domain.errors import DomainError, StoreError

logger = logging.getLogger(__name__)

_SUCCEEDED = "succeeded"
_FAILED = "failed"
_SKIPPED = "skipped"


class BulkMutationCoordinator:
    """Applies one operation to many entries, best effort.

    Each id is written independently and concurrently, bounded by
    ``max_concurrency``. A failing id never aborts its siblings. The
    coordinator only writes to the store; the reconciled view picks the
    changes up on the next reconciliation pass.

    Args:
        db: Backing store
        max_concurrency: Maximum number of writes in flight
    """

    def __init__(self, db: Database, max_concurrency: int = 8):
        self.db = db
        self.max_concurrency = max_concurrency
        self._cancelled = False
        self._batches = 0
        self._succeeded_count = 0
        self._failed_count = 0
        self._skipped_count = 0

    def cancel(self) -> None:
        """Stop starting further ids of the running batch.

        Writes already in flight run to completion.
        """
        self._cancelled = True
        logger.info("Bulk operation cancellation requested")

    async def set_status(self, entry_ids: Iterable[str], status: PaymentStatus) -> BulkResult:
        """Set the payment status of each entry.

        Sub-entries are not updated with their root.
        """
        return await self._run(
            entry_ids,
            lambda entry_id: self.db.update_payment_status(entry_id, status),
            operation=f"set_status:{status.value}",
        )

    async def delete(self, entry_ids: Iterable[str]) -> BulkResult:
        """Delete each entry, then detach its remaining sub-entries."""
        return await self._run(entry_ids, self._delete_one, operation="delete")

    def _delete_one(self, entry_id: str) -> None:
        self.db.delete_entry(entry_id)
        try:
            detached = self.db.detach_children(entry_id)
        except StoreError as e:
            # Undetached children are promoted to roots when linked
            logger.warning(
                "Deleted entry but could not detach its sub-entries",
                extra={"entry_id": entry_id, "error": str(e)},
            )
            return
        if detached:
            logger.info(
                "Detached sub-entries of deleted entry",
                extra={"entry_id": entry_id, "count": detached},
            )

    async def _run(
        self, entry_ids: Iterable[str], apply: Callable[[str], None], operation: str
    ) -> BulkResult:
        ids = list(dict.fromkeys(entry_ids))
        self._cancelled = False
        self._batches += 1
        limit = asyncio.Semaphore(self.max_concurrency)

        async def run_one(entry_id: str) -> tuple[str, str, str]:
            async with limit:
                if self._cancelled:
                    return entry_id, _SKIPPED, ""
                try:
                    await asyncio.to_thread(apply, entry_id)
                except (DomainError, StoreError) as e:
                    logger.error(
                        "Bulk operation failed for entry",
                        extra={"entry_id": entry_id, "operation": operation, "error": str(e)},
                    )
                    return entry_id, _FAILED, str(e)
                return entry_id, _SUCCEEDED, ""

        outcomes = await asyncio.gather(*(run_one(entry_id) for entry_id in ids))

        succeeded = tuple(entry_id for entry_id, outcome, _ in outcomes if outcome == _SUCCEEDED)
        failed = {entry_id: message for entry_id, outcome, message in outcomes if outcome == _FAILED}
        skipped = tuple(entry_id for entry_id, outcome, _ in outcomes if outcome == _SKIPPED)

        self._succeeded_count += len(succeeded)
        self._failed_count += len(failed)
        self._skipped_count += len(skipped)
        logger.info(
            "Bulk operation finished",
            extra={
                "operation": operation,
                "succeeded": len(succeeded),
                "failed": len(failed),
                "skipped": len(skipped),
            },
        )
        return BulkResult(succeeded=succeeded, failed=failed, skipped=skipped)

    def get_stats(self) -> dict[str, Any]:
        """Return coordinator counters."""
        return {
            "batches": self._batches,
            "succeeded": self._succeeded_count,
            "failed": self._failed_count,
            "skipped": self._skipped_count,
        }
