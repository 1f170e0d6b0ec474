"""Full-state subscription to the backing store.

SQLite has no change feed, so pushes are emulated by polling
``list_entries()`` and pushing the whole snapshot whenever it differs from
the previous one.
"""

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any, Awaitable, Callable, Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import RawEntry
from ledgerkit.domain.errors import StoreError, SubscriptionError

logger = logging.getLogger(__name__)

SnapshotHandler = Callable[[tuple[RawEntry, ...]], Awaitable[Any]]


class PollingSubscription:
    """Pushes full snapshots to a handler at a fixed interval.

    Args:
        db: Backing store
        handler: Coroutine function receiving every changed snapshot
        poll_interval_seconds: Delay between polls
    """

    def __init__(
        self,
        db: Database,
        handler: SnapshotHandler,
        poll_interval_seconds: float = 5.0,
    ):
        self.db = db
        self.handler = handler
        self.poll_interval_seconds = poll_interval_seconds

        self._last_snapshot: Optional[tuple[RawEntry, ...]] = None
        self._last_push_time: Optional[datetime] = None
        self._task: Optional[asyncio.Task] = None
        self._push_count = 0
        self._failure_count = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _load(self) -> tuple[RawEntry, ...]:
        return tuple(await asyncio.to_thread(self.db.list_entries))

    async def start(self) -> None:
        """Load and push the first snapshot, then keep polling in the background.

        Raises:
            SubscriptionError: If the first snapshot cannot be loaded
        """
        try:
            snapshot = await self._load()
        except StoreError as e:
            logger.error("Could not establish store subscription", extra={"error": str(e)})
            raise SubscriptionError(f"Could not load initial snapshot: {e}") from e

        logger.info("Store subscription established", extra={"entries": len(snapshot)})
        await self._push(snapshot)
        self._task = asyncio.create_task(self._run())

    async def poll(self) -> bool:
        """Poll once.

        Returns:
            True if a changed snapshot was pushed
        """
        try:
            snapshot = await self._load()
        except StoreError as e:
            self._failure_count += 1
            logger.error(
                "Snapshot poll failed, retrying next interval",
                extra={"error": str(e), "failures": self._failure_count},
            )
            return False

        if snapshot == self._last_snapshot:
            logger.debug("Snapshot unchanged")
            return False

        await self._push(snapshot)
        return True

    async def _push(self, snapshot: tuple[RawEntry, ...]) -> None:
        self._last_snapshot = snapshot
        self._last_push_time = datetime.now(UTC)
        self._push_count += 1
        try:
            await self.handler(snapshot)
        except Exception:
            # Push the same snapshot again next interval
            self._last_snapshot = None
            raise

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval_seconds)
            try:
                await self.poll()
            except Exception as e:
                self._failure_count += 1
                logger.error(
                    "Snapshot push failed, retrying next interval",
                    extra={"error": str(e), "failures": self._failure_count},
                    exc_info=True,
                )

    async def stop(self) -> None:
        """Stop background polling."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Store subscription stopped", extra={"pushes": self._push_count})

    def get_stats(self) -> dict[str, Any]:
        """Return subscription counters."""
        return {
            "running": self.is_running,
            "pushes": self._push_count,
            "failures": self._failure_count,
            "last_push_time": self._last_push_time,
        }
