"""Pagination of the working view.

Two strategies that are never mixed within one session:

- ``ClientPaginator`` holds the full filtered list and slices it.
- ``ServerPaginator`` holds only the cursor of the last fetched page and
  moves forward with bounded fetches. Asking for an earlier page refetches
  from the start and resets to page 1.
"""

import logging
import math
from dataclasses import dataclass
from typing import Generic, Iterator, Optional, Protocol, Sequence, TypeVar

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import LedgerNode, PageCursor, RawEntry
from ledgerkit.domain.errors import ValidationError
from ledgerkit.domain.filtering import CategorySelector, FilterSpec, node_filter
from ledgerkit.domain.hierarchy import link_entries
from ledgerkit.domain.normalizer import normalize_entry

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results.

    ``total_pages`` and ``total_items`` are only known in client mode.
    """

    number: int
    items: tuple[T, ...]
    has_next: bool
    total_pages: Optional[int] = None
    total_items: Optional[int] = None

    @property
    def has_previous(self) -> bool:
        return self.number > 1


def _validate_page_size(page_size: int) -> int:
    if page_size < 1:
        raise ValidationError(f"Page size must be at least 1 (got {page_size})")
    return page_size


class ClientPaginator(Generic[T]):
    """Slices a fully loaded list into fixed-size pages."""

    def __init__(self, page_size: int, items: Sequence[T] = ()):
        self.page_size = _validate_page_size(page_size)
        self._items: tuple[T, ...] = tuple(items)
        self.current_page = 1

    def set_items(self, items: Sequence[T]) -> None:
        """Replace the filtered list and reset to page 1."""
        self._items = tuple(items)
        self.current_page = 1

    @property
    def total_items(self) -> int:
        return len(self._items)

    @property
    def page_count(self) -> int:
        return math.ceil(len(self._items) / self.page_size)

    def page(self, number: Optional[int] = None) -> Page[T]:
        """Return page ``number`` (1-based), or the current page.

        Pages past the end are empty.
        """
        if number is None:
            number = self.current_page
        if number < 1:
            raise ValidationError(f"Page number must be at least 1 (got {number})")

        self.current_page = number
        start = (number - 1) * self.page_size
        end = number * self.page_size
        return Page(
            number=number,
            items=self._items[start:end],
            has_next=end < len(self._items),
            total_pages=self.page_count,
            total_items=len(self._items),
        )

    def pages(self) -> Iterator[Page[T]]:
        """Iterate over every page in order without moving ``current_page``."""
        for number in range(1, self.page_count + 1):
            start = (number - 1) * self.page_size
            yield Page(
                number=number,
                items=self._items[start : number * self.page_size],
                has_next=number < self.page_count,
                total_pages=self.page_count,
                total_items=len(self._items),
            )


@dataclass(frozen=True)
class SourcePage:
    """A bounded fetch from a forward-only source."""

    nodes: tuple[LedgerNode, ...]
    cursor: Optional[PageCursor]
    has_more: bool


class PageSource(Protocol):
    def fetch(self, limit: int, start_after: Optional[PageCursor]) -> SourcePage:
        ...


class StorePageSource:
    """Fetches root pages from the store and links them with their children.

    Orphaned sub-entries come back from the store as roots and are linked
    alone. When a selector or filter settings are given, roots are fetched
    in batches until a page of matches is filled or the store runs out;
    sorting stays in ingestion order.

    Category repairs are applied to the returned nodes but not written
    back; the reconciler owns write-backs.
    """

    def __init__(
        self,
        db: Database,
        selector: CategorySelector = CategorySelector.ALL,
        spec: Optional[FilterSpec] = None,
    ):
        self.db = db
        self.selector = selector
        self.spec = spec or FilterSpec()

    def _link(self, raw_roots: Sequence[RawEntry]) -> list[LedgerNode]:
        roots = [normalize_entry(raw).entry for raw in raw_roots]
        parent_ids = [entry.id for entry in roots if entry.parent_id is None]
        children = [normalize_entry(raw).entry for raw in self.db.list_children(parent_ids)]
        by_id = {node.id: node for node in link_entries([*roots, *children]).roots}
        return [by_id[entry.id] for entry in roots]

    def _matches(self, nodes: Sequence[LedgerNode]) -> list[bool]:
        bookings = {}
        if self.spec.query:
            booking_ids = [node.entry.booking_id for node in nodes if node.entry.booking_id]
            bookings = self.db.get_bookings(booking_ids)
        predicate = node_filter(self.selector, self.spec, bookings)
        return [predicate(node) for node in nodes]

    def fetch(self, limit: int, start_after: Optional[PageCursor]) -> SourcePage:
        # Collect one extra match to tell whether another page exists
        matched: list[tuple[LedgerNode, PageCursor]] = []
        cursor = start_after
        while len(matched) <= limit:
            raw_roots = self.db.list_root_entries_page(limit + 1, cursor)
            if not raw_roots:
                break
            nodes = self._link(raw_roots)
            for raw, node, keep in zip(raw_roots, nodes, self._matches(nodes)):
                cursor = PageCursor(created_at=raw.created_at, entry_id=raw.id)
                if keep:
                    matched.append((node, cursor))
            if len(raw_roots) <= limit:
                break

        has_more = len(matched) > limit
        matched = matched[:limit]
        if not matched:
            return SourcePage(nodes=(), cursor=start_after, has_more=False)

        return SourcePage(
            nodes=tuple(node for node, _ in matched),
            cursor=matched[-1][1],
            has_more=has_more,
        )


class ServerPaginator:
    """Forward-only cursor pagination over a page source."""

    def __init__(self, source: PageSource, page_size: int):
        self.source = source
        self.page_size = _validate_page_size(page_size)
        self.current_page = 0
        self._cursor: Optional[PageCursor] = None
        self._last: Optional[Page[LedgerNode]] = None

    def _fetch(self, number: int) -> Page[LedgerNode]:
        result = self.source.fetch(self.page_size, self._cursor)
        self._cursor = result.cursor
        self.current_page = number
        self._last = Page(number=number, items=result.nodes, has_next=result.has_more)
        logger.debug(
            "Fetched server page",
            extra={"page": number, "items": len(result.nodes), "has_next": result.has_more},
        )
        return self._last

    def first_page(self) -> Page[LedgerNode]:
        """Fetch page 1 from the start, discarding the cursor."""
        self._cursor = None
        return self._fetch(1)

    def reset(self) -> Page[LedgerNode]:
        """Restart from page 1, e.g. after the filter changed."""
        return self.first_page()

    def next_page(self) -> Page[LedgerNode]:
        """Fetch the page after the current one.

        Raises:
            ValidationError: If the current page is the last one
        """
        if self._last is None:
            return self.first_page()
        if not self._last.has_next:
            raise ValidationError(f"Page {self.current_page} is the last page")
        return self._fetch(self.current_page + 1)

    def go_to(self, number: int) -> Page[LedgerNode]:
        """Move to page ``number``.

        A page lower than the current one refetches from the start and
        returns page 1. A higher page is reached by fetching forward; if
        the data ends first, the last page reached is returned.
        """
        if number < 1:
            raise ValidationError(f"Page number must be at least 1 (got {number})")
        if self._last is not None and number < self.current_page:
            return self.first_page()

        page = self._last if self._last is not None else self.first_page()
        while page.number < number and page.has_next:
            page = self._fetch(page.number + 1)
        return page
