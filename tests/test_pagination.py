"""Tests for client and server pagination."""

from datetime import datetime, timedelta, UTC
from decimal import Decimal

import pytest

from ledgerkit.database.models import Expense
from ledgerkit.domain.entities import ExpenseCategory, LedgerNode, PageCursor
from ledgerkit.domain.errors import ValidationError
from ledgerkit.domain.filtering import CategorySelector, FilterSpec
from ledgerkit.domain.pagination import (
    ClientPaginator,
    ServerPaginator,
    SourcePage,
    StorePageSource,
)


class TestClientPaginator:
    """Tests for client-side pagination."""

    def test_pages_of_five_items(self):
        items = ["i1", "i2", "i3", "i4", "i5"]
        paginator = ClientPaginator(2, items)

        pages = list(paginator.pages())

        assert [len(p.items) for p in pages] == [2, 2, 1]
        assert [item for p in pages for item in p.items] == items
        assert paginator.page_count == 3

    @pytest.mark.parametrize("total,size", [(0, 3), (1, 1), (7, 3), (9, 3), (10, 4)])
    def test_pages_cover_list_exactly_once(self, total, size):
        items = list(range(total))
        paginator = ClientPaginator(size, items)

        collected = []
        for number in range(1, paginator.page_count + 1):
            collected.extend(paginator.page(number).items)

        assert collected == items
        assert paginator.page_count == -(-total // size)

    def test_page_slices_and_flags(self):
        paginator = ClientPaginator(2, "abcde")

        page = paginator.page(2)

        assert page.items == ("c", "d")
        assert page.has_next
        assert page.has_previous
        assert page.total_pages == 3
        assert page.total_items == 5
        assert paginator.current_page == 2
        assert not paginator.page(3).has_next

    def test_set_items_resets_to_first_page(self):
        paginator = ClientPaginator(2, "abcde")
        paginator.page(3)

        paginator.set_items("xyz")

        assert paginator.current_page == 1
        assert paginator.page().items == ("x", "y")

    def test_page_past_end_is_empty(self):
        assert ClientPaginator(2, "abc").page(5).items == ()

    def test_invalid_page(self):
        with pytest.raises(ValidationError):
            ClientPaginator(2, "abc").page(0)

    def test_invalid_page_size(self):
        with pytest.raises(ValidationError):
            ClientPaginator(0)


class FakeSource:
    """Forward-only source over a fixed list of ids."""

    def __init__(self, ids):
        self.ids = list(ids)
        self.calls = []

    def fetch(self, limit, start_after):
        self.calls.append(start_after)
        start = 0 if start_after is None else self.ids.index(start_after.entry_id) + 1
        chunk = self.ids[start : start + limit]
        cursor = PageCursor(created_at=None, entry_id=chunk[-1]) if chunk else start_after
        return SourcePage(nodes=tuple(chunk), cursor=cursor, has_more=start + limit < len(self.ids))


class TestServerPaginator:
    """Tests for cursor-based pagination."""

    def test_forward_paging(self):
        source = FakeSource("abcde")
        paginator = ServerPaginator(source, 2)

        assert paginator.first_page().items == ("a", "b")
        assert paginator.next_page().items == ("c", "d")
        last = paginator.next_page()

        assert last.items == ("e",)
        assert not last.has_next
        assert last.total_pages is None
        with pytest.raises(ValidationError):
            paginator.next_page()

    def test_lower_page_refetches_from_start(self):
        source = FakeSource("abcdef")
        paginator = ServerPaginator(source, 2)
        paginator.go_to(3)

        page = paginator.go_to(2)

        assert page.number == 1
        assert page.items == ("a", "b")
        assert paginator.current_page == 1
        assert source.calls[-1] is None

    def test_go_to_forward_stops_at_last_page(self):
        paginator = ServerPaginator(FakeSource("abc"), 2)

        page = paginator.go_to(5)

        assert page.number == 2
        assert page.items == ("c",)

    def test_go_to_current_page_does_not_fetch(self):
        source = FakeSource("abcd")
        paginator = ServerPaginator(source, 2)
        paginator.go_to(2)
        calls = len(source.calls)

        assert paginator.go_to(2).items == ("c", "d")
        assert len(source.calls) == calls


class TestStorePageSource:
    """Tests for store-backed root pages."""

    def _seed(self, temp_db, count):
        """Create ``count`` roots with distinct, increasing ingestion times."""
        base = datetime(2024, 6, 1, tzinfo=UTC)
        session = temp_db.session_factory()
        ids = []
        for i in range(count):
            expense = Expense(
                type="company",
                amount=Decimal(i + 1),
                timestamp=(base + timedelta(minutes=i)).replace(tzinfo=None),
            )
            session.add(expense)
            session.flush()
            ids.append(expense.id)
        session.commit()
        session.close()
        return ids

    def test_pages_newest_first_with_children(self, temp_db):
        ids = self._seed(temp_db, 5)
        child_id = temp_db.create_entry(type="client", amount=Decimal("3"), parent_id=ids[4])
        paginator = ServerPaginator(StorePageSource(temp_db), 2)

        first = paginator.first_page()
        second = paginator.next_page()
        third = paginator.next_page()

        newest_first = list(reversed(ids))
        assert [n.id for n in first.items] == newest_first[:2]
        assert [n.id for n in second.items] == newest_first[2:4]
        assert [n.id for n in third.items] == newest_first[4:]
        assert not third.has_next

        newest = first.items[0]
        assert isinstance(newest, LedgerNode)
        assert [c.id for c in newest.children] == [child_id]
        # Linked children take their root's category on the page
        assert newest.children[0].category is ExpenseCategory.COMPANY
        assert newest.total_amount == Decimal("8")

    def test_empty_store(self, temp_db):
        page = ServerPaginator(StorePageSource(temp_db), 3).first_page()

        assert page.items == ()
        assert not page.has_next

    def _add(self, temp_db, entry_id, minutes, type="company", parent_id=None, booking_id=None):
        session = temp_db.session_factory()
        session.add(
            Expense(
                id=entry_id,
                type=type,
                amount=Decimal("1"),
                timestamp=datetime(2024, 6, 1) + timedelta(minutes=minutes),
                parent_id=parent_id,
                booking_id=booking_id,
            )
        )
        session.commit()
        session.close()

    def test_orphans_paged_as_roots(self, temp_db):
        self._add(temp_db, "r1", 0)
        self._add(temp_db, "c1", 1, parent_id="r1")
        self._add(temp_db, "gc", 2, parent_id="c1")
        self._add(temp_db, "lost", 3, parent_id="gone")
        paginator = ServerPaginator(StorePageSource(temp_db), 2)

        first = paginator.first_page()
        second = paginator.next_page()

        assert [n.id for n in first.items] == ["lost", "gc"]
        assert all(n.is_orphan for n in first.items)
        assert [n.id for n in second.items] == ["r1"]
        assert [c.id for c in second.items[0].children] == ["c1"]
        assert not second.has_next

    def test_selector_fills_pages_across_batches(self, temp_db):
        for minutes, (entry_id, type) in enumerate(
            [("a", "client"), ("b", "company"), ("c", "client"), ("d", "company"), ("e", "client")]
        ):
            self._add(temp_db, entry_id, minutes, type=type)
        paginator = ServerPaginator(StorePageSource(temp_db, CategorySelector.CLIENT), 2)

        first = paginator.first_page()
        second = paginator.next_page()

        assert [n.id for n in first.items] == ["e", "c"]
        assert first.has_next
        assert [n.id for n in second.items] == ["a"]
        assert not second.has_next

    def test_query_matches_booking_fields(self, temp_db):
        booking_id = temp_db.create_booking(boat_name="Blue Lagoon", client_name="Jane Smith")
        self._add(temp_db, "booked", 0, type="client", booking_id=booking_id)
        self._add(temp_db, "plain", 1)
        source = StorePageSource(temp_db, spec=FilterSpec(query="lagoon"))

        page = ServerPaginator(source, 5).first_page()

        assert [n.id for n in page.items] == ["booked"]
        assert not page.has_next
