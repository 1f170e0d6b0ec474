"""Tests for the filter and sort engine."""

import random
from datetime import date
from decimal import Decimal

import pytest

from ledgerkit.domain.entities import BookingInfo, PaymentStatus
from ledgerkit.domain.filtering import (
    CategorySelector,
    FilterSpec,
    SortDirection,
    SortKey,
    apply_filters,
    node_filter,
    sort_nodes,
)
from ledgerkit.domain.hierarchy import link_entries
from ledgerkit.domain.normalizer import normalize_entry, raw_entry_from_document
from ledgerkit.domain.reconciler import reconcile_snapshot


def _roots(raws):
    return link_entries([normalize_entry(raw).entry for raw in raws]).roots


@pytest.fixture
def roots(make_raw):
    return _roots(
        [
            make_raw("a", type="client", amount=40, date="2024-06-01", category_label="Fuel",
                     description="Diesel refill", booking_id="bk_1", minutes=1),
            make_raw("b", type="client", amount=80, date="2024-06-05", category_label="Food",
                     description="Catering", document_ref="receipts/b.jpg",
                     payment_status="paid", minutes=2),
            make_raw("c", type="company", amount=90, date="2024-06-10", category_label="Fuel",
                     description="Marina fuel", minutes=3),
            make_raw("d", type="invoice", amount=15, date=None, category_label=None,
                     description="Skipper", minutes=4),
            make_raw("c_child", type="company", amount=500, parent_id="c",
                     description="Catering extras", minutes=5),
        ]
    )


@pytest.fixture
def bookings():
    return {
        "bk_1": BookingInfo(
            id="bk_1",
            boat_name="Blue Lagoon",
            client_name="Jane Smith",
            booking_date=date(2024, 6, 14),
            boat_company="Sea Charters",
        )
    }


def _ids(nodes):
    return [node.id for node in nodes]


def test_category_and_min_amount(make_raw):
    """Only client roots of at least 50 remain."""
    nodes = _roots(
        [
            make_raw("x", type="client", amount=40),
            make_raw("y", type="client", amount=80, minutes=1),
            make_raw("z", type="company", amount=90, minutes=2),
        ]
    )

    result = apply_filters(nodes, CategorySelector.CLIENT, FilterSpec(min_amount=Decimal("50")))

    assert _ids(result) == ["y"]


def test_all_selector_keeps_everything(roots):
    assert sorted(_ids(apply_filters(roots))) == ["a", "b", "c", "d"]


def test_query_matches_label_and_description(roots):
    assert sorted(_ids(apply_filters(roots, spec=FilterSpec(query="FUEL")))) == ["a", "c"]
    assert _ids(apply_filters(roots, spec=FilterSpec(query="skip"))) == ["d"]


def test_query_does_not_match_children(roots):
    # "extras" only appears on a sub-entry
    assert apply_filters(roots, spec=FilterSpec(query="extras")) == []


@pytest.mark.parametrize("query", ["lagoon", "jane", "sea charters", "14/06/2024", "2024-06-14"])
def test_query_matches_booking_fields(roots, bookings, query):
    result = apply_filters(roots, spec=FilterSpec(query=query), bookings=bookings)
    assert _ids(result) == ["a"]


def test_blank_query_is_noop(roots):
    assert len(apply_filters(roots, spec=FilterSpec(query="   "))) == 4


def test_date_range_inclusive(roots):
    spec = FilterSpec(date_from=date(2024, 6, 1), date_to=date(2024, 6, 5))
    assert sorted(_ids(apply_filters(roots, spec=spec))) == ["a", "b"]


def test_open_date_bound_excludes_undated(roots):
    spec = FilterSpec(date_from=date(2024, 6, 2))
    assert sorted(_ids(apply_filters(roots, spec=spec))) == ["b", "c"]


def test_amount_range_uses_own_amount(roots):
    # c totals 590 with its child but its own amount is 90
    spec = FilterSpec(min_amount=Decimal("50"), max_amount=Decimal("100"))
    assert sorted(_ids(apply_filters(roots, spec=spec))) == ["b", "c"]


def test_payment_status(roots):
    spec = FilterSpec(payment_status=PaymentStatus.PAID)
    assert _ids(apply_filters(roots, spec=spec)) == ["b"]


def test_category_labels(roots):
    spec = FilterSpec(category_labels=frozenset({"Food", "Crew"}))
    assert _ids(apply_filters(roots, spec=spec)) == ["b"]


def test_document_presence(roots):
    assert _ids(apply_filters(roots, spec=FilterSpec(has_document=True))) == ["b"]
    assert sorted(_ids(apply_filters(roots, spec=FilterSpec(has_document=False)))) == ["a", "c", "d"]


def test_booking_presence(roots):
    assert _ids(apply_filters(roots, spec=FilterSpec(has_booking=True))) == ["a"]
    assert sorted(_ids(apply_filters(roots, spec=FilterSpec(has_booking=False)))) == ["b", "c", "d"]


def test_stages_combine(roots, bookings):
    spec = FilterSpec(query="fuel", min_amount=Decimal("50"))
    assert _ids(apply_filters(roots, CategorySelector.COMPANY, spec, bookings)) == ["c"]


def test_sort_by_date_desc_puts_undated_last(roots):
    assert _ids(apply_filters(roots)) == ["c", "b", "a", "d"]


def test_sort_by_amount_asc(roots):
    spec = FilterSpec(sort_key=SortKey.AMOUNT, sort_direction=SortDirection.ASC)
    assert _ids(apply_filters(roots, spec=spec)) == ["d", "a", "b", "c"]


def test_sort_by_label_ties_broken_by_id(roots):
    spec = FilterSpec(sort_key=SortKey.LABEL, sort_direction=SortDirection.ASC)
    assert _ids(apply_filters(roots, spec=spec)) == ["b", "a", "c", "d"]

    spec = FilterSpec(sort_key=SortKey.LABEL, sort_direction=SortDirection.DESC)
    assert _ids(apply_filters(roots, spec=spec)) == ["a", "c", "b", "d"]


def test_sort_ties_are_deterministic(make_raw):
    nodes = _roots([make_raw(entry_id, amount=5, minutes=i) for i, entry_id in enumerate("qwerty")])

    result = sort_nodes(nodes, SortKey.AMOUNT, SortDirection.DESC)

    assert _ids(result) == sorted("qwerty")


def test_output_independent_of_input_order(roots, bookings):
    spec = FilterSpec(query="u", sort_key=SortKey.AMOUNT)
    expected = apply_filters(roots, spec=spec, bookings=bookings)

    rng = random.Random(7)
    for _ in range(10):
        shuffled = list(roots)
        rng.shuffle(shuffled)
        assert apply_filters(shuffled, spec=spec, bookings=bookings) == expected


def test_numeric_text_fields_are_searchable_and_sortable():
    snapshot = [
        raw_entry_from_document(
            {"id": "x", "type": "company", "amount": 5, "description": 1234, "categoryLabel": 99}
        ),
        raw_entry_from_document({"id": "y", "type": "company", "amount": 7, "categoryLabel": "Fuel"}),
    ]
    roots = reconcile_snapshot(snapshot).roots

    found = apply_filters(roots, spec=FilterSpec(query="12"))
    by_label = apply_filters(
        roots, spec=FilterSpec(sort_key=SortKey.LABEL, sort_direction=SortDirection.ASC)
    )

    assert _ids(found) == ["x"]
    assert _ids(by_label) == ["x", "y"]


def test_node_filter_matches_apply_filters(roots, bookings):
    spec = FilterSpec(query="fuel", min_amount=Decimal("50"))

    predicate = node_filter(CategorySelector.ALL, spec, bookings)

    assert sorted(_ids(n for n in roots if predicate(n))) == sorted(
        _ids(apply_filters(roots, spec=spec, bookings=bookings))
    )
