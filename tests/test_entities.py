"""Tests for domain entities."""

import dataclasses
from decimal import Decimal

import pytest

from ledgerkit.domain.entities import (
    BulkResult,
    CategoryStats,
    Entry,
    ExpenseCategory,
    LedgerNode,
    LedgerStats,
    PaymentStatus,
)


class TestPaymentStatus:
    """Tests for PaymentStatus."""

    def test_toggled(self):
        """Test toggling between paid and pending."""
        assert PaymentStatus.PENDING.toggled() is PaymentStatus.PAID
        assert PaymentStatus.PAID.toggled() is PaymentStatus.PENDING

    def test_string_values(self):
        """Test enum members compare equal to their stored strings."""
        assert PaymentStatus("paid") is PaymentStatus.PAID
        assert ExpenseCategory.INVOICE == "invoice"


class TestEntry:
    """Tests for Entry entity."""

    def _entry(self, **fields):
        fields.setdefault("id", "e1")
        fields.setdefault("category", ExpenseCategory.COMPANY)
        fields.setdefault("amount", Decimal("10"))
        fields.setdefault("date", None)
        fields.setdefault("created_at", None)
        return Entry(**fields)

    def test_is_root(self):
        """Test root detection from parent_id."""
        assert self._entry().is_root
        assert not self._entry(parent_id="p1").is_root

    def test_entry_immutability(self):
        """Test that Entry entities are immutable."""
        entry = self._entry()
        with pytest.raises(dataclasses.FrozenInstanceError):
            entry.amount = Decimal("1")

    def test_node_delegates_to_root_entry(self):
        """Test LedgerNode exposes the root's id and category."""
        node = LedgerNode(entry=self._entry(category=ExpenseCategory.CLIENT))

        assert node.id == "e1"
        assert node.category is ExpenseCategory.CLIENT
        assert node.children == ()
        assert not node.is_orphan


class TestLedgerStats:
    """Tests for LedgerStats."""

    def test_defaults_are_zero(self):
        """Test every bucket starts empty."""
        stats = LedgerStats()

        assert set(stats.as_dict()) == {"total", "company", "client", "invoice"}
        assert all(bucket == CategoryStats() for bucket in stats.as_dict().values())

    def test_for_category(self):
        """Test looking up a bucket by category."""
        client = CategoryStats(count=2, amount=Decimal("15"))
        stats = LedgerStats(client=client)

        assert stats.for_category(ExpenseCategory.CLIENT) is client


class TestBulkResult:
    """Tests for BulkResult."""

    def test_failed_ids_keep_insertion_order(self):
        """Test failed_ids follows the order failures were recorded."""
        result = BulkResult(succeeded=("a",), failed={"c": "boom", "b": "gone"})

        assert result.failed_ids == ("c", "b")
        assert result.skipped == ()
