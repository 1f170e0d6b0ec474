"""Shared pytest fixtures for ledgerkit tests."""

import tempfile
import os
from datetime import datetime, timedelta, UTC
from decimal import Decimal

import pytest

from ledgerkit.config import LedgerConfig
from ledgerkit.database.factories import create_sqlite_database
from ledgerkit.domain.entities import RawEntry
from ledgerkit.domain.errors import StoreError
from ledgerkit.domain.expense import ExpenseService
from ledgerkit.domain.ledger import LedgerService

BASE_TIME = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def expense_service(temp_db):
    """Create an ExpenseService with a temporary database."""
    return ExpenseService(temp_db)


@pytest.fixture
def ledger(temp_db):
    """Create a LedgerService with a small page size."""
    return LedgerService(temp_db, LedgerConfig(page_size=2, bulk_concurrency=4))


@pytest.fixture
def make_raw():
    """Factory for raw store entries; ``minutes`` offsets the ingestion time."""

    def _make(entry_id, type="company", amount="10", minutes=0, **fields):
        fields.setdefault("created_at", BASE_TIME + timedelta(minutes=minutes))
        fields.setdefault("date", "2024-06-01")
        return RawEntry(id=entry_id, type=type, amount=amount, **fields)

    return _make


class FlakyDatabase:
    """Wraps a database and fails writes for selected entry ids."""

    def __init__(self, db, fail_ids=(), category_failures=0, fail_reads=False):
        self.db = db
        self.fail_ids = set(fail_ids)
        self.category_failures = category_failures
        self.fail_reads = fail_reads
        self.category_writes = []

    def __getattr__(self, name):
        return getattr(self.db, name)

    def _check(self, entry_id):
        if entry_id in self.fail_ids:
            raise StoreError(f"write rejected for {entry_id}")

    def list_entries(self):
        if self.fail_reads:
            raise StoreError("store unavailable")
        return self.db.list_entries()

    def update_entry_category(self, entry_id, category):
        self.category_writes.append((entry_id, category))
        if self.category_failures > 0:
            self.category_failures -= 1
            raise StoreError(f"write rejected for {entry_id}")
        self._check(entry_id)
        return self.db.update_entry_category(entry_id, category)

    def update_payment_status(self, entry_id, status):
        self._check(entry_id)
        return self.db.update_payment_status(entry_id, status)

    def delete_entry(self, entry_id):
        self._check(entry_id)
        return self.db.delete_entry(entry_id)


@pytest.fixture
def flaky_db(temp_db):
    """Create a FlakyDatabase around the temporary database."""
    return FlakyDatabase(temp_db)


@pytest.fixture
def sample_ledger(expense_service):
    """Create a small ledger: a company root with one sub-entry, a client and an invoice."""
    from datetime import date

    ids = {}
    ids["fuel"] = expense_service.create_expense(
        category="company",
        amount=Decimal("100.00"),
        date=date(2024, 6, 10),
        description="Fuel for tender",
        category_label="Fuel",
    )
    ids["fuel_extra"] = expense_service.create_expense(
        category="company",
        amount=Decimal("20.00"),
        date=date(2024, 6, 11),
        description="Fuel top-up",
        category_label="Fuel",
        parent_id=ids["fuel"],
    )
    ids["catering"] = expense_service.create_expense(
        category="client",
        amount=Decimal("80.00"),
        date=date(2024, 6, 12),
        description="Catering",
        category_label="Food",
    )
    ids["invoice"] = expense_service.create_expense(
        category="invoice",
        amount=Decimal("40.00"),
        date=date(2024, 6, 13),
        description="Skipper invoice",
        category_label="Crew",
        payment_status="paid",
    )
    return ids


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
