"""Backing store for ledger entries and bookings."""

from ledgerkit.database.base import Database
from ledgerkit.database.factories import create_sqlite_database
from ledgerkit.database.sqlalchemy_db import SQLAlchemyDatabase
from ledgerkit.database.subscription import PollingSubscription

__all__ = ["Database", "SQLAlchemyDatabase", "PollingSubscription", "create_sqlite_database"]
