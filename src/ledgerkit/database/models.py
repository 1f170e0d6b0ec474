"""SQLAlchemy models for the ledgerkit backing store."""

import uuid
from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Index,
    Numeric,
    String,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session

Base = declarative_base()


def new_id() -> str:
    """Generate an opaque store identifier."""
    return uuid.uuid4().hex


class Expense(Base):
    """Expense document.

    ``type`` holds the raw, unvalidated category. ``parent_id`` is a plain
    column without a foreign key: the store does not enforce hierarchy rules.
    """

    __tablename__ = "expenses"

    id = Column(String(32), primary_key=True, default=new_id)
    type = Column(String, nullable=True)
    amount = Column(Numeric(12, 2), nullable=True)
    date = Column(String(10), nullable=True)
    timestamp = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    payment_status = Column(String, default="pending", nullable=True)
    parent_id = Column(String(32), nullable=True)
    booking_id = Column(String, nullable=True)
    document_ref = Column(String, nullable=True)
    description = Column(String, nullable=True)
    category_label = Column(String, nullable=True)
    payment_method = Column(String, nullable=True)
    invoice_number = Column(String, nullable=True)
    due_date = Column(String(10), nullable=True)
    added_by = Column(String, nullable=True)

    __table_args__ = (
        Index("ix_expenses_timestamp", "timestamp"),
        Index("ix_expenses_parent_id", "parent_id"),
    )


class Booking(Base):
    """Booking record owned by the booking workflow; read for display only."""

    __tablename__ = "bookings"

    id = Column(String(32), primary_key=True, default=new_id)
    boat_name = Column(String, nullable=True)
    client_name = Column(String, nullable=True)
    booking_date = Column(Date, nullable=True)
    boat_company = Column(String, nullable=True)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory.

    Sessions are opened per operation, so SQLite connections are allowed to
    move between worker threads.
    """
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
