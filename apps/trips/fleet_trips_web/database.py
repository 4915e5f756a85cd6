"""Database setup utilities for the Trips web app."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import (
    BigInteger,
    Column,
    Date,
    DateTime,
    ForeignKey,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    func,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

metadata = MetaData()

accounts = Table(
    "accounts",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column(
        "created_at", DateTime(timezone=True), server_default=func.now(), nullable=False
    ),
)

trips = Table(
    "trips",
    metadata,
    Column("id", String(36), primary_key=True),
    Column(
        "user_id",
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("date", Date, nullable=False, index=True),
    Column("trip_id", String(255), nullable=False),
    Column("vehicle", String(120), nullable=False),
    Column("driver_name", String(255), nullable=False),
    Column("revenue_cents", BigInteger, nullable=True, default=0),
    Column("fuel_cents", BigInteger, nullable=False),
    Column("driver_fee_cents", BigInteger, nullable=False),
    Column("handling_fee_cents", BigInteger, nullable=False),
    Column("tolls_cents", BigInteger, nullable=False),
    Column("petty_cash_cents", BigInteger, nullable=True, default=0),
    Column("pc_note", Text, nullable=True),
    Column("other_expenses_cents", BigInteger, nullable=True, default=0),
    Column("other_expenses_description", Text, nullable=True),
    Column("notes", Text, nullable=True),
    Column(
        "created_at", DateTime(timezone=True), server_default=func.now(), nullable=False
    ),
)


def create_db_engine(database_url: str) -> Engine:
    """Return a SQLAlchemy engine for the provided URL."""

    return create_engine(database_url, future=True)


def init_schema(engine: Engine) -> None:
    """Create database tables if they do not exist."""

    metadata.create_all(engine)


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """Context manager that yields a SQLAlchemy :class:`Session`."""

    with Session(engine, future=True) as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
