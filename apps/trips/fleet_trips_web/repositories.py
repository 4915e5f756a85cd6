"""Database access layer for the Trips web app.

Every trip query takes the owner identifier explicitly so callers can never
read or modify another account's rows by accident.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoResultFound

from packages.fleet_common import EXPENSE_FIELDS, TripRecord

from .database import accounts, session_scope, trips
from .models import Account

MONEY_FIELDS = ("revenue",) + EXPENSE_FIELDS


def _to_cents(amount: Optional[Decimal]) -> int:
    if amount is None:
        return 0
    return int((Decimal(amount) * 100).to_integral_value())


def _from_cents(cents: Optional[int]) -> Decimal:
    if cents is None:
        return Decimal("0.00")
    return (Decimal(cents) / Decimal(100)).quantize(Decimal("0.01"))


class AccountsRepository:
    """Stores login identities."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def create_account(self, email: str, password_hash: str) -> Account:
        """Insert a new account with a generated opaque identifier."""

        account_id = str(uuid.uuid4())
        with session_scope(self._engine) as session:
            session.execute(
                insert(accounts).values(
                    id=account_id, email=email.lower(), password_hash=password_hash
                )
            )
        return Account(id=account_id, email=email.lower(), password_hash=password_hash)

    def get_account(self, account_id: str) -> Optional[Account]:
        with session_scope(self._engine) as session:
            row = session.execute(
                select(accounts).where(accounts.c.id == account_id)
            ).one_or_none()
        return self._row_to_account(row) if row is not None else None

    def find_by_email(self, email: str) -> Optional[Account]:
        with session_scope(self._engine) as session:
            row = session.execute(
                select(accounts).where(func.lower(accounts.c.email) == email.lower())
            ).one_or_none()
        return self._row_to_account(row) if row is not None else None

    @staticmethod
    def _row_to_account(row) -> Account:
        values = row._mapping
        return Account(
            id=values["id"],
            email=values["email"],
            password_hash=values["password_hash"],
            created_at=values["created_at"],
        )


class TripsRepository:
    """Provides CRUD and range queries for trip records."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def create_trip(self, owner_id: str, trip: TripRecord) -> TripRecord:
        """Persist a new trip owned by ``owner_id`` and return it with an ID."""

        trip_id = str(uuid.uuid4())
        payload = self._write_payload(trip)
        payload.update(id=trip_id, user_id=owner_id)
        with session_scope(self._engine) as session:
            session.execute(insert(trips).values(**payload))
        return replace(trip, id=trip_id, owner_id=owner_id)

    def update_trip(self, owner_id: str, trip_id: str, trip: TripRecord) -> None:
        """Overwrite the editable fields of an owned trip.

        The owner column is never part of the update.

        Raises:
            NoResultFound: When no trip with ``trip_id`` belongs to ``owner_id``.
        """

        with session_scope(self._engine) as session:
            result = session.execute(
                update(trips)
                .where(trips.c.id == trip_id, trips.c.user_id == owner_id)
                .values(**self._write_payload(trip))
            )
            if result.rowcount == 0:
                raise NoResultFound(f"Trip {trip_id} not found")

    def get_trip(self, owner_id: str, trip_id: str) -> TripRecord:
        """Fetch a single owned trip."""

        with session_scope(self._engine) as session:
            row = session.execute(
                select(trips).where(trips.c.id == trip_id, trips.c.user_id == owner_id)
            ).one_or_none()
        if row is None:
            raise NoResultFound(f"Trip {trip_id} not found")
        return self._row_to_trip(row)

    def list_trips(self, owner_id: str) -> List[TripRecord]:
        """Return every trip of ``owner_id``, newest date first."""

        with session_scope(self._engine) as session:
            rows = session.execute(
                select(trips)
                .where(trips.c.user_id == owner_id)
                .order_by(trips.c.date.desc(), trips.c.created_at.desc())
            ).all()
        return [self._row_to_trip(row) for row in rows]

    def list_trips_between(
        self, owner_id: str, start: date, end: date
    ) -> List[TripRecord]:
        """Return trips dated within ``[start, end]``, both ends inclusive."""

        with session_scope(self._engine) as session:
            rows = session.execute(
                select(trips).where(
                    trips.c.user_id == owner_id,
                    trips.c.date >= start,
                    trips.c.date <= end,
                )
            ).all()
        return [self._row_to_trip(row) for row in rows]

    def list_vehicle_amounts(
        self, owner_id: str, start: date, end: date, field_name: str
    ) -> List[Tuple[str, Decimal]]:
        """Return ``(vehicle, amount)`` pairs for one money field in a window.

        Only the vehicle label and the requested column are selected.
        """

        if field_name not in MONEY_FIELDS:
            raise ValueError(f"Unknown amount field: {field_name}")
        column = trips.c[f"{field_name}_cents"]
        with session_scope(self._engine) as session:
            rows = session.execute(
                select(trips.c.vehicle, column).where(
                    trips.c.user_id == owner_id,
                    trips.c.date >= start,
                    trips.c.date <= end,
                )
            ).all()
        return [(row[0], _from_cents(row[1])) for row in rows]

    def delete_trip(self, owner_id: str, trip_id: str) -> None:
        """Remove one owned trip.

        Raises:
            NoResultFound: When no trip with ``trip_id`` belongs to ``owner_id``.
        """

        with session_scope(self._engine) as session:
            result = session.execute(
                delete(trips).where(trips.c.id == trip_id, trips.c.user_id == owner_id)
            )
            if result.rowcount == 0:
                raise NoResultFound(f"Trip {trip_id} not found")

    @staticmethod
    def _write_payload(trip: TripRecord) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "date": trip.trip_date,
            "trip_id": trip.trip_code,
            "vehicle": trip.vehicle,
            "driver_name": trip.driver_name,
            "pc_note": trip.pc_note or None,
            "other_expenses_description": trip.other_expenses_description or None,
            "notes": trip.notes or None,
        }
        for name in MONEY_FIELDS:
            payload[f"{name}_cents"] = _to_cents(getattr(trip, name))
        return payload

    @staticmethod
    def _row_to_trip(row) -> TripRecord:
        """Convert a SQLAlchemy row to a :class:`TripRecord`."""

        values = row._mapping
        amounts = {name: _from_cents(values[f"{name}_cents"]) for name in MONEY_FIELDS}
        return TripRecord(
            id=values["id"],
            owner_id=values["user_id"],
            trip_date=values["date"],
            trip_code=values["trip_id"],
            vehicle=values["vehicle"],
            driver_name=values["driver_name"],
            pc_note=values["pc_note"],
            other_expenses_description=values["other_expenses_description"],
            notes=values["notes"],
            **amounts,
        )
