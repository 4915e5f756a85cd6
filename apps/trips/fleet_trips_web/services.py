"""Business logic helpers for the Trips UI."""

from __future__ import annotations

import csv
import io
import logging
from datetime import date
from decimal import Decimal
from typing import FrozenSet, Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from packages.fleet_common import (
    ALL_METRICS,
    SummaryMetric,
    TripRecord,
    TripSummary,
    category_by_label,
    summarize_trips,
    vehicle_breakdown,
)

from .forms import DateRange
from .repositories import TripsRepository

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An error occurred"

EXPORT_HEADERS = [
    "Date",
    "Trip ID",
    "Vehicle",
    "Driver",
    "Revenue",
    "Fuel",
    "Driver Fee",
    "Handling",
    "Tolls",
    "Petty Cash",
    "Other",
    "Total Expenses",
    "Profit",
    "Notes",
]


def store_error_message(exc: BaseException) -> str:
    """Return the message reported by the database, or a generic fallback."""

    original = getattr(exc, "orig", None)
    message = str(original if original is not None else exc).strip()
    return message or GENERIC_ERROR_MESSAGE


def _amount(value: Optional[Decimal]) -> str:
    return f"{(value or Decimal()):.2f}"


def export_rows(trips: Iterable[TripRecord]) -> List[List[str]]:
    """Return the header plus one row per trip in :data:`EXPORT_HEADERS` order."""

    rows = [list(EXPORT_HEADERS)]
    for trip in trips:
        rows.append(
            [
                trip.trip_date.isoformat(),
                trip.trip_code,
                trip.vehicle,
                trip.driver_name,
                _amount(trip.revenue),
                _amount(trip.fuel),
                _amount(trip.driver_fee),
                _amount(trip.handling_fee),
                _amount(trip.tolls),
                _amount(trip.petty_cash),
                _amount(trip.other_expenses),
                _amount(trip.total_expenses()),
                _amount(trip.profit()),
                trip.notes or "",
            ]
        )
    return rows


def export_trips_csv(trips: Iterable[TripRecord]) -> str:
    """Serialise ``trips`` as comma separated text."""

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(export_rows(trips))
    return buffer.getvalue()


def export_filename(today: date) -> str:
    return f"trips_{today.isoformat()}.csv"


class SummaryPanel:
    """Summary state for one dashboard request.

    ``summary`` stays ``None`` until a fetch succeeds, so a failed fetch is
    rendered as unavailable rather than as zero totals. Errors are logged
    and kept on ``last_error``; they are not shown to the user.
    """

    def __init__(
        self,
        repo: TripsRepository,
        owner_id: str,
        metrics: FrozenSet[SummaryMetric] = ALL_METRICS,
    ):
        self._repo = repo
        self._owner_id = owner_id
        self.metrics = frozenset(metrics)
        self.summary: Optional[TripSummary] = None
        self.last_error: Optional[str] = None
        self.selected_category: Optional[str] = None
        self.breakdown: Optional[List[Tuple[str, Decimal]]] = None

    @property
    def breakdown_enabled(self) -> bool:
        return SummaryMetric.BREAKDOWN in self.metrics

    @property
    def revenue_enabled(self) -> bool:
        return SummaryMetric.REVENUE in self.metrics

    @property
    def profit_enabled(self) -> bool:
        return self.revenue_enabled and SummaryMetric.PROFIT in self.metrics

    @property
    def available(self) -> bool:
        return self.summary is not None

    def refresh(self, window: DateRange) -> Optional[TripSummary]:
        """Fetch trips in ``window`` and reduce them into new totals.

        On a store error the previous ``summary`` is left untouched.
        """

        try:
            trips = self._repo.list_trips_between(
                self._owner_id, window.start, window.end
            )
        except SQLAlchemyError as exc:
            logger.error("Error fetching summary: %s", exc)
            self.last_error = store_error_message(exc)
            return self.summary
        self.summary = summarize_trips(trips, self.metrics)
        self.last_error = None
        return self.summary

    def load_breakdown(
        self, label: str, window: DateRange
    ) -> Optional[List[Tuple[str, Decimal]]]:
        """Per-vehicle totals of one expense category, largest first.

        Returns ``None`` when the fetch fails.

        Raises:
            KeyError: When ``label`` is not an expense category.
            ValueError: When the breakdown metric is disabled.
        """

        if not self.breakdown_enabled:
            raise ValueError("Vehicle breakdown is disabled")
        category = category_by_label(label)
        self.selected_category = label
        self.breakdown = None
        try:
            rows = self._repo.list_vehicle_amounts(
                self._owner_id, window.start, window.end, category.field_name
            )
        except SQLAlchemyError as exc:
            logger.error("Error fetching vehicle breakdown: %s", exc)
            self.last_error = store_error_message(exc)
            return None
        self.breakdown = vehicle_breakdown(rows)
        return self.breakdown
