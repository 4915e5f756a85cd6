"""Trip ledger domain models and reduction helpers.

These dataclasses describe a single logistics trip and the aggregate
totals derived from a set of trips. Like the rest of ``packages`` they
avoid persistence concerns so the Flask UI, exports and background jobs
can share one definition of "total expenses" and "profit".
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

UNKNOWN_VEHICLE = "Unknown"
ZERO = Decimal("0.00")


@dataclass(slots=True)
class ExpenseCategory:
    """Represents one of the six expense columns recorded on a trip."""

    code: str
    label: str
    field_name: str


EXPENSE_CATEGORIES: List[ExpenseCategory] = [
    ExpenseCategory(code="fuel", label="Fuel", field_name="fuel"),
    ExpenseCategory(code="driver_fee", label="Driver Fees", field_name="driver_fee"),
    ExpenseCategory(code="handling", label="Handling", field_name="handling_fee"),
    ExpenseCategory(code="tolls", label="Tolls", field_name="tolls"),
    ExpenseCategory(code="petty_cash", label="Petty Cash", field_name="petty_cash"),
    ExpenseCategory(code="other", label="Other", field_name="other_expenses"),
]

EXPENSE_FIELDS: Tuple[str, ...] = tuple(c.field_name for c in EXPENSE_CATEGORIES)


def category_by_label(label: str) -> ExpenseCategory:
    """Return the expense category whose display label is ``label``.

    Raises:
        KeyError: When ``label`` is not one of the six expense categories.
    """

    for category in EXPENSE_CATEGORIES:
        if category.label == label:
            return category
    raise KeyError(label)


class SummaryMetric(enum.Enum):
    """Optional metrics a summary view may compute and display."""

    REVENUE = "revenue"
    PROFIT = "profit"
    BREAKDOWN = "breakdown"


ALL_METRICS: FrozenSet[SummaryMetric] = frozenset(SummaryMetric)


def _amount(value: Optional[Decimal]) -> Decimal:
    return Decimal(value) if value is not None else Decimal()


@dataclass(slots=True)
class TripRecord:
    """One persisted logistics trip.

    ``owner_id`` binds the row to the account that created it and is never
    changed after insert. Absent monetary values are treated as zero.
    """

    trip_date: date
    trip_code: str
    vehicle: str
    driver_name: str
    fuel: Decimal
    driver_fee: Decimal
    handling_fee: Decimal
    tolls: Decimal
    revenue: Decimal = Decimal()
    petty_cash: Decimal = Decimal()
    other_expenses: Decimal = Decimal()
    pc_note: Optional[str] = None
    other_expenses_description: Optional[str] = None
    notes: Optional[str] = None
    owner_id: Optional[str] = None
    id: Optional[str] = None

    def total_expenses(self) -> Decimal:
        """Sum of the six expense fields."""

        return sum((_amount(getattr(self, name)) for name in EXPENSE_FIELDS), Decimal())

    def profit(self) -> Decimal:
        """Revenue minus :meth:`total_expenses`."""

        return _amount(self.revenue) - self.total_expenses()

    def matches(self, term: str) -> bool:
        """Return ``True`` when ``term`` occurs in a searchable field.

        Trip code, vehicle and driver are compared case-insensitively; the
        date is matched against its ISO text.
        """

        if not term:
            return True
        needle = term.lower()
        return (
            needle in self.trip_code.lower()
            or needle in self.vehicle.lower()
            or needle in self.driver_name.lower()
            or term in self.trip_date.isoformat()
        )


def filter_trips(trips: Iterable[TripRecord], term: str) -> List[TripRecord]:
    """Return the trips matching ``term`` in their original order.

    The term is used as typed; only an empty term passes every trip.
    """

    return [trip for trip in trips if trip.matches(term)]


@dataclass(slots=True)
class TripSummary:
    """Aggregate totals over a date window.

    ``revenue`` is ``None`` when the revenue metric is disabled, which also
    disables :meth:`net_profit`.
    """

    category_totals: Dict[str, Decimal] = field(
        default_factory=lambda: {c.code: ZERO for c in EXPENSE_CATEGORIES}
    )
    trip_count: int = 0
    revenue: Optional[Decimal] = None
    metrics: FrozenSet[SummaryMetric] = ALL_METRICS

    def total_expenses(self) -> Decimal:
        return sum(self.category_totals.values(), ZERO)

    def net_profit(self) -> Optional[Decimal]:
        if self.revenue is None or SummaryMetric.PROFIT not in self.metrics:
            return None
        return self.revenue - self.total_expenses()

    def as_dict(self) -> Dict[str, object]:
        """Return a JSON-friendly representation with string amounts."""

        payload: Dict[str, object] = {
            "trip_count": self.trip_count,
            "categories": [
                {
                    "code": c.code,
                    "label": c.label,
                    "total": str(self.category_totals[c.code]),
                }
                for c in EXPENSE_CATEGORIES
            ],
            "total_expenses": str(self.total_expenses()),
        }
        if self.revenue is not None:
            payload["total_revenue"] = str(self.revenue)
        profit = self.net_profit()
        if profit is not None:
            payload["net_profit"] = str(profit)
        return payload


def summarize_trips(
    trips: Iterable[TripRecord],
    metrics: FrozenSet[SummaryMetric] = ALL_METRICS,
) -> TripSummary:
    """Reduce ``trips`` into per-category running totals and a trip count.

    The caller is responsible for restricting ``trips`` to the date window.
    """

    summary = TripSummary(metrics=frozenset(metrics))
    track_revenue = SummaryMetric.REVENUE in summary.metrics
    if track_revenue:
        summary.revenue = ZERO
    for trip in trips:
        for category in EXPENSE_CATEGORIES:
            summary.category_totals[category.code] += _amount(
                getattr(trip, category.field_name)
            )
        if track_revenue:
            summary.revenue += _amount(trip.revenue)
        summary.trip_count += 1
    return summary


def vehicle_breakdown(
    rows: Iterable[Tuple[Optional[str], Optional[Decimal]]],
) -> List[Tuple[str, Decimal]]:
    """Group ``(vehicle, amount)`` pairs and sort by total, largest first.

    Missing vehicle labels are bucketed under :data:`UNKNOWN_VEHICLE`. Ties
    keep first-seen order.
    """

    totals: Dict[str, Decimal] = {}
    for vehicle, amount in rows:
        key = vehicle or UNKNOWN_VEHICLE
        totals.setdefault(key, ZERO)
        totals[key] += _amount(amount)
    return sorted(totals.items(), key=lambda pair: pair[1], reverse=True)
