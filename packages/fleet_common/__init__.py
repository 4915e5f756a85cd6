"""Common domain models and helpers shared across fleet apps."""

from .trips import (
    ALL_METRICS,
    EXPENSE_CATEGORIES,
    EXPENSE_FIELDS,
    UNKNOWN_VEHICLE,
    ExpenseCategory,
    SummaryMetric,
    TripRecord,
    TripSummary,
    category_by_label,
    filter_trips,
    summarize_trips,
    vehicle_breakdown,
)

__all__ = [
    "ALL_METRICS",
    "EXPENSE_CATEGORIES",
    "EXPENSE_FIELDS",
    "UNKNOWN_VEHICLE",
    "ExpenseCategory",
    "SummaryMetric",
    "TripRecord",
    "TripSummary",
    "category_by_label",
    "filter_trips",
    "summarize_trips",
    "vehicle_breakdown",
]
