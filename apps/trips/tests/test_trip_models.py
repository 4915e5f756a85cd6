"""Unit tests for the shared trip reduction helpers."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from packages.fleet_common import (
    EXPENSE_CATEGORIES,
    SummaryMetric,
    TripRecord,
    category_by_label,
    filter_trips,
    summarize_trips,
    vehicle_breakdown,
)


def _trip(**overrides) -> TripRecord:
    values = dict(
        trip_date=date(2024, 1, 5),
        trip_code="BLR-CHN",
        vehicle="KA-01-1234",
        driver_name="Ravi",
        fuel=Decimal("0"),
        driver_fee=Decimal("0"),
        handling_fee=Decimal("0"),
        tolls=Decimal("0"),
    )
    values.update(overrides)
    return TripRecord(**values)


def test_total_expenses_and_profit():
    trip = _trip(
        revenue=Decimal("1000"),
        fuel=Decimal("100"),
        driver_fee=Decimal("50"),
        handling_fee=Decimal("25.50"),
        tolls=Decimal("10"),
        petty_cash=Decimal("5"),
        other_expenses=Decimal("9.50"),
    )
    assert trip.total_expenses() == Decimal("200.00")
    assert trip.profit() == Decimal("800.00")


def test_missing_amounts_count_as_zero():
    trip = _trip(fuel=Decimal("10"), revenue=None, petty_cash=None, other_expenses=None)
    assert trip.total_expenses() == Decimal("10")
    assert trip.profit() == Decimal("-10")


def test_filter_matches_any_field():
    ka = _trip(vehicle="KA-01-1234")
    mh = _trip(vehicle="MH-12-5678", trip_code="PUN-MUM", driver_name="Sunil")
    assert filter_trips([ka, mh], "KA-01") == [ka]
    assert filter_trips([ka, mh], "sunil") == [mh]
    assert filter_trips([ka, mh], "pun-mum") == [mh]
    assert filter_trips([ka, mh], "2024-01") == [ka, mh]


def test_empty_term_passes_everything():
    trips = [_trip(), _trip(vehicle="X")]
    assert filter_trips(trips, "") == trips
    assert filter_trips(trips, "   ") == []


def test_filter_is_idempotent():
    trips = [_trip(vehicle="KA-01"), _trip(vehicle="KA-02"), _trip(vehicle="TN-09")]
    once = filter_trips(trips, "ka")
    assert filter_trips(once, "ka") == once


def test_summary_scenario():
    trips = [
        _trip(trip_date=date(2024, 1, 5), fuel=Decimal("100"), driver_fee=Decimal("50"), revenue=Decimal("500")),
        _trip(trip_date=date(2024, 1, 31), fuel=Decimal("200"), driver_fee=Decimal("0"), revenue=Decimal("0")),
    ]
    summary = summarize_trips(trips)
    assert summary.category_totals["fuel"] == Decimal("300")
    assert summary.category_totals["driver_fee"] == Decimal("50")
    assert summary.revenue == Decimal("500")
    assert summary.trip_count == 2
    assert summary.total_expenses() == Decimal("350")
    assert summary.net_profit() == Decimal("150")


def test_expenses_only_summary_omits_revenue_and_profit():
    summary = summarize_trips([_trip(fuel=Decimal("5"), revenue=Decimal("50"))], frozenset())
    assert summary.revenue is None
    assert summary.net_profit() is None
    payload = summary.as_dict()
    assert "total_revenue" not in payload
    assert "net_profit" not in payload
    assert payload["total_expenses"] == "5.00"


def test_profit_requires_profit_metric():
    summary = summarize_trips([_trip(revenue=Decimal("50"))], frozenset({SummaryMetric.REVENUE}))
    assert summary.revenue == Decimal("50")
    assert summary.net_profit() is None


def test_vehicle_breakdown_scenario():
    rows = [("V1", Decimal("100")), ("V1", Decimal("50")), ("V2", Decimal("30"))]
    assert vehicle_breakdown(rows) == [("V1", Decimal("150")), ("V2", Decimal("30"))]


def test_breakdown_buckets_missing_vehicle_and_matches_headline():
    trips = [
        _trip(vehicle="V1", tolls=Decimal("10")),
        _trip(vehicle="", tolls=Decimal("40")),
        _trip(vehicle="V2", tolls=None),
    ]
    breakdown = vehicle_breakdown((t.vehicle, t.tolls) for t in trips)
    assert breakdown[0] == ("Unknown", Decimal("40"))
    total = sum((amount for _, amount in breakdown), Decimal())
    assert total == summarize_trips(trips).category_totals["tolls"]


def test_category_lookup():
    assert category_by_label("Driver Fees").field_name == "driver_fee"
    assert [c.label for c in EXPENSE_CATEGORIES] == [
        "Fuel", "Driver Fees", "Handling", "Tolls", "Petty Cash", "Other",
    ]
    with pytest.raises(KeyError):
        category_by_label("Revenue")


def test_empty_summary_amounts_keep_two_decimals():
    payload = summarize_trips([]).as_dict()
    assert payload["total_revenue"] == "0.00"
    assert payload["total_expenses"] == "0.00"
    assert payload["net_profit"] == "0.00"
    assert {c["total"] for c in payload["categories"]} == {"0.00"}


def test_whitespace_term_is_not_trimmed():
    spaced = _trip(driver_name="Ravi  Kumar")
    plain = _trip(driver_name="Ravi")
    assert filter_trips([spaced, plain], "  ") == [spaced]
