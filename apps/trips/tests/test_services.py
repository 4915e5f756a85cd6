"""Tests for export helpers and the summary panel state."""

from __future__ import annotations

import csv
import io
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from packages.fleet_common import SummaryMetric, TripRecord
from fleet_trips_web.forms import DateRange
from fleet_trips_web.services import (
    EXPORT_HEADERS,
    GENERIC_ERROR_MESSAGE,
    SummaryPanel,
    export_filename,
    export_trips_csv,
    store_error_message,
)

JANUARY = DateRange(start=date(2024, 1, 1), end=date(2024, 1, 31))


def _trip(day, vehicle="V1", **amounts):
    values = dict(fuel=Decimal("0"), driver_fee=Decimal("0"), handling_fee=Decimal("0"), tolls=Decimal("0"))
    values.update(amounts)
    return TripRecord(trip_date=day, trip_code="T1", vehicle=vehicle, driver_name="Ravi", **values)


def test_export_csv_layout():
    trips = [
        _trip(date(2024, 1, 5), fuel=Decimal("100"), revenue=Decimal("500"), notes="late, rainy"),
        _trip(date(2024, 1, 6), revenue=None, petty_cash=None),
    ]
    rows = list(csv.reader(io.StringIO(export_trips_csv(trips))))
    assert len(rows) == len(trips) + 1
    assert rows[0] == EXPORT_HEADERS
    assert len(rows[0]) == 14
    assert rows[1] == [
        "2024-01-05", "T1", "V1", "Ravi", "500.00", "100.00", "0.00", "0.00",
        "0.00", "0.00", "0.00", "100.00", "400.00", "late, rainy",
    ]
    assert rows[2][4] == "0.00"
    assert rows[2][-1] == ""


def test_export_filename_embeds_date():
    assert export_filename(date(2024, 5, 2)) == "trips_2024-05-02.csv"


def test_store_error_message_fallback():
    assert store_error_message(RuntimeError("")) == GENERIC_ERROR_MESSAGE
    exc = OperationalError("SELECT 1", {}, Exception("database is locked"))
    assert store_error_message(exc) == "database is locked"


class FakeRepo:
    def __init__(self, trips=None, error=None):
        self.trips = trips or []
        self.error = error
        self.calls = []

    def list_trips_between(self, owner_id, start, end):
        self.calls.append((owner_id, start, end))
        if self.error:
            raise self.error
        return [t for t in self.trips if start <= t.trip_date <= end]

    def list_vehicle_amounts(self, owner_id, start, end, field_name):
        if self.error:
            raise self.error
        return [
            (t.vehicle, getattr(t, field_name))
            for t in self.trips
            if start <= t.trip_date <= end
        ]


def test_refresh_replaces_totals():
    repo = FakeRepo([_trip(date(2024, 1, 5), fuel=Decimal("100")), _trip(date(2024, 2, 1), fuel=Decimal("9"))])
    panel = SummaryPanel(repo, "owner-1")
    summary = panel.refresh(JANUARY)
    assert summary.category_totals["fuel"] == Decimal("100")
    assert summary.trip_count == 1
    assert panel.available is True
    assert repo.calls == [("owner-1", JANUARY.start, JANUARY.end)]


def test_failed_first_fetch_is_unavailable(caplog):
    repo = FakeRepo(error=OperationalError("SELECT", {}, Exception("connection reset")))
    panel = SummaryPanel(repo, "owner-1")
    assert panel.refresh(JANUARY) is None
    assert panel.available is False
    assert panel.last_error == "connection reset"
    assert "Error fetching summary" in caplog.text


def test_failed_fetch_keeps_previous_totals():
    repo = FakeRepo([_trip(date(2024, 1, 5), fuel=Decimal("100"))])
    panel = SummaryPanel(repo, "owner-1")
    before = panel.refresh(JANUARY)
    repo.error = OperationalError("SELECT", {}, Exception("connection reset"))
    after = panel.refresh(JANUARY)
    assert after is before
    assert panel.last_error == "connection reset"
    repo.error = None
    panel.refresh(JANUARY)
    assert panel.last_error is None


def test_breakdown_groups_by_vehicle():
    repo = FakeRepo([
        _trip(date(2024, 1, 1), "V1", fuel=Decimal("100")),
        _trip(date(2024, 1, 2), "V1", fuel=Decimal("50")),
        _trip(date(2024, 1, 3), "V2", fuel=Decimal("30")),
    ])
    panel = SummaryPanel(repo, "owner-1")
    assert panel.load_breakdown("Fuel", JANUARY) == [("V1", Decimal("150")), ("V2", Decimal("30"))]
    assert panel.selected_category == "Fuel"


def test_failed_breakdown_is_unavailable():
    repo = FakeRepo(error=OperationalError("SELECT", {}, Exception("connection reset")))
    panel = SummaryPanel(repo, "owner-1")
    assert panel.load_breakdown("Tolls", JANUARY) is None
    assert panel.selected_category == "Tolls"
    assert panel.breakdown is None


def test_breakdown_requires_metric_and_known_category():
    panel = SummaryPanel(FakeRepo(), "owner-1", frozenset({SummaryMetric.REVENUE}))
    assert panel.revenue_enabled is True
    assert panel.profit_enabled is False
    with pytest.raises(ValueError):
        panel.load_breakdown("Fuel", JANUARY)
    panel = SummaryPanel(FakeRepo(), "owner-1")
    with pytest.raises(KeyError):
        panel.load_breakdown("Revenue", JANUARY)
