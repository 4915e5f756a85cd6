"""Form parsing and validation helpers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Mapping, Optional, Tuple

from packages.fleet_common import TripRecord

DATE_INPUT_FORMAT = "%Y-%m-%d"

# Largest amount a single money field may hold.
MAX_AMOUNT = Decimal("9999999999.99")

# (field, label used in messages). Order matches the order errors are reported.
REQUIRED_TEXT_FIELDS = (
    ("trip_id", "Trip ID"),
    ("vehicle", "Vehicle number"),
    ("driver_name", "Driver name"),
)
REQUIRED_AMOUNT_FIELDS = (
    ("fuel", "Fuel cost"),
    ("driver_fee", "Driver fee"),
    ("handling_fee", "Handling fee"),
    ("tolls", "Tolls"),
)
OPTIONAL_AMOUNT_FIELDS = (
    ("revenue", "Revenue"),
    ("petty_cash", "Petty cash"),
    ("other_expenses", "Other expenses"),
)


@dataclass(slots=True)
class DateRange:
    """Closed calendar-date interval used by the summary views."""

    start: date
    end: date


def _parse_decimal(raw: str) -> Optional[Decimal]:
    try:
        value = Decimal(raw)
        if not value.is_finite():
            return None
        if abs(value) > MAX_AMOUNT:
            return value
        return value.quantize(Decimal("0.01"))
    except (InvalidOperation, ValueError):
        return None


def parse_trip_form(
    form: Mapping[str, str]
) -> Tuple[Optional[TripRecord], List[str]]:
    """Validate a trip form submission.

    Returns a tuple of ``(result, errors)``. ``result`` is ``None`` when
    validation fails; ``errors`` keeps rule order so callers can surface the
    first failure. Optional amounts that do not parse are treated as zero.
    """

    errors: List[str] = []
    try:
        trip_date = datetime.strptime(
            (form.get("date") or "").strip(), DATE_INPUT_FORMAT
        ).date()
    except ValueError:
        errors.append("Date is required and must be YYYY-MM-DD.")
        trip_date = None  # type: ignore[assignment]

    text: Dict[str, str] = {}
    for name, label in REQUIRED_TEXT_FIELDS:
        text[name] = (form.get(name) or "").strip()
        if not text[name]:
            errors.append(f"{label} is required")

    amounts: Dict[str, Decimal] = {}
    for name, label in REQUIRED_AMOUNT_FIELDS:
        raw = (form.get(name) or "").strip()
        if not raw:
            errors.append(f"{label} is required")
            continue
        value = _parse_decimal(raw)
        if value is None:
            errors.append(f"{label} must be a valid number")
        elif value < 0:
            errors.append(f"{label} must be 0 or greater")
        elif value > MAX_AMOUNT:
            errors.append(f"{label} is too large")
        else:
            amounts[name] = value

    for name, label in OPTIONAL_AMOUNT_FIELDS:
        raw = (form.get(name) or "").strip()
        value = _parse_decimal(raw) if raw else None
        if value is None:
            value = Decimal("0.00")
        if value < 0:
            errors.append(f"{label} must be 0 or greater")
        elif value > MAX_AMOUNT:
            errors.append(f"{label} is too large")
        amounts[name] = value

    if errors:
        return None, errors

    return (
        TripRecord(
            trip_date=trip_date,
            trip_code=text["trip_id"],
            vehicle=text["vehicle"],
            driver_name=text["driver_name"],
            pc_note=(form.get("pc_note") or "").strip() or None,
            other_expenses_description=(
                form.get("other_expenses_description") or ""
            ).strip()
            or None,
            notes=(form.get("notes") or "").strip() or None,
            **amounts,
        ),
        [],
    )


def trip_to_form(trip: TripRecord) -> Dict[str, str]:
    """Return the form field values used to pre-populate the edit view."""

    def amount(value: Decimal) -> str:
        return f"{value:.2f}" if value else ""

    return {
        "date": trip.trip_date.strftime(DATE_INPUT_FORMAT),
        "trip_id": trip.trip_code,
        "vehicle": trip.vehicle,
        "driver_name": trip.driver_name,
        "revenue": amount(trip.revenue),
        "fuel": f"{trip.fuel:.2f}",
        "driver_fee": f"{trip.driver_fee:.2f}",
        "handling_fee": f"{trip.handling_fee:.2f}",
        "tolls": f"{trip.tolls:.2f}",
        "petty_cash": amount(trip.petty_cash),
        "pc_note": trip.pc_note or "",
        "other_expenses": amount(trip.other_expenses),
        "other_expenses_description": trip.other_expenses_description or "",
        "notes": trip.notes or "",
    }


def current_month(today: date) -> DateRange:
    """Return the first through last day of ``today``'s month."""

    start = today.replace(day=1)
    next_month = (start + timedelta(days=32)).replace(day=1)
    return DateRange(start=start, end=next_month - timedelta(days=1))


def parse_date_range(
    args: Mapping[str, str], today: date
) -> Tuple[DateRange, List[str]]:
    """Read ``from``/``to`` query values, defaulting to the current month.

    Each unparsable bound falls back to the month default and yields an
    error message. ``from`` after ``to`` is returned as is; the window is
    simply empty.
    """

    default = current_month(today)
    errors: List[str] = []
    bounds = {}
    for key, fallback in (("from", default.start), ("to", default.end)):
        raw = (args.get(key) or "").strip()
        if not raw:
            bounds[key] = fallback
            continue
        try:
            bounds[key] = datetime.strptime(raw, DATE_INPUT_FORMAT).date()
        except ValueError:
            errors.append(f"Ignoring invalid '{key}' date {raw!r}.")
            bounds[key] = fallback
    return DateRange(start=bounds["from"], end=bounds["to"]), errors
