"""Dashboard routes: date-window summary and per-vehicle drill-down."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Tuple

from flask import Blueprint, Response, abort, flash, jsonify, render_template, request
from flask_login import current_user, login_required

from packages.fleet_common import EXPENSE_CATEGORIES

from .. import app_config, get_repository
from ..forms import DateRange, parse_date_range
from ..services import SummaryPanel

dashboard_bp = Blueprint("dashboard", __name__)


def _panel() -> SummaryPanel:
    return SummaryPanel(
        get_repository(), current_user.get_id(), app_config().summary_metrics
    )


def _window() -> Tuple[DateRange, list]:
    return parse_date_range(request.args, date.today())


def _seq() -> Any:
    return request.args.get("seq", type=int)


@dashboard_bp.get("/dashboard")
@login_required
def dashboard() -> str:
    """Render the summary cards for the selected window.

    A failed fetch renders the cards as unavailable; the error is only logged.
    """

    window, errors = _window()
    for message in errors:
        flash(message, "warning")
    panel = _panel()
    summary = panel.refresh(window)
    selected = request.args.get("category")
    if selected and panel.breakdown_enabled and summary is not None:
        try:
            panel.load_breakdown(selected, window)
        except KeyError:
            flash(f"Unknown category {selected!r}.", "warning")
    return render_template(
        "dashboard.html",
        window=window,
        panel=panel,
        summary=summary,
        categories=EXPENSE_CATEGORIES,
    )


@dashboard_bp.get("/dashboard/summary.json")
@login_required
def summary_json() -> Response:
    """Return the summary totals; ``seq`` is echoed for stale-response checks.

    ``available`` is false when the fetch failed, in which case no totals are
    sent and the page keeps showing what it had.
    """

    window, errors = _window()
    panel = _panel()
    summary = panel.refresh(window)
    payload: Dict[str, Any] = {
        "seq": _seq(),
        "from": window.start.isoformat(),
        "to": window.end.isoformat(),
        "available": summary is not None,
        "warnings": errors,
    }
    if summary is not None:
        payload["summary"] = summary.as_dict()
    return jsonify(payload)


@dashboard_bp.get("/dashboard/breakdown.json")
@login_required
def breakdown_json() -> Response:
    """Return ``[{vehicle, total}]`` for one expense category."""

    window, _ = _window()
    panel = _panel()
    if not panel.breakdown_enabled:
        abort(404)
    category = request.args.get("category", "")
    try:
        breakdown = panel.load_breakdown(category, window)
    except KeyError:
        abort(400, description=f"Unknown category {category!r}")
    payload: Dict[str, Any] = {
        "seq": _seq(),
        "category": category,
        "available": breakdown is not None,
    }
    if breakdown is not None:
        payload["breakdown"] = [
            {"vehicle": vehicle, "total": str(total)} for vehicle, total in breakdown
        ]
    return jsonify(payload)
