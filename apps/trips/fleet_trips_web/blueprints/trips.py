"""HTTP routes for recording, listing and exporting trips."""

from __future__ import annotations

from datetime import date
from typing import Mapping, Optional, Union

from flask import (
    Blueprint,
    Response,
    abort,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)
from flask_login import current_user, login_required
from sqlalchemy.exc import NoResultFound, SQLAlchemyError

from packages.fleet_common import TripRecord, filter_trips

from .. import get_repository
from ..forms import parse_trip_form, trip_to_form
from ..services import export_filename, export_trips_csv, store_error_message

trips_bp = Blueprint("trips", __name__)


def _owner_id() -> str:
    return current_user.get_id()


def _load_trips() -> Optional[list[TripRecord]]:
    """Return the current account's trips, or ``None`` after a store error."""

    try:
        return get_repository().list_trips(_owner_id())
    except SQLAlchemyError as exc:
        current_app.logger.error("Failed to load trips: %s", exc)
        flash("Failed to load trips", "danger")
        return None


@trips_bp.get("/trips")
@login_required
def list_trips() -> str:
    """Render the searchable trip list."""

    term = request.args.get("q", "")
    trips = _load_trips() or []
    return render_template(
        "trips/index.html", trips=filter_trips(trips, term), search=term
    )


@trips_bp.get("/trips/export.csv")
@login_required
def export_trips() -> Response:
    """Download the currently filtered trips as CSV."""

    term = request.args.get("q", "")
    trips = _load_trips()
    if trips is None:
        return redirect(url_for("trips.list_trips", q=term or None))
    body = export_trips_csv(filter_trips(trips, term))
    filename = export_filename(date.today())
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@trips_bp.post("/trips/<trip_id>/delete")
@login_required
def delete_trip(trip_id: str) -> Response:
    """Delete one trip after the user confirmed it in the list view."""

    term = request.form.get("q") or None
    try:
        get_repository().delete_trip(_owner_id(), trip_id)
    except NoResultFound:
        flash("Trip not found.", "danger")
    except SQLAlchemyError as exc:
        current_app.logger.error("Failed to delete trip %s: %s", trip_id, exc)
        flash("Failed to delete trip", "danger")
    else:
        flash("Trip deleted successfully", "success")
    return redirect(url_for("trips.list_trips", q=term))


def _render_form(
    form: Mapping[str, str], trip_id: Optional[str] = None, status: int = 200
):
    return (
        render_template("trips/form.html", form=form, trip_id=trip_id),
        status,
    )


@trips_bp.get("/add-trip")
@login_required
def new_trip_form():
    return _render_form({"date": date.today().isoformat()})


@trips_bp.post("/add-trip")
@login_required
def create_trip() -> Union[Response, tuple]:
    """Validate the submission and insert a trip owned by the current user."""

    trip, errors = parse_trip_form(request.form)
    if errors or trip is None:
        flash(errors[0], "danger")
        return _render_form(request.form, status=400)
    try:
        get_repository().create_trip(_owner_id(), trip)
    except SQLAlchemyError as exc:
        current_app.logger.error("Failed to create trip: %s", exc)
        flash(store_error_message(exc), "danger")
        return _render_form(request.form, status=500)
    flash("Trip added successfully", "success")
    return redirect(url_for("trips.list_trips"))


@trips_bp.get("/edit-trip/<trip_id>")
@login_required
def edit_trip_form(trip_id: str):
    try:
        trip = get_repository().get_trip(_owner_id(), trip_id)
    except NoResultFound:
        abort(404)
    return _render_form(trip_to_form(trip), trip_id=trip_id)


@trips_bp.post("/edit-trip/<trip_id>")
@login_required
def update_trip(trip_id: str) -> Union[Response, tuple]:
    """Validate the submission and overwrite the stored trip."""

    trip, errors = parse_trip_form(request.form)
    if errors or trip is None:
        flash(errors[0], "danger")
        return _render_form(request.form, trip_id=trip_id, status=400)
    try:
        get_repository().update_trip(_owner_id(), trip_id, trip)
    except NoResultFound:
        abort(404)
    except SQLAlchemyError as exc:
        current_app.logger.error("Failed to update trip %s: %s", trip_id, exc)
        flash(store_error_message(exc), "danger")
        return _render_form(request.form, trip_id=trip_id, status=500)
    flash("Trip updated successfully", "success")
    return redirect(url_for("trips.list_trips"))
