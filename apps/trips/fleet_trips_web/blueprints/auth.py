"""Sign-in, sign-up and sign-out routes.

``/auth`` is the single authentication entry point: the submitted ``action``
field selects between signing in to an existing account and creating a new
one. Successful requests start a :mod:`flask_login` session and continue to
the dashboard.
"""

from __future__ import annotations

from typing import Union

from flask import (
    Blueprint,
    Response,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)
from flask_login import current_user, login_required, login_user, logout_user
from flask_limiter.util import get_remote_address
from sqlalchemy.exc import SQLAlchemyError

from .. import app_config, get_accounts, limiter
from ..auth_utils import MIN_PASSWORD_LENGTH, is_valid_email, is_valid_password
from ..models import Account
from ..services import store_error_message

auth_bp = Blueprint("auth", __name__)


def _auth_rate_limit_value() -> str:
    """Return the configured limit for :func:`auth` POST requests."""

    return app_config().login_rate_limit or "5 per minute"


def _auth_rate_limit_key() -> str:
    """Scope attempts by remote IP and submitted email address."""

    base_ip = request.remote_addr or get_remote_address()
    email = (request.form.get("email") or "").strip().lower()
    return f"{base_ip}:{email}" if email else base_ip


@auth_bp.route("/auth", methods=["GET", "POST"])
@limiter.limit(
    _auth_rate_limit_value, key_func=_auth_rate_limit_key, methods=["POST"]
)
def auth() -> Union[str, Response]:
    """Render the sign-in form or process a sign-in / sign-up submission."""

    if current_user.is_authenticated:
        return redirect(url_for("dashboard.dashboard"))
    if request.method == "GET":
        return render_template("auth.html", email="")

    action = request.form.get("action", "login")
    email = (request.form.get("email") or "").strip().lower()
    password = request.form.get("password", "")
    if action == "signup":
        return _sign_up(email, password)
    return _sign_in(email, password)


def _sign_in(email: str, password: str) -> Union[str, Response]:
    account = get_accounts().find_by_email(email) if email else None
    if account is None or not account.check_password(password):
        current_app.logger.info("Failed sign-in for %s", email or "<blank>")
        flash("Invalid email or password.", "danger")
        return render_template("auth.html", email=email), 401
    login_user(account)
    flash("Signed in successfully.", "success")
    return redirect(url_for("dashboard.dashboard"))


def _sign_up(email: str, password: str) -> Union[str, Response]:
    if not is_valid_email(email):
        flash("Invalid email address.", "danger")
        return render_template("auth.html", email=email), 400
    if not is_valid_password(password):
        flash(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters.", "danger"
        )
        return render_template("auth.html", email=email), 400
    accounts = get_accounts()
    if accounts.find_by_email(email) is not None:
        flash("Email already registered.", "danger")
        return render_template("auth.html", email=email), 400
    try:
        account = accounts.create_account(email, Account.hash_password(password))
    except SQLAlchemyError as exc:
        current_app.logger.error("Account creation failed: %s", exc)
        flash(store_error_message(exc), "danger")
        return render_template("auth.html", email=email), 500
    current_app.logger.info("Created account %s", account.id)
    login_user(account)
    flash("Account created.", "success")
    return redirect(url_for("dashboard.dashboard"))


@auth_bp.post("/logout")
@login_required
def logout() -> Response:
    logout_user()
    flash("Logged out successfully", "success")
    return redirect(url_for("auth.auth"))
