"""Public landing page."""

from __future__ import annotations

from flask import Blueprint, render_template

pages_bp = Blueprint("pages", __name__)


@pages_bp.get("/")
def index() -> str:
    return render_template("landing.html")
