"""Configuration helpers for the Trips web application."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from secrets import token_urlsafe
from typing import FrozenSet

from packages.fleet_common import ALL_METRICS, SummaryMetric

DEFAULT_DB_PATH = Path("instance/trips.db")


@dataclass(slots=True)
class AppConfig:
    """Settings loaded from environment variables."""

    database_url: str
    secret_key: str
    summary_metrics: FrozenSet[SummaryMetric] = field(default=ALL_METRICS)
    login_rate_limit: str = "5 per minute"
    currency_symbol: str = "₹"
    ratelimit_enabled: bool = True


def _resolve_secret_key() -> str:
    """Return ``TRIPS_SECRET_KEY`` or a freshly generated key."""

    configured = os.getenv("TRIPS_SECRET_KEY")
    if configured:
        return configured

    logging.getLogger("fleet_trips.config").warning(
        "TRIPS_SECRET_KEY environment variable is not set; generated a one-time key."
    )
    return token_urlsafe(32)


def parse_summary_metrics(raw: str) -> FrozenSet[SummaryMetric]:
    """Parse a comma separated list such as ``"revenue,profit"``.

    An empty string disables every optional metric, leaving an
    expenses-only summary.

    Raises:
        ValueError: When a name is not a :class:`SummaryMetric` value.
    """

    metrics = set()
    for name in raw.split(","):
        name = name.strip().lower()
        if not name:
            continue
        try:
            metrics.add(SummaryMetric(name))
        except ValueError as exc:
            raise ValueError(f"Unknown summary metric: {name!r}") from exc
    return frozenset(metrics)


def load_config() -> AppConfig:
    """Create an :class:`AppConfig` instance from environment variables."""

    database = os.getenv("TRIPS_DATABASE")
    if not database:
        DEFAULT_DB_PATH.parent.mkdir(parents=True, exist_ok=True)
        database = "sqlite:///" + str(DEFAULT_DB_PATH)
    metrics = parse_summary_metrics(
        os.getenv("TRIPS_SUMMARY_METRICS", "revenue,profit,breakdown")
    )
    return AppConfig(
        database_url=database,
        secret_key=_resolve_secret_key(),
        summary_metrics=metrics,
        login_rate_limit=os.getenv("TRIPS_LOGIN_RATE_LIMIT", "5 per minute"),
        currency_symbol=os.getenv("TRIPS_CURRENCY_SYMBOL", "₹"),
    )
