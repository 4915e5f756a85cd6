"""Fleet Trips Flask application factory."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from flask import Flask, current_app, g
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect

from .config import AppConfig, load_config
from .database import create_db_engine, init_schema
from .models import Account
from .repositories import AccountsRepository, TripsRepository

login_manager = LoginManager()
login_manager.login_view = "auth.auth"
login_manager.login_message = "Please sign in to continue."
login_manager.login_message_category = "info"
csrf = CSRFProtect()
limiter = Limiter(key_func=get_remote_address)


@login_manager.user_loader
def load_user(user_id: str) -> Optional[Account]:
    return get_accounts().get_account(user_id)


def create_app(config: AppConfig | None = None) -> Flask:
    """Build and configure the Trips Flask application instance.

    Args:
        config: Optional :class:`AppConfig` override. When ``None`` the helper
            loads configuration via :func:`load_config`, which honours the
            ``TRIPS_*`` environment variables.

    Returns:
        Flask: Initialised application. The SQLAlchemy engine is stored on
        ``app.config['DB_ENGINE']`` and the resolved :class:`AppConfig` on
        ``app.config['TRIPS_CONFIG']`` for downstream blueprints.

    External Dependencies:
        * Calls :func:`load_config` to resolve runtime settings.
        * Uses :func:`create_db_engine` and :func:`init_schema` to prepare the
          database schema on startup.
        * Registers :mod:`flask_login`, :mod:`flask_wtf` CSRF protection and
          :mod:`flask_limiter` on the instance.
    """

    app = Flask(__name__, instance_relative_config=True)
    app_config = config or load_config()
    Path(app.instance_path).mkdir(parents=True, exist_ok=True)
    app.config.update(
        SECRET_KEY=app_config.secret_key,
        TRIPS_CONFIG=app_config,
        RATELIMIT_STORAGE_URI="memory://",
        RATELIMIT_ENABLED=app_config.ratelimit_enabled,
    )
    engine = create_db_engine(app_config.database_url)
    init_schema(engine)
    app.config["DB_ENGINE"] = engine

    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)

    from .blueprints.auth import auth_bp
    from .blueprints.dashboard import dashboard_bp
    from .blueprints.pages import pages_bp
    from .blueprints.trips import trips_bp

    app.register_blueprint(pages_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(trips_bp)

    @app.template_filter("money")
    def money(value: Any) -> str:
        return f"{app_config.currency_symbol}{value or 0:,.2f}"

    @app.teardown_appcontext
    def teardown(_: Any) -> None:
        g.pop("trips_repo", None)
        g.pop("accounts_repo", None)

    @app.cli.command("init-db")
    def init_db_command() -> None:
        """Initialize the database tables."""

        init_schema(engine)
        import click

        click.echo("Database initialized.")

    return app


def get_repository() -> TripsRepository:
    """Return a trips repository cached on :mod:`flask.g` for the request."""

    if not hasattr(g, "trips_repo"):
        g.trips_repo = TripsRepository(current_app.config["DB_ENGINE"])
    return g.trips_repo


def get_accounts() -> AccountsRepository:
    """Return an accounts repository cached on :mod:`flask.g`."""

    if not hasattr(g, "accounts_repo"):
        g.accounts_repo = AccountsRepository(current_app.config["DB_ENGINE"])
    return g.accounts_repo


def app_config() -> AppConfig:
    return current_app.config["TRIPS_CONFIG"]


__all__ = ["create_app", "AppConfig", "get_repository", "get_accounts"]
