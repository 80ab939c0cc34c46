"""
suprimentos/__init__.py

Flask application factory for the procurement request dashboard (Gestão de Suprimentos).

- Serves a JSON API to the single-page dashboard; no markup is rendered here.
- All table access goes through TableStore; screens read the cached collections of the
  app's Workspace, kept fresh by change notifications.
- UI is never trusted; visibility and role checks are enforced server-side.
"""

from __future__ import annotations

import logging

import click
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .collections import Workspace
from .errors import AppError
from .extensions import csrf, db, login_manager, migrate
from .log import configure_logging
from .models import User
from .preferences import Preferences
from .realtime import ChangeFeed
from .store import TableStore

logger = logging.getLogger(__name__)


def create_app(config_object="config.Config") -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    configure_logging(app)

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id: str) -> User | None:
        """Load user for Flask-Login."""
        try:
            return db.session.get(User, int(user_id))
        except ValueError:
            return None

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "unauthorized", "message": "Faça login para continuar."}), 401

    # ----------------------------------------------------------------------
    # Record store, change feed, cached collections, local preferences
    # ----------------------------------------------------------------------
    store = TableStore(ChangeFeed())
    app.extensions["suprimentos.store"] = store
    app.extensions["suprimentos.workspace"] = Workspace(store, auto_seed=app.config.get("AUTO_SEED", True))
    app.extensions["suprimentos.preferences"] = Preferences.load(app.config["PREFERENCES_PATH"])

    # ----------------------------------------------------------------------
    # Errors -> JSON
    # ----------------------------------------------------------------------
    @app.errorhandler(AppError)
    def handle_app_error(exc: AppError):
        level = logging.ERROR if exc.critical else logging.WARNING
        logger.log(level, "app_error", extra={"code": exc.code, "status": exc.http_status})
        return jsonify(exc.to_payload()), exc.http_status

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"error": exc.name.lower().replace(" ", "_"), "message": exc.description}), exc.code

    # ----------------------------------------------------------------------
    # Blueprints
    # ----------------------------------------------------------------------
    from .blueprints.admin import admin_bp
    from .blueprints.auth import auth_bp
    from .blueprints.dashboard import dashboard_bp
    from .blueprints.pricemaps import pricemaps_bp
    from .blueprints.reports import reports_bp
    from .blueprints.requests import requests_bp
    from .blueprints.settings import settings_bp
    from .blueprints.setup import setup_bp
    from .blueprints.suppliers import suppliers_bp
    from .blueprints.thermal import thermal_bp

    for blueprint in (
        auth_bp,
        setup_bp,
        dashboard_bp,
        requests_bp,
        settings_bp,
        admin_bp,
        suppliers_bp,
        pricemaps_bp,
        thermal_bp,
        reports_bp,
    ):
        app.register_blueprint(blueprint)

    # ----------------------------------------------------------------------
    # CLI
    # ----------------------------------------------------------------------
    @app.cli.command("init-db")
    def init_db_command():
        """Create missing tables and seed default sectors, users, statuses and form fields."""
        from .schema import create_tables

        create_tables()
        status = app.extensions["suprimentos.workspace"].load_all()
        click.echo(f"Database ready: {status['ready']}")

    @app.cli.command("setup-script")
    def setup_script_command():
        """Print the SQL setup/repair script."""
        from .schema import setup_script

        click.echo(setup_script())

    @app.route("/")
    def index():
        return jsonify({"app": app.config.get("APP_NAME"), "status": "ok"})

    return app
