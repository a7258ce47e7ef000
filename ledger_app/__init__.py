"""
ledger_app/__init__.py

Flask application factory for the Supplier Ledger.

Requirements:
- Users sign up, wait for super-admin approval, then keep a ledger per
  supplier (received items vs. payments) with balances and PDF reports.
- UI is never trusted; server-side access control lives in access.py.

Navigation:
- "Suppliers" for every logged-in user
- "Admin Panel" for super admins only
Items are filtered for visibility, BUT all permissions are enforced server-side.
"""

from __future__ import annotations

import logging

import click
from flask import Flask, redirect, render_template, url_for
from flask_login import current_user

from .access import approved_session_guard, is_super_admin
from .clock import EXTENSION_KEY, Clock
from .errors import AccessDeniedError, NotFoundOrForbidden, RemoteUnavailableError
from .extensions import csrf, db, login_manager, migrate
from .ledger import details_preview, format_date, format_money
from .models import User

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# -------------------------------------------------------------------
# NAVIGATION STRUCTURE (UI visibility only; security enforced in routes)
# -------------------------------------------------------------------

NAV_ITEMS = [
    {"label": "Suppliers", "endpoint": "suppliers.list_suppliers", "admin_only": False},
    {"label": "Admin Panel", "endpoint": "admin.panel", "admin_only": True},
]


def _configure_logging(app: Flask) -> None:
    """Console logging at LOG_LEVEL; left alone if the host already configured logging."""
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger(__name__).setLevel(level)


def create_app(config_object: str | object = "config.Config", clock: Clock | None = None) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    _configure_logging(app)
    app.extensions[EXTENSION_KEY] = clock or Clock()

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    login_manager.init_app(app)
    login_manager.login_view = "auth.login"
    login_manager.login_message_category = "info"

    @login_manager.user_loader
    def load_user(user_id: str) -> User | None:
        """Load user for Flask-Login (None once the account was rejected)."""
        try:
            return db.session.get(User, int(user_id))
        except ValueError:
            return None

    # ----------------------------------------------------------------------
    # GLOBAL SECURITY NET: forced logout of unapproved sessions
    # ----------------------------------------------------------------------
    @app.before_request
    def _approval_guard_hook():
        return approved_session_guard()

    # ----------------------------------------------------------------------
    # Blueprints
    # ----------------------------------------------------------------------
    from .blueprints.auth import auth_bp
    from .blueprints.suppliers import suppliers_bp
    from .blueprints.admin import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(suppliers_bp)
    app.register_blueprint(admin_bp)

    # ----------------------------------------------------------------------
    # Error handlers
    # ----------------------------------------------------------------------
    @app.errorhandler(NotFoundOrForbidden)
    def _not_found_or_forbidden(exc):
        return render_template("errors/404.html", message=exc.message), 404

    @app.errorhandler(AccessDeniedError)
    def _access_denied(exc):
        return render_template("errors/403.html", message=exc.message), 403

    @app.errorhandler(RemoteUnavailableError)
    def _remote_unavailable(exc):
        return render_template("errors/503.html", message=exc.message), 503

    # ----------------------------------------------------------------------
    # Template helpers
    # ----------------------------------------------------------------------
    @app.template_filter("money")
    def _money_filter(value):
        return format_money(value, app.config.get("CURRENCY_LABEL", ""))

    @app.template_filter("human_date")
    def _date_filter(value):
        return format_date(value)

    @app.context_processor
    def inject_globals():
        """
        Inject navigation filtered by user.

        SECURITY NOTE:
        - This only filters visibility. Routes enforce permissions.
        """
        nav_items = []
        if current_user.is_authenticated:
            admin = is_super_admin(current_user)
            nav_items = [item for item in NAV_ITEMS if admin or not item["admin_only"]]

        return {
            "config": app.config,
            "nav_items": nav_items,
            "details_preview": details_preview,
        }

    # ----------------------------------------------------------------------
    # CLI
    # ----------------------------------------------------------------------
    @app.cli.command("init-db")
    def init_db_command():
        """Create all tables (development; use `flask db upgrade` in production)."""
        db.create_all()
        click.echo("Database tables created.")

    # ----------------------------------------------------------------------
    # Home
    # ----------------------------------------------------------------------
    @app.route("/")
    def index():
        """Home: admin panel, supplier list or login."""
        if not current_user.is_authenticated:
            return redirect(url_for("auth.login"))
        if is_super_admin(current_user):
            return redirect(url_for("admin.panel"))
        return redirect(url_for("suppliers.list_suppliers"))

    return app
