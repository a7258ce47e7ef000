"""
Application configuration.
This module defines the configuration settings for the Flask application, including database connection, secret key,
the super-admin allow-list and ledger limits. It uses environment variables for sensitive information and defaults
for development. In production, make sure to set the appropriate environment variables and secure the secret key.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent


def _split_emails(raw: str | None) -> frozenset[str]:
    """Parse a comma separated e-mail list into a normalized set."""
    if not raw:
        return frozenset()
    return frozenset(part.strip().lower() for part in raw.split(",") if part.strip())


class Config:
    """Base configuration shared by all environments."""

    # IMPORTANT: change this in production
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-change-me-please")

    # Database: SQLite for development (simple file in project folder)
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'ledger.db'}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # CSRF protection for forms
    WTF_CSRF_ENABLED = True

    # Identities allowed to approve users and enable/disable any supplier
    SUPER_ADMIN_EMAILS = _split_emails(os.environ.get("SUPER_ADMIN_EMAILS"))

    PASSWORD_MIN_LENGTH = 6
    DETAILS_MAX_LENGTH = 3000

    # Prefix printed in front of amounts (UI and PDF report)
    CURRENCY_LABEL = os.environ.get("CURRENCY_LABEL", "RS")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # App UI name (used in templates)
    APP_NAME = "Supplier Ledger"


class TestConfig(Config):
    """In-memory database, no CSRF. Used by the test-suite."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    WTF_CSRF_ENABLED = False
    SUPER_ADMIN_EMAILS = frozenset({"admin@example.com"})
    LOG_LEVEL = "WARNING"
