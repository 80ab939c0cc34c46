"""
Application configuration.
This module defines the configuration settings for the Flask application, including database connection, secret key,
procurement business constants and local preference storage. It uses environment variables for sensitive information
and defaults for development. In production, make sure to set the appropriate environment variables.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent


def _bool_env(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _int_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


class Config:
    """Base configuration shared by all environments."""

    # IMPORTANT: change this in production
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-change-me-please")

    # Database: SQLite for development (simple file in project folder)
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'suprimentos.db'}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # CSRF protection for mutating requests
    WTF_CSRF_ENABLED = _bool_env("WTF_CSRF_ENABLED", True)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Seed default sectors/users/statuses/form fields when the tables are empty
    AUTO_SEED = _bool_env("AUTO_SEED", True)

    # Client-local preferences (column widths, cached SLA thresholds)
    PREFERENCES_PATH = os.environ.get("PREFERENCES_PATH", str(BASE_DIR / "preferences.json"))

    # Visibility: sectors that see every request regardless of sector
    FULL_VISIBILITY_SECTORS = ("Gerente", "Diretor")

    # Terminal workflow state
    DELIVERED_STATUS = "Entregue"

    # Lead-time classification thresholds (days)
    SLA_EXCELLENT_DAYS = _int_env("SLA_EXCELLENT_DAYS", 5)
    SLA_GOOD_DAYS = _int_env("SLA_GOOD_DAYS", 10)

    # App UI name
    APP_NAME = "Gestão de Suprimentos"
