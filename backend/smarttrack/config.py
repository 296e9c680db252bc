# backend/smarttrack/config.py
from __future__ import annotations
import os
from datetime import timedelta


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/smarttrack.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///smarttrack.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session cookie (staff/admin login)
    PERMANENT_SESSION_LIFETIME = timedelta(hours=2)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Stock policy (kg)
    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "200"))
    CRITICAL_STOCK_THRESHOLD = int(os.environ.get("CRITICAL_STOCK_THRESHOLD", "100"))
    STOCK_UPDATE_ATTEMPTS = int(os.environ.get("STOCK_UPDATE_ATTEMPTS", "3"))
    ALLOW_ANONYMOUS_STOCK_UPDATES = _env_bool("ALLOW_ANONYMOUS_STOCK_UPDATES")

    # Outbound email
    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL")
    MAIL_TRANSPORT = os.environ.get("MAIL_TRANSPORT", "log")  # log, memory, smtp, relay, brevo, resend
    MAIL_SENDER = os.environ.get("MAIL_SENDER", "noreply@smarttrack.local")
    MAIL_SENDER_NAME = os.environ.get("MAIL_SENDER_NAME", "SmartTrack System")
    MAIL_SERVER = os.environ.get("MAIL_SERVER", "localhost")
    MAIL_PORT = int(os.environ.get("MAIL_PORT", "25"))
    MAIL_USERNAME = os.environ.get("MAIL_USERNAME")
    MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD")
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS")
    MAIL_USE_SSL = _env_bool("MAIL_USE_SSL")
    MAIL_API_KEY = os.environ.get("MAIL_API_KEY")
    MAIL_API_URL = os.environ.get("MAIL_API_URL")
    MAIL_TIMEOUT = float(os.environ.get("MAIL_TIMEOUT", "10"))


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    MAIL_TRANSPORT = "memory"
    ADMIN_EMAIL = "admin@smarttrack.test"
    STOCK_UPDATE_ATTEMPTS = 3
