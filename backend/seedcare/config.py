# backend/seedcare/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/seedcare.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///seedcare.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Customer-facing links (complaint tracking page)
    PUBLIC_BASE_URL = os.environ.get("PUBLIC_BASE_URL", "http://localhost:3000")

    # Outbound notifications are off unless explicitly enabled
    ENABLE_EMAIL_NOTIFICATIONS = _env_flag("ENABLE_EMAIL_NOTIFICATIONS")
    ENABLE_WHATSAPP_NOTIFICATIONS = _env_flag("ENABLE_WHATSAPP_NOTIFICATIONS")
    NOTIFICATION_TIMEOUT_SECONDS = float(os.environ.get("NOTIFICATION_TIMEOUT_SECONDS", "5"))

    RESEND_API_KEY = os.environ.get("RESEND_API_KEY")
    RESEND_API_URL = os.environ.get("RESEND_API_URL", "https://api.resend.com/emails")
    RESEND_FROM_EMAIL = os.environ.get("RESEND_FROM_EMAIL", "noreply@advantaindonesia.com")

    FONNTE_API_TOKEN = os.environ.get("FONNTE_API_TOKEN")
    FONNTE_API_URL = os.environ.get("FONNTE_API_URL", "https://api.fonnte.com/send")
    WHATSAPP_COUNTRY_CODE = os.environ.get("WHATSAPP_COUNTRY_CODE", "62")

    # Complaint number allocation (collision retry budget)
    COMPLAINT_NUMBER_MAX_ATTEMPTS = int(os.environ.get("COMPLAINT_NUMBER_MAX_ATTEMPTS", "10"))
    COMPLAINT_NUMBER_BACKOFF_MIN = 0.05
    COMPLAINT_NUMBER_BACKOFF_MAX = 0.15

    ANALYTICS_DEFAULT_PERIOD_DAYS = int(os.environ.get("ANALYTICS_DEFAULT_PERIOD_DAYS", "30"))
