# checkin_api/config.py
"""
Environment-backed settings.

Values are read at call time (not import time) so a running process picks up
a changed `.env` on restart and tests can monkeypatch `os.environ`.
"""
from __future__ import annotations

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


def database_url() -> str:
    return os.getenv("DATABASE_URL", "sqlite:///./checkin.db")


def sql_echo() -> bool:
    return _flag("SQL_ECHO")


def app_env() -> str:
    return os.getenv("APP_ENV", "development")


def log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()


def jwt_secret() -> str:
    secret = os.getenv("JWT_SECRET", "").strip()
    if not secret:
        raise RuntimeError("JWT_SECRET is not set")
    return secret


def cognito_webhook_secret() -> str:
    """Empty string means the webhook endpoints are disabled."""
    return os.getenv("COGNITO_WEBHOOK_SECRET", "").strip()


def cognito_ack_first() -> bool:
    """Respond to Cognito before touching the database (avoids retry-on-timeout)."""
    return _flag("COGNITO_ACK_FIRST", "true")


def upload_dir() -> str:
    return os.getenv("UPLOAD_DIR", "uploads")


def cors_origins() -> List[str]:
    defaults = [
        "http://localhost:3000", "http://127.0.0.1:3000",
        "http://localhost:5173", "http://127.0.0.1:5173",
    ]
    extra = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]
    return defaults + extra
