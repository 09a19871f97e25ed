# backend/checkin_api/api/system.py
from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from checkin_api import config
from checkin_api.db import engine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ops"])

APP_NAME = "Check-in API"


def _db_driver_from_url(url: str | None) -> str | None:
    if not url or "://" not in url:
        return None
    scheme = url.split("://", 1)[0]  # e.g., "postgresql+psycopg2"
    if "+" in scheme:
        return scheme.split("+", 1)[1]
    return scheme


def _status() -> dict:
    return {
        "ok": True,
        "name": APP_NAME,
        "env": config.app_env(),
        "time": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/")
def root():
    return _status()


@router.get("/api/health")
def health():
    """Liveness check with a lightweight DB probe."""
    db = {"status": "ok", "driver": _db_driver_from_url(config.database_url())}
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("health: database probe failed: %s", e)
        db["status"] = f"error: {type(e).__name__}"
    return {**_status(), "db": db}
