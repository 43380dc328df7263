# backend/social_security/api/system.py
from __future__ import annotations

import os
from datetime import datetime
from zoneinfo import ZoneInfo

from fastapi import APIRouter
from sqlalchemy import text

from social_security import __version__
from social_security.db import DATABASE_URL, engine
from social_security.services.defaults import list_static_cities

router = APIRouter(tags=["ops"])


def _db_driver_from_url(url: str | None) -> str | None:
    if not url or "://" not in url:
        return None
    scheme = url.split("://", 1)[0]  # e.g., "postgresql+psycopg2"
    if "+" in scheme:
        return scheme.split("+", 1)[1]  # "psycopg2"
    return scheme  # fallback


@router.get("/health")
def health():
    """Liveness check with a lightweight DB probe and local time."""
    tz = os.getenv("TZ", "Asia/Shanghai")
    now_local = datetime.now(ZoneInfo(tz)).isoformat()

    db = {"status": "ok", "driver": _db_driver_from_url(DATABASE_URL)}
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        db["status"] = f"error: {type(e).__name__}"

    return {
        "status": "ok",
        "time": {"tz": tz, "now": now_local},
        "db": db,
        "static_cities": len(list_static_cities()),
    }


@router.get("/version")
def version():
    """Minimal runtime info; confirms DB driver for the UI."""
    return {
        "app": "Social Security Calculator Backend",
        "version": __version__,
        "db_driver": _db_driver_from_url(DATABASE_URL),
        "tz": os.getenv("TZ", "Asia/Shanghai"),
    }
