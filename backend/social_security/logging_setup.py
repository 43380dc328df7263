from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int | None = None) -> None:
    """Install one stream handler on the package logger (idempotent)."""
    raw = level if level is not None else os.getenv("LOG_LEVEL", "INFO")
    if isinstance(raw, str):
        raw = getattr(logging, raw.strip().upper(), logging.INFO)

    pkg_logger = logging.getLogger("social_security")
    pkg_logger.setLevel(raw)
    if not any(getattr(h, "_ss_handler", False) for h in pkg_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._ss_handler = True  # type: ignore[attr-defined]
        pkg_logger.addHandler(handler)
