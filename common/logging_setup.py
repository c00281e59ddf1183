from __future__ import annotations

import json
import logging
import os
import sys
import time
from typing import Optional


class JsonFormatter(logging.Formatter):
    """
    Minimal JSON log formatter:
      { "t": 169, "lvl": "WARNING", "name": "catalog", "msg": "text", "extra": {...} }
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "t": int(time.time() * 1000),
            "lvl": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if hasattr(record, "extra") and isinstance(record.extra, dict):  # type: ignore[attr-defined]
            payload["extra"] = record.extra  # type: ignore[attr-defined]
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _level(name: str) -> int:
    lvl = getattr(logging, name.upper(), None)
    return lvl if isinstance(lvl, int) else logging.INFO


TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """
    Configure the root logger once.

    Level precedence: explicit `level`, env LOG_LEVEL, INFO.
    Format precedence: explicit `fmt`, env LOG_FORMAT, "json". Anything other
    than "json" selects a plain text line format.
    Once configured, only an explicit `level` still has an effect.
    """
    root = logging.getLogger()
    if getattr(root, "_catalog_configured", False):  # idempotent
        if level:
            root.setLevel(_level(level))
        return

    lvl = _level(level or os.environ.get("LOG_LEVEL") or "INFO")

    fmt_name = (fmt or os.environ.get("LOG_FORMAT") or "json").lower()
    handler = logging.StreamHandler(sys.stderr)
    if fmt_name == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(lvl)
    root._catalog_configured = True  # type: ignore[attr-defined]


def get_logger(name: str) -> logging.Logger:
    """Get a module logger; ensures root is configured."""
    setup_logging()
    return logging.getLogger(name)
