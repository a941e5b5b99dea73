"""Logging setup for host applications.

Library modules only call ``logging.getLogger(__name__)``. A host process
calls :func:`configure_logging` once at startup; every record then carries
the application name and the id of the calculation that produced it.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Iterator, Optional

from delegacje.config import Settings, get_settings

calculation_id_ctx: ContextVar[Optional[str]] = ContextVar("calculation_id", default=None)

TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(app)s %(name)s [%(calc_id)s] %(message)s"


class CalculationIdFilter(logging.Filter):
    """Stamps ``app`` and ``calc_id`` on each record passing the handler."""

    def __init__(self, app_name: str = "-"):
        super().__init__()
        self.app_name = app_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.app = self.app_name
        record.calc_id = calculation_id_ctx.get() or "-"
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload = {
            "ts": created.isoformat(timespec="milliseconds"),
            "app": getattr(record, "app", "-"),
            "level": record.levelname,
            "logger": record.name,
            "calc_id": getattr(record, "calc_id", "-"),
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(settings: Optional[Settings] = None) -> logging.Handler:
    """Replace the root handlers with one stdout handler built from settings."""
    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else logging.getLevelName(settings.log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(CalculationIdFilter(settings.app_name))
    handler.setFormatter(JsonFormatter() if settings.log_json else logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(handler)
    return handler


@contextmanager
def calculation_context(calc_id: Optional[str] = None) -> Iterator[str]:
    """Tag every log record emitted inside the block with one correlation id."""
    token = calculation_id_ctx.set(calc_id or uuid.uuid4().hex)
    try:
        yield calculation_id_ctx.get()
    finally:
        calculation_id_ctx.reset(token)
