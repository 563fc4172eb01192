"""Single-line JSON logging for imagedrop.

Each record becomes one JSON object, for example::

    {"ts": "2026-10-18T12:00:00.123456+00:00", "level": "INFO",
     "logger": "imagedrop.orchestrator", "message": "attempt succeeded",
     "attempt": 3, "mime_type": "image/png", "width": 640, "height": 480}

Structured fields go in ``extra={"extra_fields": {...}}``::

    from imagedrop.observability import get_logger

    log = get_logger("imagedrop.probe")
    log.debug("header parsed", extra={"extra_fields": {"width": 2}})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any


class StructuredFormatter(logging.Formatter):
    """Render a log record as a JSON object.

    Always present: ``ts`` (UTC, ISO-8601), ``level``, ``logger`` and
    ``message``.  Entries from ``extra_fields`` are merged in at the top
    level; ``exception`` is added when the record has exc_info.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] | None = getattr(
            record, "extra_fields", None
        )
        if extra_fields is not None:
            log_entry.update(extra_fields)

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


# Names that already carry our handler; keeps get_logger idempotent.
_configured_loggers: set[str] = set()


def get_logger(
    name: str = "imagedrop",
    *,
    level: int | str = logging.DEBUG,
    stream: Any | None = None,
) -> logging.Logger:
    """Return a logger that writes :class:`StructuredFormatter` output.

    Parameters
    ----------
    name:
        Logger name, ``"imagedrop"`` by default.
    level:
        Level set on first configuration, as an ``int`` or a level name.
    stream:
        Handler stream; ``sys.stderr`` when omitted.

    Returns
    -------
    logging.Logger
        The configured logger.  A second call with the same *name* hands
        back the same logger without attaching another handler.
    """
    logger = logging.getLogger(name)

    if name not in _configured_loggers:
        resolved_level = (
            logging.getLevelName(level.upper())
            if isinstance(level, str)
            else level
        )
        logger.setLevel(resolved_level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.propagate = False

        _configured_loggers.add(name)

    return logger
