from __future__ import annotations
import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional
from datetime import datetime, timezone

from matchmaker.domain import Event
from matchmaker.ports import EventBus
from matchmaker.services.settings import Settings

LOG_FILE_NAME = "matchmaker.log"


def _json_formatter(record: logging.LogRecord) -> str:
    base = {
        "level": record.levelname,
        "logger": record.name,
        "msg": record.getMessage(),
        "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
    }
    extra = getattr(record, "extra", None)
    if isinstance(extra, dict):
        base.update(extra)
    if record.exc_info:
        base["exc"] = logging.Formatter().formatException(record.exc_info)
    return json.dumps(base, ensure_ascii=False, default=str)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return _json_formatter(record)


def setup_logging(settings: Settings) -> logging.Logger:
    """
    Configure the ``matchmaker`` logger:
      - console (stderr)
      - {logs_dir}/matchmaker.log with rotation, only when ``log_to_file`` is set
    One JSON object per line, so the output is easy to grep and parse.
    """
    logger = logging.getLogger("matchmaker")
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    stream_h = logging.StreamHandler()
    stream_h.setFormatter(JsonFormatter())
    stream_h.setLevel(logger.level)
    logger.addHandler(stream_h)

    logfile: Path | None = None
    if settings.log_to_file:
        logs_dir = Path(settings.logs_dir)
        logs_dir.mkdir(parents=True, exist_ok=True)
        logfile = logs_dir / LOG_FILE_NAME
        file_h = RotatingFileHandler(logfile, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
        file_h.setFormatter(JsonFormatter())
        file_h.setLevel(logger.level)
        logger.addHandler(file_h)

    logger.propagate = False
    logger.info("logging.initialized", extra={"extra": {"logfile": str(logfile) if logfile else None}})
    return logger


def attach_event_logger(bus: EventBus, logger: Optional[logging.Logger] = None) -> None:
    """Log every event published on the bus."""
    base_logger = logger or logging.getLogger("matchmaker.events")

    def _handler(ev: Event) -> None:
        base_logger.info(
            "event",
            extra={
                "extra": {
                    "type": ev.type,
                    "source": ev.source,
                    "ts": ev.ts,
                    "payload": dict(ev.payload),
                }
            },
        )

    bus.subscribe("", _handler)
