"""Loguru setup: stdout, optional rotating file, Slack alerts for errors."""

import logging
import sys
from pathlib import Path
from typing import Any, Optional

import httpx
from loguru import logger

from app.core.config import settings

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {extra[name]}:{function}:{line} | {message}"
ROOT_NAME = "pullview"
ALERT_LEVEL = "ERROR"

LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}
LEVEL_ALIASES = {"WARN": "WARNING", "FATAL": "CRITICAL"}

_configured = False


class InterceptHandler(logging.Handler):
    """Route stdlib records (uvicorn, alembic, sqlalchemy) into Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_name == "emit":
            frame = frame.f_back
            depth += 1

        logger.bind(name=record.name).opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def normalize_level(raw: Optional[str]) -> str:
    level = (raw or "INFO").strip().upper()
    level = LEVEL_ALIASES.get(level, level)
    return level if level in LEVELS else "INFO"


def slack_text(record: dict) -> str:
    name = record["extra"].get("name") or ROOT_NAME
    return f"[{record['level'].name}] {name}:{record['function']}:{record['line']}\n{record['message']}"


def _slack_sink(message: Any) -> None:
    if not settings.SLACK_WEBHOOK_URL:
        return
    try:
        httpx.post(settings.SLACK_WEBHOOK_URL, json={"text": slack_text(message.record)}, timeout=5.0)
    except httpx.HTTPError:
        # logging here would feed back into this sink
        pass


def configure_logging() -> None:
    global _configured
    if _configured:
        return
    _configured = True

    level = normalize_level(settings.effective_log_level)
    common = {"level": level, "format": LOG_FORMAT, "backtrace": False, "diagnose": False}

    logger.remove()
    logger.configure(extra={"name": ROOT_NAME})
    logger.add(sys.stdout, **common)

    if settings.LOG_DIR:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(log_dir / "app.log", rotation="10 MB", retention="14 days", enqueue=True, **common)

    if settings.SLACK_WEBHOOK_URL:
        logger.add(_slack_sink, level=ALERT_LEVEL, enqueue=True)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        std = logging.getLogger(name)
        std.handlers = [InterceptHandler()]
        std.propagate = False


def get_logger(name: str):
    return logger.bind(name=name)


configure_logging()
