"""
Centralized logging configuration for Deep Research.

Structured JSON logs go to rotating files under LOG_DIR:
- app.log: INFO and above
- error.log: ERROR and above
- debug.log: everything, only when LOG_LEVEL=DEBUG

A human-readable stderr handler is attached when LOG_TO_CONSOLE=true.
Per-call context is passed as ``extra={"extra_fields": {...}}``.
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

CONSOLE_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"

# Loggers of libraries that are chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore")


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with ``extra_fields`` merged at top level."""

    def format(self, record: logging.LogRecord) -> str:
        """
        Serialize a log record.

        Args:
            record: The record emitted by a logger

        Returns:
            JSON text; values json cannot encode are stringified
        """
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        payload.update(getattr(record, "extra_fields", None) or {})
        return json.dumps(payload, default=str)


class LoggerConfig:
    """
    Process-wide logging setup, installed lazily on the first ``get_logger``.

    Settings are read from the environment at import time, so tests can point
    LOG_DIR at a temporary directory before anything imports this module.
    """

    LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_TO_CONSOLE = os.getenv("LOG_TO_CONSOLE", "false").lower() == "true"
    MAX_BYTES = 5 * 1024 * 1024  # 5MB per file
    BACKUP_COUNT = 3

    _initialized = False

    @classmethod
    def _file_handler(cls, filename: str, level: int) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            cls.LOG_DIR / filename,
            maxBytes=cls.MAX_BYTES,
            backupCount=cls.BACKUP_COUNT,
            encoding="utf-8",
        )
        handler.setLevel(level)
        handler.setFormatter(JsonFormatter())
        return handler

    @classmethod
    def setup_logging(cls) -> None:
        """Install handlers on the root logger. Later calls are no-ops."""
        if cls._initialized:
            return

        cls.LOG_DIR.mkdir(parents=True, exist_ok=True)

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, cls.LOG_LEVEL, logging.INFO))
        root_logger.handlers.clear()

        files = [("app.log", logging.INFO), ("error.log", logging.ERROR)]
        if cls.LOG_LEVEL == "DEBUG":
            files.append(("debug.log", logging.DEBUG))
        for filename, level in files:
            root_logger.addHandler(cls._file_handler(filename, level))

        if cls.LOG_TO_CONSOLE:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(logging.INFO)
            console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
            root_logger.addHandler(console_handler)

        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

        cls._initialized = True

        logging.getLogger(__name__).info(
            "Logging system initialized",
            extra={
                "extra_fields": {
                    "log_level": cls.LOG_LEVEL,
                    "log_dir": str(cls.LOG_DIR),
                    "log_files": [filename for filename, _ in files],
                    "console_logging": cls.LOG_TO_CONSOLE,
                }
            },
        )

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """
        Return the named logger, installing handlers first if needed.

        Args:
            name: Logger name, usually the calling module's ``__name__``

        Returns:
            A stdlib logger that propagates to the root handlers
        """
        if not cls._initialized:
            cls.setup_logging()
        return logging.getLogger(name)


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically ``__name__``)

    Returns:
        Logger writing JSON lines to the files under LOG_DIR

    Example:
        >>> from utils.logger import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Search started", extra={"extra_fields": {"source_id": "news_api"}})
    """
    return LoggerConfig.get_logger(name)
