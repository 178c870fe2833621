"""
Structured JSON Logging Module.

Provides a StructuredLogger factory that produces logging.Logger instances
configured with JSON-formatted output.  Every signup step logs the raw
provider / store error detail through this module while the UI only ever
sees classified messages.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, TextIO, Union


class JSONFormatter(logging.Formatter):
    """Formats log records as one JSON object per line.

    Each entry contains ``timestamp`` (ISO-8601, UTC), ``level``,
    ``logger_name`` and ``message``; fields passed through ``extra=``
    are nested under ``extra`` and tracebacks under ``exception``.
    """

    # Computed once; building a LogRecord per format() call is wasteful.
    _STANDARD_ATTRS: frozenset[str] = frozenset(
        logging.LogRecord(
            name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
        ).__dict__.keys()
    ) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Union[str, dict[str, str]]] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger_name": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, str] = {
            key: str(value)
            for key, value in record.__dict__.items()
            if key not in self._STANDARD_ATTRS
        }
        if extra_fields:
            entry["extra"] = extra_fields

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            entry["exception"] = record.exc_text

        return json.dumps(entry, ensure_ascii=False)


class StructuredLogger:
    """Injectable logger.

    Services receive an instance through ``__init__`` and call the
    usual ``info`` / ``warning`` / ``error`` methods::

        log = StructuredLogger(name="signup")
        log.warning("Upsert failed", extra={"code": "42501"})

    Parameters
    ----------
    name:
        Name of the underlying ``logging.Logger``.
    level:
        Minimum level for both handlers.
    stream:
        Console stream; defaults to ``sys.stdout``.
    log_file:
        Rotating log file path; ``False`` disables the file handler
        (used by the test-suite).
    """

    def __init__(
        self,
        name: str = "minara",
        level: int = logging.INFO,
        stream: Union[TextIO, None] = None,
        log_file: Union[str, bool, None] = None,
        max_bytes: Optional[int] = None,
        backup_count: Optional[int] = None,
    ) -> None:
        # Lazy import to avoid a circular dependency at module level
        from minara.config import get_config
        _cfg = get_config()

        self._logger: logging.Logger = logging.getLogger(name)
        self._logger.setLevel(level)

        resolved_max_bytes: int = max_bytes if max_bytes is not None else _cfg.LOG_MAX_BYTES
        resolved_backup_count: int = (
            backup_count if backup_count is not None else _cfg.LOG_BACKUP_COUNT
        )

        # Reusing a name must not stack duplicate handlers.
        if not self._logger.handlers:
            formatter = JSONFormatter()

            stream_handler = logging.StreamHandler(stream or sys.stdout)
            stream_handler.setLevel(level)
            stream_handler.setFormatter(formatter)
            self._logger.addHandler(stream_handler)

            if log_file is not False:
                resolved_log_file: str = log_file or _cfg.LOG_FILE
                self._attach_file_handler(
                    resolved_log_file,
                    resolved_max_bytes,
                    resolved_backup_count,
                    level,
                    formatter,
                )

    def _attach_file_handler(
        self,
        log_file: str,
        max_bytes: int,
        backup_count: int,
        level: int,
        formatter: logging.Formatter,
    ) -> None:
        """Add a rotating file handler, degrading to console-only on OS errors."""
        try:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                filename=str(log_path),
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            self._logger.addHandler(file_handler)
        except OSError as exc:
            self._logger.warning(
                "Could not create log file '%s': %s. "
                "Continuing with console logging only.",
                log_file,
                exc,
            )

    @property
    def logger(self) -> logging.Logger:
        """Access the underlying ``logging.Logger`` directly."""
        return self._logger

    def debug(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.error(msg, *args, **kwargs)

    def critical(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.critical(msg, *args, **kwargs)


def get_logger(name: str = "minara") -> StructuredLogger:
    """Create and return a ``StructuredLogger`` with the given *name*."""
    return StructuredLogger(name=name)
