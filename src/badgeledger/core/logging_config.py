"""
Structured JSON logging for badgeledger.

Every module logs through ``logging.getLogger(__name__)`` and passes an
``event`` name plus context in ``extra``; those keys become top-level JSON
fields. ``setup_logging`` attaches the handlers to the package root logger
once, so library modules never configure logging themselves.

    from badgeledger.core.logging_config import configure_from_settings
    configure_from_settings(Settings.from_env())
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pythonjsonlogger import jsonlogger

if TYPE_CHECKING:
    from badgeledger.core.config import Settings

# Context keys holding key material or full credentials
REDACTED_FIELDS = frozenset({"private_key", "signature", "owner_key", "player_key"})
REDACTED = "[REDACTED]"

DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 5


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key: REDACTED if key in REDACTED_FIELDS else _redact(item)
            for key, item in value.items()
        }
    return value


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter that stamps each record with the service and network.

    Key material passed in ``extra`` by mistake is replaced with
    ``[REDACTED]``, including inside nested ``details`` dicts.
    """

    def __init__(
        self,
        fmt: str = "%(timestamp)s %(level)s %(name)s %(message)s",
        environment: Optional[str] = None,
        service_name: str = "badgeledger",
    ):
        super().__init__(fmt=fmt)
        self.environment = environment or "testnet"
        self.service_name = service_name

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.fromtimestamp(record.created, timezone.utc).isoformat()
        if not log_record.get("level"):
            log_record["level"] = record.levelname.lower()

        log_record["service"] = self.service_name
        log_record["environment"] = self.environment
        log_record["source"] = f"{record.module}:{record.funcName}:{record.lineno}"

        for key, value in list(log_record.items()):
            log_record[key] = REDACTED if key in REDACTED_FIELDS else _redact(value)


def _build_handlers(
    formatter: logging.Formatter,
    log_file: Optional[str],
    enable_console: bool,
    max_bytes: int,
    backup_count: int,
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if enable_console:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                filename=log_file, maxBytes=max_bytes, backupCount=backup_count
            )
        )
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_logging(
    name: str = "badgeledger",
    log_file: Optional[str] = None,
    level: str = "INFO",
    environment: str = "testnet",
    enable_console: bool = True,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> logging.Logger:
    """
    Replace the handlers on ``name`` with JSON console and file handlers.

    Args:
        name: Logger to configure; the package root covers every module
        log_file: Rotating JSON log file (optional)
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        environment: Network the process runs against
        enable_console: Also log to stderr
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files to keep

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level.upper())
    logger.handlers = []

    formatter = CustomJsonFormatter(environment=environment, service_name=name.split(".")[0])
    file_error: Optional[OSError] = None
    try:
        handlers = _build_handlers(formatter, log_file, enable_console, max_bytes, backup_count)
    except OSError as e:
        file_error = e
        handlers = _build_handlers(formatter, None, enable_console, max_bytes, backup_count)

    for handler in handlers:
        logger.addHandler(handler)

    if file_error is not None:
        logger.warning(
            "Could not open log file %s: %s",
            log_file,
            file_error,
            extra={"event": "logging.file_handler_failed"},
        )
    return logger


def configure_from_settings(settings: "Settings") -> logging.Logger:
    """Configure the package logger from runtime settings."""
    return setup_logging(
        name="badgeledger",
        log_file=settings.log_file or None,
        level=settings.log_level,
        environment=settings.network.value,
    )
