"""Logging for the back office.

One package logger (``backoffice``) receives every module logger through
propagation. It writes to the console and, when enabled, to a size-rotated
file under ``LOG_DIR``. Timestamps are ISO 8601.
"""

import logging
import logging.handlers
import os
from typing import Optional

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _parse_level(level: str) -> int:
    level_upper = level.upper()
    if level_upper not in LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of: {', '.join(LEVELS)}")
    return getattr(logging, level_upper)


def _rotating_handler(name: str, log_dir: str, max_bytes: int, backup_count: int) -> logging.Handler:
    os.makedirs(log_dir, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        os.path.join(log_dir, f"{name}.log"),
        maxBytes=max_bytes,
        backupCount=backup_count,
    )


def setup_logger(
    name: str,
    log_dir: str = "/var/log/backoffice",
    level: str = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    file_logging: bool = True,
    console_logging: bool = True,
    max_bytes: int = 10485760,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """Attach console and rotating file handlers to a logger.

    Calling it again for the same name only updates the level.

    Args:
        name: Logger name, also the log file's base name
        log_dir: Directory for the log file
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (any case)
        log_format: Record format, defaults to ``DEFAULT_FORMAT``
        date_format: Timestamp format, defaults to ISO 8601
        file_logging: Write to ``<log_dir>/<name>.log``
        console_logging: Write to stderr
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files to keep

    Returns:
        Configured logger instance

    Raises:
        ValueError: If the level is unknown
    """
    logger = logging.getLogger(name)
    logger.setLevel(_parse_level(level))

    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        log_format or DEFAULT_FORMAT,
        datefmt=date_format or DEFAULT_DATE_FORMAT,
    )

    handlers = []
    if file_logging:
        handlers.append(_rotating_handler(name, log_dir, max_bytes, backup_count))
    if console_logging:
        handlers.append(logging.StreamHandler())

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def configure_logging(settings) -> logging.Logger:
    """Configure the ``backoffice`` logger from application settings.

    SQL statement logging follows ``debug``.
    """
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )
    return setup_logger(
        "backoffice",
        log_dir=settings.log_dir,
        level=settings.log_level,
        file_logging=settings.log_to_file,
    )
