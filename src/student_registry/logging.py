"""Logging setup for Student Registry.

One rotating log file (plus optional console output) receives the
application's own loggers and the web server's. Every line passes through
``sanitize_for_log`` so tokens and keys from remote payloads never reach disk.
"""

from __future__ import annotations

import logging
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

from student_registry.config import LoggingConfig

DEFAULT_MAX_BYTES = 5 * 1024 * 1024  # 5MB
DEFAULT_BACKUP_COUNT = 3

ROOT_LOGGER = "student_registry"

# uvicorn loggers routed to the same handlers (log_config=None leaves them bare)
SERVER_LOGGERS = ("uvicorn.error", "uvicorn.access")

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# (pattern, replacement) pairs applied to every logged line
REDACTIONS = [
    (re.compile(r"Bearer [a-zA-Z0-9._-]+"), "Bearer [REDACTED]"),
    (re.compile(r"eyJ[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+"), "[JWT]"),
    (
        re.compile(r'"(access_token|refresh_token|password)"\s*:\s*"[^"]*"'),
        r'"\1": "[REDACTED]"',
    ),
    (re.compile(r"apikey=[a-zA-Z0-9._-]+"), "apikey=[REDACTED]"),
]


def sanitize_for_log(text: str) -> str:
    """Remove credentials from text before it is logged.

    Args:
        text: Text that may contain access tokens, refresh tokens or API keys.

    Returns:
        Sanitized text safe for logging.
    """
    for pattern, replacement in REDACTIONS:
        text = pattern.sub(replacement, text)
    return text


def truncate_output(output: str, max_length: int = 2000) -> str:
    """Truncate a remote response body for logging."""
    if len(output) <= max_length:
        return output
    return output[:max_length] + f"\n... [truncated, {len(output) - max_length} more chars]"


class RedactingFormatter(logging.Formatter):
    """Formatter that sanitizes the finished line, arguments and tracebacks included."""

    def format(self, record: logging.LogRecord) -> str:
        return sanitize_for_log(super().format(record))


def setup_logging(
    config: LoggingConfig | None = None,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> logging.Logger:
    """Set up logging with a rotating file handler.

    Args:
        config: Logging settings (directory, file, level, console). Environment
                overrides are already applied by ``load_settings``.
        max_bytes: Maximum size per log file before rotation. Defaults to 5MB.
        backup_count: Number of backup files to keep. Defaults to 3.

    Returns:
        The root student_registry logger.
    """
    if config is None:
        config = LoggingConfig()

    log_dir = Path(config.dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_level = getattr(logging, config.level.upper(), logging.INFO)

    formatter = RedactingFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    log_path = log_dir / config.file
    handlers: list[logging.Handler] = [
        RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    ]
    if config.console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)

    for name in (ROOT_LOGGER, *SERVER_LOGGERS):
        logger = logging.getLogger(name)
        logger.setLevel(log_level)
        # Remove existing handlers to avoid duplicates
        for old in list(logger.handlers):
            old.close()
        logger.handlers.clear()
        for handler in handlers:
            logger.addHandler(handler)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.info("Student Registry logging initialized (level=%s, file=%s)", config.level, log_path)
    return logger
