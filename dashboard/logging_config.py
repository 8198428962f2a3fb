"""
logging_config.py - Centralized logging configuration for the dashboard

Sets up Loguru as the single logging backend. Intercepts Python's stdlib
logging module so library loggers (httpx, httpcore) route through Loguru
with the same format and level.

Business Rules:
- All logs go through Loguru (no direct print() for diagnostics)
- JSON format in production for machine parsing
- Human-readable format in development
- Logs go to stderr so CLI output on stdout stays clean
- Optional log file: 20MB rotation, 7-day retention

Called by: dashboard/__main__.py (on startup)
Depends on: dashboard/config.py (log_level, app_env, log_file)
"""

import logging
import sys

from loguru import logger

from .config import get_settings


def setup_logging(level: str | None = None) -> None:
    """Configure Loguru and intercept stdlib logging.

    Call once at startup. ``level`` overrides settings.log_level.
    """
    settings = get_settings()
    logger.remove()

    log_level = (level or settings.log_level).upper()

    if settings.is_production:
        logger.add(
            sys.stderr,
            level=log_level,
            format="{message}",
            serialize=True,
        )
    else:
        logger.add(
            sys.stderr,
            level=log_level,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "{message}"
            ),
            colorize=True,
        )

    if settings.log_file:
        logger.add(
            settings.log_file,
            level=log_level,
            rotation="20 MB",
            retention="7 days",
            compression="gz",
            serialize=True,
        )

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    # Quiet noisy third-party loggers
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger.debug("Logging configured level={} production={}", log_level, settings.is_production)


class _InterceptHandler(logging.Handler):
    """Route stdlib logging records to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip frames from stdlib logging internals
        frame, depth = logging.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )
