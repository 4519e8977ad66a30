"""Logging setup for the bunson server."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_server_logging(
    level: int | str = logging.INFO,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure logging for the bunson namespace.

    Installs a stderr handler and, when log_file is given, a rotating file
    handler (max 5MB per file, 3 backup files). Calling this again replaces
    the previous handlers.

    Args:
        level: Logging level, as a number or a name such as "DEBUG".
        log_file: Optional path for a server log file. Parent directories
            are created.

    Returns:
        The configured "bunson" logger.

    Example:
        configure_server_logging("DEBUG", Path("logs/server.log"))
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level!r}")

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))

    bunson_logger = logging.getLogger("bunson")
    bunson_logger.setLevel(level)

    # Remove any existing handlers to avoid duplicates on reconfigure
    for handler in bunson_logger.handlers:
        handler.close()
    bunson_logger.handlers.clear()

    bunson_logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        bunson_logger.addHandler(file_handler)

    # Don't propagate to root logger
    bunson_logger.propagate = False

    logger.debug("Server logging configured (level=%s, file=%s)", level, log_file)
    return bunson_logger
