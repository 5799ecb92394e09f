"""
Logging Configuration
=====================
Centralized logging setup for the gap analyzer.

Features:
- Console and file logging
- Log rotation
- Separate error log
- Structured log format
"""

import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional

# Import from parent
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import DIRS, LOG_LEVEL, LOG_FORMAT, LOG_DATE_FORMAT, LOG_MAX_BYTES, LOG_BACKUP_COUNT

ROOT_LOGGER_NAME = "gap_analyzer"

# Package loggers (logging.getLogger(__name__)) that should share the handlers
PACKAGE_LOGGERS = ("core", "research", "data", "utils", "observability", "scripts")


def _level(level: str) -> int:
    value = getattr(logging, str(level).upper(), None)
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def setup_logging(
    name: str = ROOT_LOGGER_NAME,
    level: Optional[str] = None,
    log_to_file: bool = True,
    log_to_console: bool = True,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    Set up logging for the gap analyzer.

    Args:
        name: Logger name (also the log file stem)
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_to_file: Whether to log to file
        log_to_console: Whether to log to console
        log_dir: Directory for log files (default: DIRS["logs"])

    Returns:
        Configured logger
    """
    level = level or LOG_LEVEL
    numeric_level = _level(level)

    # Create logger
    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)

    # Remove existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Create formatter
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    # Console handler
    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    # File handler
    if log_to_file:
        log_dir = log_dir or DIRS.get("logs")
        if log_dir:
            log_dir.mkdir(parents=True, exist_ok=True)

            # Main log file (rotating)
            file_handler = RotatingFileHandler(
                log_dir / f"{name}.log",
                maxBytes=LOG_MAX_BYTES,
                backupCount=LOG_BACKUP_COUNT
            )
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

            # Error log file (separate)
            error_handler = RotatingFileHandler(
                log_dir / f"{name}_errors.log",
                maxBytes=LOG_MAX_BYTES,
                backupCount=LOG_BACKUP_COUNT
            )
            error_handler.setLevel(logging.ERROR)
            error_handler.setFormatter(formatter)
            logger.addHandler(error_handler)

    # Module loggers are named after their package; route them here too
    for package in PACKAGE_LOGGERS:
        package_logger = logging.getLogger(package)
        package_logger.setLevel(numeric_level)
        package_logger.propagate = False
        package_logger.handlers = list(logger.handlers)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific component.

    Args:
        name: Component name (e.g., 'dashboard')

    Returns:
        Logger instance
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


if __name__ == "__main__":
    # Test logging setup
    logger = setup_logging(level="DEBUG")

    print("Testing logging...")

    logger.debug("This is a debug message")
    logger.info("This is an info message")
    logger.warning("This is a warning message")
    logger.error("This is an error message")

    print("\nLog files created in:", DIRS.get("logs"))
