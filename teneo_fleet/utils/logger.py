# Logger - Centralized Logging System
# Singleton logger registry with colored console output

"""
Logger Module

Responsibilities:
- Setup centralized logging with singleton pattern
- Configure log levels (adds a SUCCESS level between INFO and WARNING)
- Configure log handlers (colored console, rotating file)
- Log formatting
- Prevent duplicate handler registration
"""

import logging
import re
import sys
import atexit
from pathlib import Path
from logging.handlers import RotatingFileHandler

from colorama import Fore, Style, just_fix_windows_console

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

LEVEL_COLORS = {
    logging.DEBUG: Fore.WHITE,
    logging.INFO: Fore.CYAN,
    SUCCESS: Fore.GREEN,
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.RED + Style.BRIGHT,
}

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")

# Global registry to track configured loggers
_configured_loggers = {}

# One rotating handler per file, shared by every logger writing to it
_file_handlers = {}


class ColorFormatter(logging.Formatter):
    """Console formatter that colors the level name"""

    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelno, "")
        original = record.levelname
        record.levelname = f"{color}{original}{Style.RESET_ALL}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


class PlainFormatter(logging.Formatter):
    """File formatter that strips ANSI color codes from the message"""

    def format(self, record: logging.LogRecord) -> str:
        return ANSI_ESCAPE.sub("", super().format(record))


def setup_logger(name: str = "teneo_fleet", level: str = "INFO", log_file: str = None):
    """
    Setup logger with console and file handlers (singleton pattern)

    Returns the existing logger if it was already configured so repeated
    calls never stack duplicate handlers.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, SUCCESS, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path

    Returns:
        Configured logger instance (existing or new)
    """
    if name in _configured_loggers:
        return _configured_loggers[name]

    logger = logging.getLogger(name)

    if logger.handlers:
        _configured_loggers[name] = logger
        return logger

    just_fix_windows_console()

    level_value = logging.getLevelName(level.upper())
    logger.setLevel(level_value if isinstance(level_value, int) else logging.INFO)
    logger.propagate = False  # Prevent propagation to root logger

    datefmt = '%Y-%m-%d %H:%M:%S'

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(
        ColorFormatter('%(asctime)s [%(levelname)s] %(message)s', datefmt=datefmt)
    )
    console_handler.setLevel(logging.INFO)
    logger.addHandler(console_handler)

    # File handler with rotation (if specified)
    if log_file:
        log_path = Path(log_file).resolve()
        file_handler = _file_handlers.get(log_path)
        if file_handler is None:
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = RotatingFileHandler(
                log_path,
                maxBytes=10485760,  # 10MB
                backupCount=5,
                encoding='utf-8'
            )
            file_handler.setFormatter(
                PlainFormatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s', datefmt=datefmt)
            )
            file_handler.setLevel(logging.DEBUG)  # File gets all levels
            _file_handlers[log_path] = file_handler
        logger.addHandler(file_handler)

    def cleanup_handlers():
        """Close all handlers properly to prevent resource leaks."""
        for handler in logger.handlers[:]:
            try:
                handler.close()
                logger.removeHandler(handler)
            except (OSError, ValueError):
                pass  # Stream already gone at interpreter exit

    atexit.register(cleanup_handlers)

    _configured_loggers[name] = logger

    return logger


def log_success(logger: logging.Logger, message: str):
    """Log a message at the SUCCESS level"""
    logger.log(SUCCESS, message)
