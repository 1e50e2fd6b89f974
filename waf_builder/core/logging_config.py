"""
Logging configuration for waf_builder.
"""

import logging
import sys
from typing import Optional


# Color codes for console output
class LogColors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    GRAY = "\033[90m"


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.colors = {
            logging.DEBUG: LogColors.GRAY,
            logging.INFO: LogColors.BLUE,
            logging.WARNING: LogColors.YELLOW,
            logging.ERROR: LogColors.RED,
            logging.CRITICAL: LogColors.RED + LogColors.BOLD,
        }

    def format(self, record):
        levelname = record.levelname
        if record.levelno in self.colors:
            record.levelname = (
                f"{self.colors[record.levelno]}{levelname}{LogColors.RESET}"
            )
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def setup_logging(verbosity: int = 0, use_colors: bool = True) -> None:
    """
    Setup logging configuration based on verbosity level.

    Args:
        verbosity: Verbosity level (0-2)
            0: Only show warnings and errors
            1: Show INFO messages from waf_builder (-v)
            2: Show DEBUG messages from waf_builder, including priority
               assignment and capacity accounting (-vv)
        use_colors: Whether to use colored output
    """
    if verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    fmt = "%(levelname)s: %(message)s"
    if use_colors and sys.stderr.isatty():
        formatter: logging.Formatter = ColoredFormatter(fmt=fmt, datefmt="%H:%M:%S")
    else:
        formatter = logging.Formatter(fmt=fmt, datefmt="%H:%M:%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    logging.getLogger("waf_builder").setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the waf_builder namespace.

    Args:
        name: Module name (usually __name__)

    Returns:
        Configured logger instance
    """
    if not name.startswith("waf_builder"):
        if name == "__main__":
            name = "waf_builder.cli"
        elif "." not in name:
            name = f"waf_builder.{name}"

    return logging.getLogger(name)


def log_success(message: str, logger: Optional[logging.Logger] = None) -> None:
    """Log a success message."""
    if logger is None:
        logger = get_logger("waf_builder")
    logger.info(f"✓ {message}")


def log_error(message: str, logger: Optional[logging.Logger] = None) -> None:
    """Log an error message."""
    if logger is None:
        logger = get_logger("waf_builder")
    logger.error(f"✗ {message}")


def log_warning(message: str, logger: Optional[logging.Logger] = None) -> None:
    """Log a warning message."""
    if logger is None:
        logger = get_logger("waf_builder")
    logger.warning(f"⚠ {message}")

