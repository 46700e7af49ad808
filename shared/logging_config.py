"""
Logging configuration for the relay dashboard.

Provides consistent logging setup for the dashboard service and its scripts.
Level names follow the relay's own vocabulary (debug, info, warn, error).
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

_LEVEL_NAMES = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def resolve_level(level: Union[int, str, None]) -> int:
    """Map a level name or number to a logging level, defaulting to INFO."""
    if isinstance(level, int):
        return level
    if not level:
        return logging.INFO
    return _LEVEL_NAMES.get(str(level).strip().lower(), logging.INFO)


def setup_logging(
    component_name: str,
    level: Union[int, str, None] = logging.INFO,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
):
    """
    Configure logging for a dashboard component.

    Args:
        component_name: Component identifier (e.g., 'dashboard')
        level: Logging level, numeric or one of debug/info/warn/error
        log_file: Optional file path for log output
        format_string: Custom format string (default provided)
    """
    level = resolve_level(level)
    if format_string is None:
        format_string = f'[%(asctime)s] [{component_name.upper()}] %(levelname)s - %(message)s'

    # Configure root logger
    logging.basicConfig(
        level=level,
        format=format_string,
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(format_string, datefmt='%Y-%m-%d %H:%M:%S'))
        logging.getLogger().addHandler(file_handler)

    logger = logging.getLogger(component_name)
    logger.info(f"{component_name.upper()} logging initialized (level={logging.getLevelName(level)})")

    return logger
