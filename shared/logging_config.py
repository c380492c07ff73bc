"""
Logging configuration for the mirror map tooling.

Provides one consistent setup for the CLI, the launcher script and tests.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO


def setup_logging(
    component_name: str,
    level=logging.INFO,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    stream: Optional[TextIO] = None,
):
    """
    Configure logging for a mirror map component.

    Args:
        component_name: Component identifier (e.g., 'mirrormap')
        level: Logging level name or number (DEBUG, INFO, WARNING, ...)
        log_file: Optional file path for log output
        format_string: Custom format string (default provided)
        stream: Stream for console output (default: stdout)
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    if format_string is None:
        format_string = f'[%(asctime)s] [{component_name.upper()}] %(levelname)s - %(message)s'

    # Reconfigure on every call so repeated CLI invocations in one process behave
    logging.basicConfig(
        level=level,
        format=format_string,
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[
            logging.StreamHandler(stream or sys.stdout)
        ],
        force=True,
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(format_string, datefmt='%Y-%m-%d %H:%M:%S'))
        logging.getLogger().addHandler(file_handler)

    logger = logging.getLogger(component_name)
    logger.debug(f"{component_name.upper()} logging initialized (level={logging.getLevelName(level)})")

    return logger
