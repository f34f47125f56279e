"""
Centralized logging configuration for the add-on tracker.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from .config import LOGS_DIR


def setup_logging(log_file: str = "addon_tracker.log", level: int = logging.INFO,
                  logs_dir: Optional[Path] = None) -> None:
    """
    Set up centralized logging for the add-on tracker.

    Args:
        log_file: Name of the log file, or an absolute path
        level: Logging level
        logs_dir: Directory for bare log file names (defaults to LOGS_DIR)
    """
    # Avoid duplicate handlers if already configured
    if logging.getLogger().handlers:
        return

    logs_dir = logs_dir or LOGS_DIR
    log_path = Path(log_file)
    if not log_path.is_absolute():
        log_path = logs_dir / log_path.name
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Create formatter
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)

    file_handler = logging.FileHandler(str(log_path))
    file_handler.setFormatter(formatter)
    file_handler.setLevel(level)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    # Reduce noise from external libraries
    logging.getLogger('requests').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)
