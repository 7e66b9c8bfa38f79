"""
Logging configuration for the command line entry point.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from .config import LoggingConfig

LOG_FILE_NAME = "app.log"
MAX_LOG_BYTES = 1 * 1024 * 1024
LOG_BACKUP_COUNT = 10
FILE_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def configure_logging(config: LoggingConfig, console: Optional[Console] = None) -> logging.Logger:
    """
    Route application logs to the terminal and, when debug files are
    enabled, to ``<log_dir>/app.log`` rotated at 1 MiB with 10 backups.
    """
    root = logging.getLogger()
    root.setLevel(config.level.upper())

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    root.addHandler(
        RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
    )

    if config.write_debug_files:
        log_dir = Path(config.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        root.addHandler(file_handler)

    # Keep connection chatter out of the application log.
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return root
