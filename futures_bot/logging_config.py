"""
Logging configuration for the futures bot helpers.

Every module logs to the ``futures_bot`` logger.  ``setup_logging`` attaches
two handlers to it:

  - Console : INFO (or DEBUG with ``verbose``), concise format
  - File    : DEBUG-level, detailed format, rotated at 5 MB x 5 backups

Library users who never call ``setup_logging`` get no output beyond what
their own root logger is configured to show.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

LOGGER_NAME = "futures_bot"
LOG_DIR = Path(os.getenv("FUTURES_BOT_LOG_DIR", Path.cwd() / "logs"))

_MAX_BYTES = 5 * 1024 * 1024
_BACKUP_COUNT = 5

_FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s.%(funcName)s:%(lineno)d | %(message)s"
_CONSOLE_FORMAT = "%(levelname)-8s | %(message)s"

logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())


def setup_logging(
    verbose: bool = False,
    log_dir: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Configure and return the ``futures_bot`` logger.

    Parameters
    ----------
    verbose : bool
        Show DEBUG records (API requests/responses) on the console too.
    log_dir : str or Path, optional
        Directory for ``futures_bot.log``; defaults to ``./logs`` or
        ``$FUTURES_BOT_LOG_DIR``.  The file always records DEBUG.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    console_level = logging.DEBUG if verbose else logging.INFO

    # Repeated calls only adjust the console level
    configured = [h for h in logger.handlers if not isinstance(h, logging.NullHandler)]
    if configured:
        for handler in configured:
            if not isinstance(handler, RotatingFileHandler):
                handler.setLevel(console_level)
        return logger

    directory = Path(log_dir) if log_dir is not None else LOG_DIR
    directory.mkdir(parents=True, exist_ok=True)
    log_file = directory / "futures_bot.log"

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)
    # Connection-pool chatter would drown the signed-request debug lines
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    logger.debug("Logging initialised - file: %s", log_file)
    return logger
