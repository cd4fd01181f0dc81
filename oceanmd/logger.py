"""
Logging setup for the command-line tool.

Library modules log to children of the ``oceanmd`` logger; this module
attaches the handlers.
"""

import logging
import sys

LOGGER_NAME = "oceanmd"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def setup_logger(level=logging.WARNING, log_file: str = None) -> logging.Logger:
    """
    Configure the ``oceanmd`` logger.

    Console output goes to stderr at ``level``; with ``log_file`` everything
    down to DEBUG is also written to that file.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file else level)
    logger.propagate = False

    # Avoid adding duplicate handlers
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
