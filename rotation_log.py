"""Logging utilities."""

import logging
import sys
from logging.handlers import RotatingFileHandler

import rotation_config as config

# the logger format used
LOG_FMT = "LVL: %(levelname)s | FILE PATH: %(pathname)s | FUN: %(funcName)s | msg: %(message)s | ln#:%(lineno)d"


def setup_logger(logger_name: str) -> logging.Logger:
    """Set up a logger for a python module.

    Sets up a console handler and, when ``LOG_FILE`` is configured, a
    rotating file handler.

    Parameters
    ----------
    logger_name : str
        The name for the logger, __name__ is idiomatic

    Returns
    -------
    logging.Logger
        the created logger
    """
    lgr = logging.getLogger(name=logger_name)
    lgr.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))
    # Remove any existing handlers on this logger to avoid duplicates
    for _h in list(lgr.handlers):
        lgr.removeHandler(_h)
    log_formatter = logging.Formatter(LOG_FMT)

    file_handler = None
    if config.LOG_FILE:
        try:
            file_handler = RotatingFileHandler(
                config.LOG_FILE, maxBytes=5 * 1024 * 1024, backupCount=5, encoding="utf-8"
            )
            file_handler.setFormatter(log_formatter)
        except OSError as e:
            print(f"Warning: cannot log to {config.LOG_FILE}: {e}", file=sys.stderr)
            file_handler = None

    # stderr keeps stdout free for the printed schedule
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(log_formatter)
    lgr.addHandler(console_handler)
    if file_handler:
        lgr.addHandler(file_handler)
    lgr.debug("logger %s initialized", logger_name)
    return lgr
