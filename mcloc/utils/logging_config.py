"""
Logging setup for Monte Carlo localization runs.

Every module logs through ``get_logger(__name__)``; records go to stdout and,
optionally, to a run log file. The file comes from ``--log_file`` on the
``mcloc-square-path`` command line or from the LOG_FILE environment variable.
LOG_LEVEL sets the initial verbosity (INFO when unset).

What is logged where:
    - DEBUG: one line per filter step (ESS, resampling, estimate)
    - INFO: per-step robot and estimated states, run summaries
    - WARNING: degenerate weights (every likelihood underflowed)
"""

import logging
import os
import sys
from typing import Optional


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that flood the console below WARNING
QUIET_LIBRARIES = ("tensorflow", "absl", "matplotlib")

_configured = False


def _resolve_level(level: str) -> int:
    return getattr(logging, str(level).upper(), logging.INFO)


def _formatter() -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)


def add_file_handler(log_file: str) -> logging.FileHandler:
    """
    Also write log records to ``log_file``.

    Missing parent directories are created. Asking twice for the same path
    returns the handler already attached instead of duplicating every line.

    Parameters
    ----------
    log_file : str
        Path of the run log.

    Returns
    -------
    logging.FileHandler
        The handler writing to ``log_file``.
    """
    path = os.path.abspath(log_file)
    root = logging.getLogger()
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == path:
            return handler

    os.makedirs(os.path.dirname(path), exist_ok=True)
    handler = logging.FileHandler(path)
    handler.setLevel(root.level)
    handler.setFormatter(_formatter())
    root.addHandler(handler)
    return handler


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Configure the root logger.

    The first call installs the stdout handler at ``level`` (or LOG_LEVEL) and
    attaches ``log_file`` (or LOG_FILE). Modules call this implicitly through
    get_logger() at import time, so a later call from main() only applies what
    it is given: a new level and/or an additional log file.

    Parameters
    ----------
    level : str, optional
        DEBUG, INFO, WARNING, ERROR or CRITICAL.
    log_file : str, optional
        Path of a run log to write alongside the console.
    """
    global _configured

    if _configured:
        if level is not None:
            set_level(level)
        if log_file:
            add_file_handler(log_file)
        return

    root = logging.getLogger()
    root.setLevel(_resolve_level(level or os.environ.get("LOG_LEVEL", "INFO")))
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(root.level)
    console.setFormatter(_formatter())
    root.addHandler(console)

    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True

    log_file = log_file or os.environ.get("LOG_FILE")
    if log_file:
        add_file_handler(log_file)


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a module, configuring logging on first use.

    Example
    -------
    >>> logger = get_logger(__name__)
    >>> logger.warning("All %d particle likelihoods are zero", num_particles)
    """
    if not _configured:
        setup_logging()

    return logging.getLogger(name)


def set_level(level: str) -> None:
    """Change the level of the root logger and all of its handlers."""
    numeric_level = _resolve_level(level)
    root = logging.getLogger()
    root.setLevel(numeric_level)
    for handler in root.handlers:
        handler.setLevel(numeric_level)
