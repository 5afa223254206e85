"""Console logging setup.

Library modules only create named loggers; applications call ``setup_logging``
once to get coloured console output.
"""

from __future__ import annotations

import logging

import colorlog

LOG_FORMAT = (
    "%(asctime)s:%(levelname)s:%(name)s in %(filename)s:%(funcName)s:%(lineno)d: %(message)s"
)
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}


def setup_logging(
    verbose: bool = False, warnings_only: bool = False, errors_only: bool = False
) -> logging.Logger:
    """Install a single coloured stream handler on the root logger.

    Existing root handlers are removed so repeated calls do not duplicate output.
    """
    logger = logging.getLogger()
    for h in list(logger.handlers):
        logger.removeHandler(h)
    stream_handler = colorlog.StreamHandler()
    formatter = colorlog.ColoredFormatter(f"%(log_color)s{LOG_FORMAT}", log_colors=LOG_COLORS)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)
    if errors_only:
        logger.setLevel(logging.ERROR)
    elif warnings_only:
        logger.setLevel(logging.WARNING)
    else:
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return logger


__all__ = ["LOG_FORMAT", "LOG_COLORS", "setup_logging"]
