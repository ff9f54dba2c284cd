"""
Logging for the ``finance_tracker`` package.

Modules log through ``get_logger(__name__)`` and never attach handlers.
The CLI calls ``configure_logging`` once with the level from Settings
(where FINANCE_TRACKER_LOG_LEVEL is applied) or DEBUG for --verbose.
"""
import logging
import sys
from typing import IO, Optional

PACKAGE_LOGGER = "finance_tracker"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

# Library use stays silent until an application configures output
logging.getLogger(PACKAGE_LOGGER).addHandler(logging.NullHandler())


def configure_logging(level: int | str = logging.INFO, stream: Optional[IO[str]] = None) -> None:
    """
    Send package logs to a stream (stderr by default).

    Repeated calls replace the handler instead of stacking another one.

    Raises:
        ValueError: If level is not a known level name
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level.upper() if isinstance(level, str) else level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
