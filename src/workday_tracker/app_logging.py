"""Logging setup for the workday tracker."""

import logging

LOGGER_NAME = "workday_tracker"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int = logging.INFO) -> logging.Logger:
    """Attach one stream handler to the package logger and apply the level.

    Calling it again only updates the level, so app factories and tests can
    call it freely.
    """
    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.setLevel(level.upper() if isinstance(level, str) else level)
    package_logger.propagate = False
    if not package_logger.handlers:
        stream = logging.StreamHandler()
        stream.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(stream)
    return package_logger
