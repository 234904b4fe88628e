"""Logging setup for the service."""

import logging
import sys

_LOGGER_NAME = "roomkeeper"
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a single stream handler to the package logger.

    Safe to call more than once; the handler is only installed the first time.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level.upper())
    if not any(getattr(h, "_roomkeeper", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._roomkeeper = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
