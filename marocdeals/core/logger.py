import logging

from marocdeals.core.config import LOG_LEVEL

FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str = LOG_LEVEL) -> logging.Logger:
    """
    Attach a console handler to the ``marocdeals`` logger.

    Module loggers (``logging.getLogger(__name__)``) propagate here, so this only
    needs to run once at startup. Calling it again is a no-op.
    """
    logger = logging.getLogger("marocdeals")

    if logger.handlers:
        return logger

    logger.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(FORMAT))
    logger.addHandler(console_handler)

    return logger
