import logging
import os

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

logger = logging.getLogger()
logger.setLevel(LOG_LEVEL)


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Records propagate to the root logger, so on Lambda they reach the
    runtime's handler and locally they reach whatever basicConfig installed.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger set to LOG_LEVEL
    """
    log = logging.getLogger(name)
    log.setLevel(LOG_LEVEL)
    return log
