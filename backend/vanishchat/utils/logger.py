# vanishchat/utils/logger.py

import logging
import sys

from vanishchat.core.config import LOG_LEVEL

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def setup_logger(level: str = LOG_LEVEL) -> logging.Logger:
    """Configure the ``vanishchat`` logger once; later calls only adjust the level."""
    logger = logging.getLogger("vanishchat")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
    logger.setLevel(level.upper())
    return logger
