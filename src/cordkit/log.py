"""
Logging setup for bot applications.
"""

import logging

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def configure_logging(level: str | int = "INFO") -> None:
    """
    Install a console handler on the root logger.

    Params:
        level: Level name or number for the root logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=DATE_FORMAT, force=True)
    # discord.py logs every gateway event at DEBUG
    logging.getLogger("discord").setLevel(max(level, logging.INFO))
