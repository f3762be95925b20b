"""
Logging loguru de CineScan.

Console coloree avec le nom du thread (les taches de scan tournent dans un
pool de workers), fichier JSON avec rotation. Le fichier recoit au moins le
niveau DEBUG, et TRACE quand la console est en -vvv.
"""

import sys

from loguru import logger

from .config import Settings

_CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{thread.name}</magenta> | "
    "<level>{message}</level>"
)


def configure_logging(console_level: str, settings: Settings) -> None:
    """Remplace les handlers loguru par ceux de la commande en cours."""
    logger.remove()
    logger.add(sys.stderr, level=console_level, format=_CONSOLE_FORMAT, colorize=True)

    settings.log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        settings.log_file,
        level="TRACE" if console_level == "TRACE" else "DEBUG",
        serialize=True,
        rotation=settings.log_rotation_size,
        retention=settings.log_retention_count,
        compression="zip",
        enqueue=True,
    )
