"""
loguru sinks for the importer and API.

stderr always; LOG_FILE (rotated at 10 MB, kept 30 days, zipped) unless it
is set to an empty string, which the test suite does.
"""
import sys
from loguru import logger
from lodge_ledger.core.config import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def setup_logging() -> None:
    logger.remove()
    logger.add(sys.stderr, level=settings.LOG_LEVEL, format=CONSOLE_FORMAT, colorize=True)

    if not settings.LOG_FILE:
        return
    logger.add(
        settings.LOG_FILE,
        level=settings.LOG_LEVEL,
        rotation="10 MB",
        retention="30 days",
        compression="zip",
    )
    logger.debug(f"Logging to {settings.LOG_FILE} at {settings.LOG_LEVEL}")
