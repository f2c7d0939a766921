import sys
from datetime import datetime, timezone

from loguru import logger as loguru_logger

from parking_booking.config.settings_env import settings


def initialize_logger():
    """Initialize the logger based on DEV_MODE setting."""
    loguru_logger.remove()

    if settings.DEV_MODE:
        loguru_logger.add(sys.stderr, level="TRACE")
    else:
        loguru_logger.add(sys.stderr, level="INFO")

    return loguru_logger


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime | None) -> datetime | None:
    """Treat naive datetimes coming back from storage as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


# Initialize logger
logger = initialize_logger()
