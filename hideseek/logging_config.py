"""
Logging Configuration

Standard library logging for the engine and the API.
"""

import logging
import sys

from .config import get_settings


def setup_logging(level: str | None = None) -> None:
    """
    Configure root logging once for the process.

    Uses the configured HIDESEEK_LOG_LEVEL unless a level is given.
    """
    level_name = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger(__name__).info("Logging configuration initialized")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (usually __name__)
    """
    return logging.getLogger(name)


def log_game_event(game_id: str, event_type: str, **kwargs) -> None:
    """
    Log a committed game event for auditing.

    Args:
        game_id: Game identifier
        event_type: Type of game event
        **kwargs: Additional event data
    """
    logger = get_logger("game_events")
    extra_info = " ".join(f"{k}={v}" for k, v in kwargs.items())
    logger.debug(f"Game event: game_id={game_id} event_type={event_type} {extra_info}")
