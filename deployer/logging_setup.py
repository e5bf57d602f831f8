"""Centralized logging setup for the deployer.

Configures the root logger to write to the console only. The deployer
itself only ever calls ``logging.getLogger(__name__)``; applications that
embed it decide whether to call ``setup_logging``.
"""
import logging
from typing import Optional

from .config import Settings, get_settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(settings: Optional[Settings] = None) -> int:
    """Configure the root logger from settings.

    Args:
        settings: Settings to read ``log_level`` from (default: global settings)

    Returns:
        The numeric level that was applied
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Calling twice must not duplicate output
    if not any(getattr(h, "_deployer_handler", False) for h in root_logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(LOG_FORMAT))
        console._deployer_handler = True
        root_logger.addHandler(console)

    return level
