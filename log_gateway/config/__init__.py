"""
Configuration module: settings and logging.
"""

from log_gateway.config.settings import settings, get_settings, Settings
from log_gateway.config.logging import get_logger, setup_logging, gateway_logger

__all__ = [
    # settings
    "settings",
    "get_settings",
    "Settings",
    # logging
    "get_logger",
    "setup_logging",
    "gateway_logger",
]
