"""Configuration module for the smart-link router."""

from .routing import RoutingConfig
from .settings import Settings, get_settings
from .logging import configure_logging, IPRedactingFilter, JSONFormatter, TextFormatter

__all__ = [
    "RoutingConfig",
    "Settings",
    "get_settings",
    "configure_logging",
    "IPRedactingFilter",
    "JSONFormatter",
    "TextFormatter",
]
