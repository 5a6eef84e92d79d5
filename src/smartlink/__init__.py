"""Smart-link router - sends visitors to the app, a store listing, or the website."""

__version__ = "1.0.0"

from .config import RoutingConfig, Settings, get_settings
from .platform import (
    Confidence,
    DeviceDetectionResult,
    DeviceType,
    TargetType,
    detect_device,
    needs_bridge_page,
    resolve_target,
)

__all__ = [
    "RoutingConfig",
    "Settings",
    "get_settings",
    "Confidence",
    "DeviceDetectionResult",
    "DeviceType",
    "TargetType",
    "detect_device",
    "needs_bridge_page",
    "resolve_target",
]
