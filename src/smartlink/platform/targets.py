"""Routing target resolution.

Maps a detection result and the routing configuration to the single
destination kind a request is sent to. The redirect route, the debug route
and the CLI all go through ``resolve_target``.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from smartlink.platform.device_detection import (
    DeviceDetectionResult,
    DeviceType,
    needs_bridge_page,
)

if TYPE_CHECKING:
    from smartlink.config.routing import RoutingConfig


class TargetType(str, Enum):
    """Where a request is routed."""

    ANDROID_STORE = "android_store"
    IOS_STORE = "ios_store"
    FALLBACK = "fallback"
    BRIDGE = "bridge"
    DEEP_LINK = "deep_link"


def resolve_target(
    detection: DeviceDetectionResult, config: RoutingConfig
) -> TargetType:
    """Decide the routing target for a detection result.

    Args:
        detection: Server-side detection result.
        config: Routing configuration.

    Returns:
        The target type. Low confidence or unknown devices always get the
        bridge page, whatever else is configured.
    """
    if needs_bridge_page(detection):
        return TargetType.BRIDGE

    if detection.device == DeviceType.ANDROID:
        if config.android_deep_link:
            return TargetType.DEEP_LINK
        return TargetType.ANDROID_STORE

    if detection.device == DeviceType.IOS:
        if config.ios_deep_link:
            return TargetType.DEEP_LINK
        return TargetType.IOS_STORE

    return TargetType.FALLBACK
