"""Device detection and routing decisions.

Provides:
- Device detection from HTTP request headers
- Target resolution for a detection result
- Models of the client-side redirect flows embedded in rendered pages
"""

from smartlink.platform.client_flow import (
    BridgeRedirectFlow,
    BridgeState,
    DeepLinkFlow,
    DeepLinkState,
    ManualScheduler,
    RecordingEffects,
    detect_client_device,
)
from smartlink.platform.device_detection import (
    Confidence,
    DeviceDetectionResult,
    DeviceType,
    detect_device,
    needs_bridge_page,
)
from smartlink.platform.targets import TargetType, resolve_target

__all__ = [
    "BridgeRedirectFlow",
    "BridgeState",
    "DeepLinkFlow",
    "DeepLinkState",
    "ManualScheduler",
    "RecordingEffects",
    "detect_client_device",
    "Confidence",
    "DeviceDetectionResult",
    "DeviceType",
    "detect_device",
    "needs_bridge_page",
    "TargetType",
    "resolve_target",
]
