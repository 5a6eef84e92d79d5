"""Immutable routing configuration handed to the request core."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from smartlink.platform.device_detection import DeviceType


@dataclass(frozen=True)
class RoutingConfig:
    """Destinations used when routing a request.

    Args:
        android_store_url: Google Play listing.
        ios_store_url: App Store listing.
        fallback_url: Website for desktop and unmatched devices.
        android_deep_link: App URL opened on Android, if configured.
        ios_deep_link: App URL opened on iOS, if configured.
        debug: Expose the debug endpoint.
    """

    android_store_url: str
    ios_store_url: str
    fallback_url: str
    android_deep_link: Optional[str] = None
    ios_deep_link: Optional[str] = None
    debug: bool = False

    def deep_link_for(self, device: DeviceType) -> Optional[str]:
        """Return the configured deep link for a mobile device, if any."""
        if device == DeviceType.ANDROID:
            return self.android_deep_link or None
        if device == DeviceType.IOS:
            return self.ios_deep_link or None
        return None

    def store_url_for(self, device: DeviceType) -> Optional[str]:
        """Return the store listing for a mobile device."""
        if device == DeviceType.ANDROID:
            return self.android_store_url
        if device == DeviceType.IOS:
            return self.ios_store_url
        return None

    def to_dict(self) -> dict:
        """Serialize to dictionary. Unset deep links appear as None."""
        return {
            "androidStoreUrl": self.android_store_url,
            "iosStoreUrl": self.ios_store_url,
            "fallbackUrl": self.fallback_url,
            "androidDeepLink": self.android_deep_link or None,
            "iosDeepLink": self.ios_deep_link or None,
        }
