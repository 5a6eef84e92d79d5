"""Device detection from HTTP request headers.

Classifies the requesting device as one of:
- android
- ios
- desktop
- unknown

Client hints (``Sec-CH-UA-Platform``) are consulted first, then the
User-Agent string. Every result carries a confidence marker; low-confidence
results are handed to the bridge page for a second, client-side check.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional


class DeviceType(str, Enum):
    """Device category used for routing."""

    ANDROID = "android"
    IOS = "ios"
    DESKTOP = "desktop"
    UNKNOWN = "unknown"


class Confidence(str, Enum):
    """How far a detection result can be trusted without a client-side check."""

    HIGH = "high"
    LOW = "low"


@dataclass(frozen=True)
class DeviceDetectionResult:
    """Detected device with confidence and a human-readable reason."""

    device: DeviceType
    confidence: Confidence
    reason: str

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "device": self.device.value,
            "confidence": self.confidence.value,
            "reason": self.reason,
        }


_ANDROID = re.compile(r"android", re.IGNORECASE)
_IPHONE = re.compile(r"iphone", re.IGNORECASE)
_IPOD = re.compile(r"ipod", re.IGNORECASE)
_IPAD = re.compile(r"ipad", re.IGNORECASE)
_WINDOWS = re.compile(r"windows nt", re.IGNORECASE)
_MACOS = re.compile(r"macintosh|mac os x", re.IGNORECASE)
_LINUX = re.compile(r"linux", re.IGNORECASE)
_CROS = re.compile(r"cros", re.IGNORECASE)
_MOBILE = re.compile(r"mobile|phone", re.IGNORECASE)

_DESKTOP_HINTS = ("windows", "linux", "chromeos")


def get_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup that works for plain dicts too."""
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, val in headers.items():
        if key.lower() == lowered:
            return val
    return None


def _is_probably_ipad(user_agent: str) -> bool:
    """Guess whether a Mac-looking request actually comes from an iPad.

    Only a literal "iPad" token is recognised. iPadOS 13+ sends a plain
    Macintosh User-Agent, which this cannot tell apart from desktop Safari.
    """
    return bool(_IPAD.search(user_agent))


def detect_device(headers: Mapping[str, str]) -> DeviceDetectionResult:
    """Detect the requesting device from request headers.

    Args:
        headers: Request headers. Lookup is case-insensitive.

    Returns:
        Detection result. Never raises; missing or malformed headers
        degrade to an unknown, low-confidence result.
    """
    platform = get_header(headers, "Sec-CH-UA-Platform")
    if platform:
        hint = platform.lower().replace('"', "").strip()

        if hint == "android":
            return DeviceDetectionResult(
                DeviceType.ANDROID,
                Confidence.HIGH,
                "Client Hints: Sec-CH-UA-Platform = Android",
            )

        if hint == "ios":
            return DeviceDetectionResult(
                DeviceType.IOS,
                Confidence.HIGH,
                "Client Hints: Sec-CH-UA-Platform = iOS",
            )

        # macOS could be an iPad requesting the desktop site
        if hint == "macos":
            ua = get_header(headers, "User-Agent") or ""
            if _is_probably_ipad(ua):
                return DeviceDetectionResult(
                    DeviceType.IOS,
                    Confidence.LOW,
                    "Client Hints: macOS but UA suggests iPad",
                )
            return DeviceDetectionResult(
                DeviceType.DESKTOP,
                Confidence.HIGH,
                "Client Hints: Sec-CH-UA-Platform = macOS",
            )

        if hint in _DESKTOP_HINTS:
            return DeviceDetectionResult(
                DeviceType.DESKTOP,
                Confidence.HIGH,
                f"Client Hints: Sec-CH-UA-Platform = {platform}",
            )

    ua = get_header(headers, "User-Agent") or ""
    if not ua:
        return DeviceDetectionResult(
            DeviceType.UNKNOWN, Confidence.LOW, "No User-Agent header present"
        )

    return detect_from_user_agent(ua)


def detect_from_user_agent(user_agent: str) -> DeviceDetectionResult:
    """Classify a User-Agent string. Patterns are checked in priority order."""
    ua = user_agent

    if _ANDROID.search(ua):
        return DeviceDetectionResult(
            DeviceType.ANDROID, Confidence.HIGH, 'User-Agent contains "Android"'
        )

    if _IPHONE.search(ua):
        return DeviceDetectionResult(
            DeviceType.IOS, Confidence.HIGH, 'User-Agent contains "iPhone"'
        )

    if _IPOD.search(ua):
        return DeviceDetectionResult(
            DeviceType.IOS, Confidence.HIGH, 'User-Agent contains "iPod"'
        )

    if _IPAD.search(ua):
        return DeviceDetectionResult(
            DeviceType.IOS, Confidence.HIGH, 'User-Agent contains "iPad"'
        )

    # iPadOS 13+ masquerading as Macintosh. Unreachable while the heuristic
    # only matches a literal "iPad" token, which the branch above catches.
    if _MACOS.search(ua) and _is_probably_ipad(ua):
        return DeviceDetectionResult(
            DeviceType.IOS,
            Confidence.LOW,
            'User-Agent contains "Macintosh" but might be iPad (iPadOS 13+)',
        )

    if _WINDOWS.search(ua):
        return DeviceDetectionResult(
            DeviceType.DESKTOP, Confidence.HIGH, "User-Agent indicates Windows"
        )

    if _MACOS.search(ua):
        return DeviceDetectionResult(
            DeviceType.DESKTOP, Confidence.HIGH, "User-Agent indicates macOS"
        )

    if _LINUX.search(ua) and not _ANDROID.search(ua):
        return DeviceDetectionResult(
            DeviceType.DESKTOP,
            Confidence.HIGH,
            "User-Agent indicates Linux desktop",
        )

    if _CROS.search(ua):
        return DeviceDetectionResult(
            DeviceType.DESKTOP, Confidence.HIGH, "User-Agent indicates Chrome OS"
        )

    if _MOBILE.search(ua):
        return DeviceDetectionResult(
            DeviceType.UNKNOWN,
            Confidence.LOW,
            "User-Agent indicates mobile but platform unclear",
        )

    return DeviceDetectionResult(
        DeviceType.UNKNOWN,
        Confidence.LOW,
        "Could not determine device from User-Agent",
    )


def needs_bridge_page(result: DeviceDetectionResult) -> bool:
    """Check whether a client-side bridge page is needed for this result."""
    return result.confidence == Confidence.LOW or result.device == DeviceType.UNKNOWN
