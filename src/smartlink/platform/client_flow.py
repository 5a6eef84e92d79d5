"""Client-side redirect flows run by the rendered pages.

The bridge and deep-link pages each embed a small script that keeps
redirecting in the browser. This module models both scripts as explicit
state machines over an injectable scheduler and effect sink, so timing and
focus-loss races can be replayed deterministically. The timing constants
and status texts here are also what the page renderer embeds.

Race handling: focus-loss events only flip a flag. Timers are never
cancelled; the flag is read when a checkpoint timer fires.
"""

from __future__ import annotations

import heapq
import itertools
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Protocol

from smartlink.platform.device_detection import DeviceType

# Checkpoints (milliseconds)
BRIDGE_REDIRECT_DELAY_MS = 300
DEEP_LINK_CHECK_DELAY_MS = 800
DEEP_LINK_MAX_ELAPSED_MS = 2000
STORE_REDIRECT_DELAY_MS = 500

# Element ids shared with the page markup
IOS_BUTTON_ID = "ios-btn"
ANDROID_BUTTON_ID = "android-btn"
SPINNER_ID = "spinner"

APP_OPENED_STATUS = "App opened successfully!"
NOT_INSTALLED_STATUS = "App not installed. Redirecting to {store_name}..."

_UA_ANDROID = re.compile(r"android", re.IGNORECASE)
_UA_IOS = re.compile(r"iphone|ipad|ipod", re.IGNORECASE)
_UA_MACINTOSH = re.compile(r"macintosh", re.IGNORECASE)
_PLATFORM_DESKTOP = re.compile(r"win|mac|linux", re.IGNORECASE)


def detect_client_device(
    user_agent: str, platform: str, max_touch_points: int
) -> DeviceType:
    """Re-detect the device from browser-side signals.

    Args:
        user_agent: ``navigator.userAgent``.
        platform: ``navigator.platform``.
        max_touch_points: ``navigator.maxTouchPoints``.

    Returns:
        Detected device; ``UNKNOWN`` when nothing matches.
    """
    ua = user_agent or ""
    platform = platform or ""
    touch = max_touch_points or 0

    if _UA_ANDROID.search(ua):
        return DeviceType.ANDROID
    if _UA_IOS.search(ua):
        return DeviceType.IOS
    # iPadOS 13+ reports Macintosh but has a touch screen
    if _UA_MACINTOSH.search(ua) and touch > 1:
        return DeviceType.IOS
    if _UA_IOS.search(platform):
        return DeviceType.IOS
    if _PLATFORM_DESKTOP.search(platform) and touch <= 1:
        return DeviceType.DESKTOP
    return DeviceType.UNKNOWN


class Scheduler(Protocol):
    """Clock and timer source, in milliseconds."""

    def now(self) -> float: ...

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> None: ...


class ManualScheduler:
    """Scheduler driven by hand, for replaying flows without real time.

    Timers fire in due order when ``advance`` moves the clock past them;
    the clock reads the timer's due time while its callback runs.
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = start_ms
        self._timers: list[tuple[float, int, Callable[[], None]]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> None:
        heapq.heappush(self._timers, (self._now + delay_ms, next(self._seq), callback))

    @property
    def pending(self) -> int:
        """Number of timers not yet fired."""
        return len(self._timers)

    def advance(self, delay_ms: float) -> None:
        """Move the clock forward, firing every timer that falls due."""
        target = self._now + delay_ms
        while self._timers and self._timers[0][0] <= target:
            due, _, callback = heapq.heappop(self._timers)
            self._now = max(self._now, due)
            callback()
        self._now = target


class PageEffects(Protocol):
    """Side effects a page script can have on the browser."""

    def navigate(self, url: str) -> None: ...

    def hide_element(self, element_id: str) -> None: ...

    def set_status(self, text: str) -> None: ...


@dataclass
class RecordingEffects:
    """Effect sink that records every action in order."""

    actions: list[tuple[str, str]] = field(default_factory=list)

    def navigate(self, url: str) -> None:
        self.actions.append(("navigate", url))

    def hide_element(self, element_id: str) -> None:
        self.actions.append(("hide", element_id))

    def set_status(self, text: str) -> None:
        self.actions.append(("status", text))

    @property
    def navigations(self) -> list[str]:
        """URLs navigated to, in order."""
        return [value for kind, value in self.actions if kind == "navigate"]


class BridgeState(str, Enum):
    """Bridge page states."""

    PENDING = "pending"
    REDIRECTED = "redirected"


class BridgeRedirectFlow:
    """Bridge page script: re-detect, wait for paint, then redirect once."""

    def __init__(
        self,
        android_url: str,
        ios_url: str,
        fallback_url: str,
        scheduler: Scheduler,
        effects: PageEffects,
        *,
        user_agent: str = "",
        platform: str = "",
        max_touch_points: int = 0,
    ) -> None:
        self.android_url = android_url
        self.ios_url = ios_url
        self.fallback_url = fallback_url
        self.scheduler = scheduler
        self.effects = effects
        self.user_agent = user_agent
        self.platform = platform
        self.max_touch_points = max_touch_points
        self.state = BridgeState.PENDING
        self.device = DeviceType.UNKNOWN

    def start(self) -> None:
        """Run on page load."""
        self.device = detect_client_device(
            self.user_agent, self.platform, self.max_touch_points
        )
        self.scheduler.call_later(BRIDGE_REDIRECT_DELAY_MS, self._redirect)

    def _redirect(self) -> None:
        if self.device == DeviceType.ANDROID:
            self.effects.hide_element(IOS_BUTTON_ID)
            self.effects.navigate(self.android_url)
        elif self.device == DeviceType.IOS:
            self.effects.hide_element(ANDROID_BUTTON_ID)
            self.effects.navigate(self.ios_url)
        else:
            self.effects.navigate(self.fallback_url)
        self.state = BridgeState.REDIRECTED


class DeepLinkState(str, Enum):
    """Deep-link page states."""

    PENDING = "pending"
    APP_OPENED = "app_opened"
    TIMED_OUT = "timed_out"
    TERMINAL = "terminal"


class DeepLinkFlow:
    """Deep-link page script: open the app, fall back to the store.

    ``focus_lost`` stands in for both ``visibilitychange`` (hidden) and
    window ``blur``; either means the OS probably switched to the app.
    """

    def __init__(
        self,
        deep_link: str,
        store_url: str,
        store_name: str,
        scheduler: Scheduler,
        effects: PageEffects,
    ) -> None:
        self.deep_link = deep_link
        self.store_url = store_url
        self.store_name = store_name
        self.scheduler = scheduler
        self.effects = effects
        self.state = DeepLinkState.PENDING
        self.app_opened = False
        self.started_at = 0.0

    def start(self) -> None:
        """Run on page load: navigate to the app and arm the checkpoint."""
        self.started_at = self.scheduler.now()
        self.effects.navigate(self.deep_link)
        self.scheduler.call_later(DEEP_LINK_CHECK_DELAY_MS, self._check)

    def focus_lost(self) -> None:
        """Record that the page was hidden or lost focus."""
        self.app_opened = True
        if self.state == DeepLinkState.PENDING:
            self.state = DeepLinkState.APP_OPENED

    def _check(self) -> None:
        elapsed = self.scheduler.now() - self.started_at
        if not self.app_opened and elapsed < DEEP_LINK_MAX_ELAPSED_MS:
            self.state = DeepLinkState.TIMED_OUT
            self.effects.set_status(
                NOT_INSTALLED_STATUS.format(store_name=self.store_name)
            )
            self.scheduler.call_later(STORE_REDIRECT_DELAY_MS, self._go_to_store)
        elif self.app_opened:
            self.effects.set_status(APP_OPENED_STATUS)
            self.effects.hide_element(SPINNER_ID)
            self.state = DeepLinkState.TERMINAL
        else:
            # Checkpoint fired too late to judge (e.g. throttled tab)
            self.state = DeepLinkState.TERMINAL

    def _go_to_store(self) -> None:
        self.effects.navigate(self.store_url)
        self.state = DeepLinkState.TERMINAL
