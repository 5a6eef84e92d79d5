"""Tests for the client-side redirect flows."""

import sys

import pytest

sys.path.insert(0, "src")

from smartlink.platform.client_flow import (
    ANDROID_BUTTON_ID,
    APP_OPENED_STATUS,
    IOS_BUTTON_ID,
    SPINNER_ID,
    BridgeRedirectFlow,
    BridgeState,
    DeepLinkFlow,
    DeepLinkState,
    ManualScheduler,
    RecordingEffects,
    detect_client_device,
)
from smartlink.platform.device_detection import DeviceType

ANDROID_URL = "https://play.example/app"
IOS_URL = "https://apps.example/app"
FALLBACK_URL = "https://example.com/app?utm=x"


class LaggyScheduler(ManualScheduler):
    """Scheduler whose timers fire late, like a throttled background tab."""

    def __init__(self, lag_ms: float) -> None:
        super().__init__()
        self.lag_ms = lag_ms

    def call_later(self, delay_ms, callback) -> None:
        super().call_later(delay_ms + self.lag_ms, callback)


# ============================================================================
# Client-side detection
# ============================================================================


class TestDetectClientDevice:
    """Tests for browser-side re-detection."""

    @pytest.mark.parametrize(
        "ua, platform, touch, expected",
        [
            ("Mozilla/5.0 (Linux; Android 14)", "Linux armv8l", 5, DeviceType.ANDROID),
            ("Mozilla/5.0 (iPhone; CPU iPhone OS 17_2)", "iPhone", 5, DeviceType.IOS),
            ("Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7)", "MacIntel", 5, DeviceType.IOS),
            ("Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7)", "MacIntel", 0, DeviceType.DESKTOP),
            ("SomeBrowser", "iPad", 0, DeviceType.IOS),
            ("Mozilla/5.0 (Windows NT 10.0)", "Win32", 0, DeviceType.DESKTOP),
            ("Mozilla/5.0 (X11; Linux x86_64)", "Linux x86_64", 1, DeviceType.DESKTOP),
            ("Mozilla/5.0 (Windows NT 10.0; Touch)", "Win32", 10, DeviceType.UNKNOWN),
            ("", "", 0, DeviceType.UNKNOWN),
        ],
    )
    def test_precedence(self, ua, platform, touch, expected):
        """Signals are checked in the documented order."""
        assert detect_client_device(ua, platform, touch) == expected


# ============================================================================
# Manual scheduler
# ============================================================================


class TestManualScheduler:
    """Tests for the fake clock."""

    def test_fires_in_due_order(self):
        """Timers fire by due time, not registration order."""
        scheduler = ManualScheduler()
        fired = []
        scheduler.call_later(500, lambda: fired.append(("b", scheduler.now())))
        scheduler.call_later(100, lambda: fired.append(("a", scheduler.now())))
        scheduler.advance(1000)
        assert fired == [("a", 100), ("b", 500)]
        assert scheduler.now() == 1000

    def test_not_due_yet(self):
        """Timers past the target time stay pending."""
        scheduler = ManualScheduler()
        scheduler.call_later(300, lambda: None)
        scheduler.advance(299)
        assert scheduler.pending == 1
        scheduler.advance(1)
        assert scheduler.pending == 0

    def test_nested_timers(self):
        """Timers scheduled by callbacks fire within the same advance."""
        scheduler = ManualScheduler()
        fired = []
        scheduler.call_later(
            100, lambda: scheduler.call_later(100, lambda: fired.append(scheduler.now()))
        )
        scheduler.advance(250)
        assert fired == [200]


# ============================================================================
# Bridge flow
# ============================================================================


class TestBridgeRedirectFlow:
    """Tests for the bridge page state machine."""

    def _flow(self, **signals):
        scheduler = ManualScheduler()
        effects = RecordingEffects()
        flow = BridgeRedirectFlow(
            ANDROID_URL, IOS_URL, FALLBACK_URL, scheduler, effects, **signals
        )
        return flow, scheduler, effects

    def test_waits_for_paint(self):
        """Nothing happens before the 300 ms delay."""
        flow, scheduler, effects = self._flow(user_agent="Android")
        flow.start()
        scheduler.advance(299)
        assert effects.actions == []
        assert flow.state == BridgeState.PENDING

    def test_android(self):
        """Android hides the iOS button and goes to Google Play."""
        flow, scheduler, effects = self._flow(user_agent="Mozilla/5.0 (Linux; Android 14)")
        flow.start()
        scheduler.advance(300)
        assert effects.actions == [("hide", IOS_BUTTON_ID), ("navigate", ANDROID_URL)]
        assert flow.state == BridgeState.REDIRECTED

    def test_ipad_desktop_mode(self):
        """Touch-capable Macintosh goes to the App Store."""
        flow, scheduler, effects = self._flow(
            user_agent="Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7)",
            platform="MacIntel",
            max_touch_points=5,
        )
        flow.start()
        scheduler.advance(300)
        assert effects.actions == [("hide", ANDROID_BUTTON_ID), ("navigate", IOS_URL)]

    def test_desktop_goes_to_fallback(self):
        """Desktop goes to the fallback URL, buttons untouched."""
        flow, scheduler, effects = self._flow(
            user_agent="Mozilla/5.0 (Windows NT 10.0)", platform="Win32"
        )
        flow.start()
        scheduler.advance(300)
        assert effects.actions == [("navigate", FALLBACK_URL)]

    def test_unknown_goes_to_fallback(self):
        """Unknown devices go to the fallback URL."""
        flow, scheduler, effects = self._flow()
        flow.start()
        scheduler.advance(1000)
        assert effects.navigations == [FALLBACK_URL]
        assert flow.device == DeviceType.UNKNOWN


# ============================================================================
# Deep-link flow
# ============================================================================


class TestDeepLinkFlow:
    """Tests for the deep-link page state machine."""

    def _flow(self, scheduler=None):
        scheduler = scheduler or ManualScheduler()
        effects = RecordingEffects()
        flow = DeepLinkFlow("myapp://open?x=1", IOS_URL, "App Store", scheduler, effects)
        return flow, scheduler, effects

    def test_navigates_to_deep_link_immediately(self):
        """The deep link is opened on load."""
        flow, scheduler, effects = self._flow()
        flow.start()
        assert effects.navigations == ["myapp://open?x=1"]
        assert flow.state == DeepLinkState.PENDING

    def test_app_not_installed(self):
        """No focus loss by 800 ms means store redirect 500 ms later."""
        flow, scheduler, effects = self._flow()
        flow.start()
        scheduler.advance(800)
        assert flow.state == DeepLinkState.TIMED_OUT
        assert ("status", "App not installed. Redirecting to App Store...") in effects.actions
        assert effects.navigations == ["myapp://open?x=1"]

        scheduler.advance(499)
        assert effects.navigations == ["myapp://open?x=1"]
        scheduler.advance(1)
        assert effects.navigations == ["myapp://open?x=1", IOS_URL]
        assert flow.state == DeepLinkState.TERMINAL

    def test_app_opened(self):
        """Focus loss before the checkpoint means success, no store redirect."""
        flow, scheduler, effects = self._flow()
        flow.start()
        scheduler.advance(200)
        flow.focus_lost()
        assert flow.state == DeepLinkState.APP_OPENED
        scheduler.advance(2000)
        assert effects.actions[-2:] == [("status", APP_OPENED_STATUS), ("hide", SPINNER_ID)]
        assert effects.navigations == ["myapp://open?x=1"]
        assert flow.state == DeepLinkState.TERMINAL

    def test_focus_lost_after_checkpoint_does_not_cancel(self):
        """Focus loss after timing out does not stop the store redirect."""
        flow, scheduler, effects = self._flow()
        flow.start()
        scheduler.advance(900)
        flow.focus_lost()
        assert flow.app_opened is True
        assert flow.state == DeepLinkState.TIMED_OUT
        scheduler.advance(500)
        assert effects.navigations[-1] == IOS_URL

    def test_late_checkpoint_stops(self):
        """A checkpoint that fires after 2000 ms takes no action."""
        flow, scheduler, effects = self._flow(scheduler=LaggyScheduler(lag_ms=1500))
        flow.start()
        scheduler.advance(5000)
        assert flow.state == DeepLinkState.TERMINAL
        assert effects.navigations == ["myapp://open?x=1"]
        assert not any(kind == "status" for kind, _ in effects.actions)

    def test_single_shot(self):
        """No timers remain after the terminal state."""
        flow, scheduler, effects = self._flow()
        flow.start()
        scheduler.advance(10_000)
        assert scheduler.pending == 0
        count = len(effects.actions)
        flow.focus_lost()
        scheduler.advance(10_000)
        assert len(effects.actions) == count
