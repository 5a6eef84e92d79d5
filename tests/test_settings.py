"""Tests for settings and logging configuration."""

import json
import logging
import sys
import time

import pytest
from pydantic import ValidationError

sys.path.insert(0, "src")

from smartlink.config.logging import (
    IPRedactingFilter,
    JSONFormatter,
    TextFormatter,
    redact_ip_addresses,
)
from smartlink.config.settings import (
    DEFAULT_ANDROID_STORE_URL,
    DEFAULT_FALLBACK_URL,
    DEFAULT_IOS_STORE_URL,
    Settings,
)

_ENV_VARS = (
    "ANDROID_STORE_URL",
    "IOS_STORE_URL",
    "FALLBACK_URL",
    "ANDROID_DEEP_LINK",
    "IOS_DEEP_LINK",
    "DEBUG",
    "LOG_FORMAT",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Isolate tests from the caller's environment."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


class TestSettings:
    """Tests for the Settings model."""

    def test_defaults(self):
        """Unset destinations fall back to the built-in URLs."""
        settings = _settings()
        assert settings.android_store_url == DEFAULT_ANDROID_STORE_URL
        assert settings.ios_store_url == DEFAULT_IOS_STORE_URL
        assert settings.fallback_url == DEFAULT_FALLBACK_URL
        assert settings.android_deep_link is None
        assert settings.ios_deep_link is None
        assert settings.debug_enabled is False
        assert settings.log_format == "json"

    def test_env_override(self, monkeypatch):
        """Destinations are read from the environment."""
        monkeypatch.setenv("ANDROID_STORE_URL", "https://play.example/app")
        monkeypatch.setenv("IOS_DEEP_LINK", "myapp://open")
        settings = _settings()
        assert settings.android_store_url == "https://play.example/app"
        assert settings.ios_deep_link == "myapp://open"

    def test_empty_values(self, monkeypatch):
        """Empty strings count as unset."""
        monkeypatch.setenv("FALLBACK_URL", "")
        monkeypatch.setenv("ANDROID_DEEP_LINK", "")
        settings = _settings()
        assert settings.fallback_url == DEFAULT_FALLBACK_URL
        assert settings.android_deep_link is None

    @pytest.mark.parametrize(
        "value, enabled",
        [("true", True), ("TRUE", False), ("1", False), ("yes", False), ("false", False)],
    )
    def test_debug_only_literal_true(self, value, enabled):
        """Only the exact string 'true' enables debug mode."""
        assert _settings(debug=value).debug_enabled is enabled

    def test_log_format_validated(self):
        """Unknown log formats are rejected."""
        assert _settings(log_format="TEXT").log_format == "text"
        with pytest.raises(ValidationError):
            _settings(log_format="xml")

    def test_routing_config(self):
        """Settings build the immutable routing config."""
        config = _settings(ios_deep_link="myapp://open", debug="true").routing_config()
        assert config.ios_store_url == DEFAULT_IOS_STORE_URL
        assert config.ios_deep_link == "myapp://open"
        assert config.android_deep_link is None
        assert config.debug is True


class TestIPRedaction:
    """Tests for IP redaction in log messages."""

    def test_ipv4(self):
        """IPv4 literals are replaced."""
        assert redact_ip_addresses("from 203.0.113.7 ok") == "from [redacted] ok"

    def test_ipv6(self):
        """IPv6 literals are replaced, clock times are not."""
        assert redact_ip_addresses("from 2001:db8::1 ok") == "from [redacted] ok"
        assert redact_ip_addresses("at 12:30:45") == "at 12:30:45"

    def test_filter(self):
        """Filter sanitizes message and string args."""
        record = logging.LogRecord(
            "test", logging.INFO, __file__, 1, "client %s via %d", ("10.1.2.3", 5), None
        )
        assert IPRedactingFilter().filter(record) is True
        assert record.getMessage() == "client [redacted] via 5"

    def test_colon_flood_is_linear(self):
        """A long run of colons in a request path is scanned quickly."""
        message = "[abc] GET /" + ":" * 10_000 + "x - 404"
        start = time.perf_counter()
        assert redact_ip_addresses(message) == message
        assert time.perf_counter() - start < 1.0

    def test_ipv6_trailing_dot(self):
        """Sentence punctuation after an address is kept."""
        assert redact_ip_addresses("peer fe80::1.") == "peer [redacted]."

    def test_filter_redacts_event_text_fields(self):
        """Addresses in the event referrer and user agent are replaced."""
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "event", None, None)
        event = {
            "referrer": "http://10.0.0.5/landing",
            "userAgent": "bot 2001:db8::7",
            "ipHash": "deadbeef",
        }
        record.redirect_event = event
        IPRedactingFilter().filter(record)
        assert record.redirect_event["referrer"] == "http://[redacted]/landing"
        assert record.redirect_event["userAgent"] == "bot [redacted]"
        assert record.redirect_event["ipHash"] == "deadbeef"
        assert event["referrer"] == "http://10.0.0.5/landing"


class TestFormatters:
    """Tests for log formatters."""

    def _record(self, msg="hello", **extra):
        record = logging.LogRecord("smartlink.test", logging.INFO, __file__, 1, msg, None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_json_basic(self):
        """JSON output has level, logger and message."""
        data = json.loads(JSONFormatter().format(self._record()))
        assert data["level"] == "info"
        assert data["logger"] == "smartlink.test"
        assert data["message"] == "hello"
        assert data["timestamp"].endswith("Z")

    def test_json_request_fields(self):
        """Request fields are included when present."""
        record = self._record(request_id="abc", method="GET", path="/", status_code=302)
        data = json.loads(JSONFormatter().format(record))
        assert data["request_id"] == "abc"
        assert data["status_code"] == 302

    def test_json_redirect_event(self):
        """Routing events are flattened into the JSON line."""
        event = {
            "timestamp": "2026-01-01T00:00:00.000Z",
            "chosenTarget": "bridge",
            "ipHash": "deadbeef",
        }
        data = json.loads(JSONFormatter().format(self._record(redirect_event=event)))
        assert data["type"] == "redirect_event"
        assert data["chosenTarget"] == "bridge"
        assert data["timestamp"] == "2026-01-01T00:00:00.000Z"

    def test_text(self):
        """Text output contains level and message."""
        line = TextFormatter().format(self._record())
        assert "INFO" in line
        assert line.endswith("hello")

    def test_text_redirect_event(self):
        """Text output carries every routing event field."""
        event = {
            "timestamp": "2026-01-01T00:00:00.000Z",
            "path": "/",
            "detectedDevice": "ios",
            "chosenTarget": "ios_store",
            "userAgent": "Mozilla/5.0 (iPhone)",
            "referrer": "https://social.example/",
            "queryKeys": ["utm"],
            "ipHash": "deadbeef",
        }
        line = TextFormatter().format(self._record(msg="/ ios -> ios_store", redirect_event=event))
        message, _, payload = line.partition("ios_store ")
        assert message.endswith("/ ios -> ")
        assert json.loads(payload) == event
