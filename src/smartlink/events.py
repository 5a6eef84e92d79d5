"""Privacy-preserving routing events.

One event is emitted per routing decision. Events never carry the raw
client IP (only a one-way hash) or query values (only the keys).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional
from urllib.parse import parse_qsl

from smartlink.platform.device_detection import DeviceType, get_header
from smartlink.platform.targets import TargetType

logger = logging.getLogger(__name__)

MAX_USER_AGENT_LENGTH = 200

_FNV_OFFSET_BASIS = 2166136261
_FNV_PRIME = 16777619


@dataclass(frozen=True)
class LogEvent:
    """A single routing decision, as handed to the log sink."""

    timestamp: str
    path: str
    detected_device: DeviceType
    chosen_target: TargetType
    user_agent: str
    referrer: str
    query_keys: tuple[str, ...] = field(default_factory=tuple)
    ip_hash: str = "unknown"

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "timestamp": self.timestamp,
            "path": self.path,
            "detectedDevice": self.detected_device.value,
            "chosenTarget": self.chosen_target.value,
            "userAgent": self.user_agent,
            "referrer": self.referrer,
            "queryKeys": list(self.query_keys),
            "ipHash": self.ip_hash,
        }


LogSink = Callable[[LogEvent], None]


def hash_ip(ip: str) -> str:
    """Hash an IP address for logging.

    32-bit FNV-1a over the UTF-16 code units, as 8 lowercase hex digits.
    Empty input maps to ``"unknown"``.
    """
    if not ip:
        return "unknown"

    value = _FNV_OFFSET_BASIS
    encoded = ip.encode("utf-16-le")
    for i in range(0, len(encoded), 2):
        value ^= encoded[i] | (encoded[i + 1] << 8)
        value = (value * _FNV_PRIME) & 0xFFFFFFFF
    return f"{value:08x}"


def client_ip(headers: Mapping[str, str]) -> str:
    """Extract the client IP from proxy headers, or ``""`` if absent."""
    for name in ("x-forwarded-for", "x-real-ip"):
        raw = get_header(headers, name)
        if raw:
            first = raw.split(",")[0].strip()
            if first:
                return first
    return ""


def truncate_user_agent(user_agent: str, max_length: int = MAX_USER_AGENT_LENGTH) -> str:
    """Truncate a User-Agent to ``max_length`` characters plus an ellipsis."""
    if not user_agent:
        return ""
    if len(user_agent) > max_length:
        return user_agent[:max_length] + "..."
    return user_agent


def query_keys(query_string: str) -> tuple[str, ...]:
    """Return query parameter keys in order, without their values."""
    return tuple(key for key, _ in parse_qsl(query_string, keep_blank_values=True))


def build_log_event(
    path: str,
    headers: Mapping[str, str],
    query_string: str,
    detected_device: DeviceType,
    chosen_target: TargetType,
    now: Optional[datetime] = None,
) -> LogEvent:
    """Build a log event from the request context.

    Args:
        path: Request path.
        headers: Request headers.
        query_string: Raw query string, without the leading ``?``.
        detected_device: Server-side detection result.
        chosen_target: Resolved target.
        now: Event time, defaults to the current UTC time.

    Returns:
        The event, with the client IP hashed and query values dropped.
    """
    now = now or datetime.now(timezone.utc)
    timestamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds")

    return LogEvent(
        timestamp=timestamp.replace("+00:00", "Z"),
        path=path,
        detected_device=detected_device,
        chosen_target=chosen_target,
        user_agent=truncate_user_agent(get_header(headers, "User-Agent") or ""),
        referrer=get_header(headers, "Referer") or "",
        query_keys=query_keys(query_string),
        ip_hash=hash_ip(client_ip(headers)),
    )


def log_to_logger(event: LogEvent) -> None:
    """Default sink: structured record on the ``smartlink.events`` logger."""
    logger.info(
        f"{event.path} {event.detected_device.value} -> {event.chosen_target.value}",
        extra={"redirect_event": event.to_dict()},
    )


def emit_log_event(event: LogEvent, sink: Optional[LogSink] = None) -> None:
    """Hand an event to the sink. Sink failures never reach the caller."""
    sink = sink or log_to_logger
    try:
        sink(event)
    except Exception as e:
        logger.warning(f"Failed to emit redirect event: {e}")
