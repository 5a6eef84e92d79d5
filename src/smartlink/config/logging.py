"""Logging configuration with JSON format support."""

import ipaddress
import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any, Dict

REDACTED = "[redacted]"

_IPV4_PATTERN = re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b")
# Maximal runs of address characters; a single quantifier keeps the scan linear
_IPV6_TOKEN = re.compile(r"[0-9A-Fa-f:.]+")
_IPV6_MAX_LENGTH = 45

# Free-text routing event fields that may carry an address
_EVENT_TEXT_FIELDS = ("referrer", "userAgent")


def _redact_ipv6(match: "re.Match[str]") -> str:
    token = match.group(0)
    if token.count(":") < 2:
        return token
    candidate = token.rstrip(".")
    if len(candidate) > _IPV6_MAX_LENGTH:
        return token
    try:
        ipaddress.IPv6Address(candidate)
    except ValueError:
        return token
    return REDACTED + token[len(candidate):]


def redact_ip_addresses(message: str) -> str:
    """Replace IPv4 and IPv6 literals in a message."""
    message = _IPV4_PATTERN.sub(REDACTED, message)
    return _IPV6_TOKEN.sub(_redact_ipv6, message)


class IPRedactingFilter(logging.Filter):
    """Filter that strips client IP addresses from log messages.

    Routing events carry only a hash of the client IP; this keeps raw
    addresses out of free-form messages and the event's free-text fields.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Sanitize the log message."""
        if record.msg:
            record.msg = redact_ip_addresses(str(record.msg))
        if record.args:
            sanitized_args = []
            for arg in record.args:
                if isinstance(arg, str):
                    sanitized_args.append(redact_ip_addresses(arg))
                else:
                    sanitized_args.append(arg)
            record.args = tuple(sanitized_args)
        event = getattr(record, "redirect_event", None)
        if isinstance(event, dict):
            event = dict(event)
            for key in _EVENT_TEXT_FIELDS:
                if isinstance(event.get(key), str):
                    event[key] = redact_ip_addresses(event[key])
            record.redirect_event = event
        return True


class JSONFormatter(logging.Formatter):
    """Format log records as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add extra fields if present
        if hasattr(record, "request_id"):
            log_data["request_id"] = record.request_id
        if hasattr(record, "method"):
            log_data["method"] = record.method
        if hasattr(record, "path"):
            log_data["path"] = record.path
        if hasattr(record, "status_code"):
            log_data["status_code"] = record.status_code
        if hasattr(record, "duration_ms"):
            log_data["duration_ms"] = record.duration_ms

        # Routing events replace the record timestamp with their own
        if hasattr(record, "redirect_event"):
            log_data["type"] = "redirect_event"
            log_data.update(record.redirect_event)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class TextFormatter(logging.Formatter):
    """Standard text formatter with consistent format."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        """Format the record, appending any routing event as JSON."""
        line = super().format(record)
        if hasattr(record, "redirect_event"):
            line = f"{line} {json.dumps(record.redirect_event)}"
        return line


def configure_logging(
    level: str = "INFO", format: str = "json", sanitize_logs: bool = True
) -> None:
    """Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Log format ('text' or 'json')
        sanitize_logs: If True, redact IP addresses from log messages
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))

    if format.lower() == "json":
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(TextFormatter())

    if sanitize_logs:
        console_handler.addFilter(IPRedactingFilter())

    root_logger.addHandler(console_handler)

    # uvicorn's access log prints the client address
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
