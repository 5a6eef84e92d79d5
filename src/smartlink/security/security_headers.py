"""Security headers for routing responses.

Rendered pages and redirects each get a fixed header set:
- Content-Security-Policy pinned to the page's own inline script and style
- X-Content-Type-Options
- X-Frame-Options
- Referrer-Policy
- Cache-Control / Pragma (responses are per-request and never cached)

The middleware fills in the baseline headers on every other response.
"""

from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

HTML_CONTENT_TYPE = "text/html; charset=utf-8"
NO_STORE_CACHE_CONTROL = "no-store, no-cache, must-revalidate"


@dataclass
class SecurityHeadersConfig:
    """Configuration for security headers.

    Args:
        csp_directives: CSP directives other than script-src/style-src,
            which are derived from the page content.
        frame_options: X-Frame-Options value.
        content_type_nosniff: Enable X-Content-Type-Options: nosniff.
        referrer_policy: Referrer-Policy value.
        cache_control: Cache-Control value for pages and redirects.
        custom_headers: Additional custom headers to add.
    """

    csp_directives: tuple[str, ...] = (
        "default-src 'self'",
        "img-src 'self' data:",
        "connect-src 'none'",
        "frame-ancestors 'none'",
        "base-uri 'none'",
        "form-action 'none'",
    )
    frame_options: str = "DENY"
    content_type_nosniff: bool = True
    referrer_policy: str = "strict-origin-when-cross-origin"
    cache_control: str = NO_STORE_CACHE_CONTROL
    custom_headers: dict[str, str] = field(default_factory=dict)


def csp_source_hash(source: str) -> str:
    """Return the CSP hash-source token for an inline script or style."""
    digest = hashlib.sha256(source.encode("utf-8")).digest()
    return f"'sha256-{base64.b64encode(digest).decode('ascii')}'"


def build_content_security_policy(
    scripts: Iterable[str] = (),
    styles: Iterable[str] = (),
    config: Optional[SecurityHeadersConfig] = None,
) -> str:
    """Build a CSP that allows only same-origin resources plus the given inline blocks.

    Args:
        scripts: Exact text of each inline ``<script>`` element.
        styles: Exact text of each inline ``<style>`` element.
        config: Header configuration.

    Returns:
        Content-Security-Policy header value.
    """
    config = config or SecurityHeadersConfig()
    script_src = " ".join(["'self'"] + [csp_source_hash(s) for s in scripts])
    style_src = " ".join(["'self'"] + [csp_source_hash(s) for s in styles])
    directives = [config.csp_directives[0]]
    directives.append(f"script-src {script_src}")
    directives.append(f"style-src {style_src}")
    directives.extend(config.csp_directives[1:])
    return "; ".join(directives)


def _common_headers(config: SecurityHeadersConfig) -> dict[str, str]:
    headers = {
        "Cache-Control": config.cache_control,
        "Pragma": "no-cache",
        "Referrer-Policy": config.referrer_policy,
    }
    headers.update(config.custom_headers)
    return headers


def page_headers(
    scripts: Iterable[str] = (),
    styles: Iterable[str] = (),
    config: Optional[SecurityHeadersConfig] = None,
) -> dict[str, str]:
    """Headers for a rendered HTML page."""
    config = config or SecurityHeadersConfig()
    headers = {"Content-Type": HTML_CONTENT_TYPE}
    headers.update(_common_headers(config))
    headers["Content-Security-Policy"] = build_content_security_policy(
        scripts, styles, config
    )
    if config.content_type_nosniff:
        headers["X-Content-Type-Options"] = "nosniff"
    if config.frame_options:
        headers["X-Frame-Options"] = config.frame_options
    return headers


def redirect_headers(
    location: str, config: Optional[SecurityHeadersConfig] = None
) -> dict[str, str]:
    """Headers for a 302 redirect."""
    config = config or SecurityHeadersConfig()
    headers = {"Location": location}
    headers.update(_common_headers(config))
    return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware that adds baseline security headers to every response.

    Headers already set by a route are left untouched.
    """

    def __init__(self, app, config: SecurityHeadersConfig | None = None) -> None:
        """Initialize middleware.

        Args:
            app: ASGI application.
            config: Security headers configuration.
        """
        super().__init__(app)
        self.config = config or SecurityHeadersConfig()

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        """Add security headers to response."""
        response = await call_next(request)

        if self.config.content_type_nosniff:
            response.headers.setdefault("X-Content-Type-Options", "nosniff")
        if self.config.frame_options:
            response.headers.setdefault("X-Frame-Options", self.config.frame_options)
        if self.config.referrer_policy:
            response.headers.setdefault(
                "Referrer-Policy", self.config.referrer_policy
            )

        return response
