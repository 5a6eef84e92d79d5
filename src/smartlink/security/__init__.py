"""Security headers for rendered pages and redirects."""

from smartlink.security.security_headers import (
    HTML_CONTENT_TYPE,
    NO_STORE_CACHE_CONTROL,
    SecurityHeadersConfig,
    SecurityHeadersMiddleware,
    build_content_security_policy,
    csp_source_hash,
    page_headers,
    redirect_headers,
)

__all__ = [
    "HTML_CONTENT_TYPE",
    "NO_STORE_CACHE_CONTROL",
    "SecurityHeadersConfig",
    "SecurityHeadersMiddleware",
    "build_content_security_policy",
    "csp_source_hash",
    "page_headers",
    "redirect_headers",
]
