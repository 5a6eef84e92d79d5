"""HTML pages served when a plain redirect is not enough.

Two pages are rendered:
- Bridge page: re-detects the device in the browser when the server-side
  result is inconclusive, then redirects to a store or the fallback site.
- Deep-link page: tries to open the native app and falls back to the store
  listing if the app does not take over.

URL values are HTML-escaped where they land in markup and JSON-encoded where
they land in the inline script. The inline script and style text is kept on
the ``RenderedPage`` so the Content-Security-Policy can pin their hashes.
"""

from __future__ import annotations

import html
import json
from dataclasses import dataclass
from string import Template

from starlette.responses import HTMLResponse

from smartlink.platform.client_flow import (
    ANDROID_BUTTON_ID,
    APP_OPENED_STATUS,
    BRIDGE_REDIRECT_DELAY_MS,
    DEEP_LINK_CHECK_DELAY_MS,
    DEEP_LINK_MAX_ELAPSED_MS,
    IOS_BUTTON_ID,
    NOT_INSTALLED_STATUS,
    SPINNER_ID,
    STORE_REDIRECT_DELAY_MS,
)
from smartlink.platform.device_detection import DeviceType
from smartlink.security.security_headers import page_headers

STATUS_ID = "status"
STORE_BUTTON_ID = "store-btn"

_STORE_NAMES = {DeviceType.IOS: "App Store", DeviceType.ANDROID: "Google Play"}
_STORE_LABELS = {
    DeviceType.IOS: "Download on App Store",
    DeviceType.ANDROID: "Get it on Google Play",
}


@dataclass(frozen=True)
class BridgePageOptions:
    """Values embedded in the bridge page."""

    android_store_url: str
    ios_store_url: str
    fallback_url: str
    query_string: str = ""


@dataclass(frozen=True)
class DeepLinkPageOptions:
    """Values embedded in the deep-link page."""

    deep_link: str
    store_url: str
    device: DeviceType
    query_string: str = ""


@dataclass(frozen=True)
class RenderedPage:
    """A rendered HTML document and the inline blocks it carries."""

    html: str
    scripts: tuple[str, ...]
    styles: tuple[str, ...]

    def headers(self) -> dict[str, str]:
        """Response headers, with a CSP pinned to this page's inline blocks."""
        return page_headers(scripts=self.scripts, styles=self.styles)

    def to_response(self) -> HTMLResponse:
        """Build the 200 response for this page."""
        return HTMLResponse(content=self.html, status_code=200, headers=self.headers())


def append_query_string(url: str, query_string: str) -> str:
    """Forward an incoming query string onto a target URL.

    Joined with ``&`` when the URL already has a query, ``?`` otherwise.
    An empty query string leaves the URL unchanged.
    """
    if not query_string:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query_string}"


def _attr(value: str) -> str:
    """Escape a value for HTML body or attribute context."""
    return html.escape(value, quote=True)


def _js_string(value: str) -> str:
    """Encode a value as a JavaScript string literal safe inside <script>."""
    return (
        json.dumps(value)
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
    )


_BASE_STYLE = """
    * { box-sizing: border-box; margin: 0; padding: 0; }
    body {
      font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
      display: flex;
      flex-direction: column;
      align-items: center;
      justify-content: center;
      min-height: 100vh;
      background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
      color: #fff;
      padding: 20px;
      text-align: center;
    }
    .container {
      background: rgba(255,255,255,0.1);
      border-radius: 16px;
      padding: 40px;
      max-width: 400px;
      width: 100%;
    }
    h1 { font-size: 24px; margin-bottom: 16px; }
    p { font-size: 16px; opacity: 0.9; margin-bottom: 24px; }
    .spinner {
      width: 40px;
      height: 40px;
      border: 3px solid rgba(255,255,255,0.3);
      border-top-color: #fff;
      border-radius: 50%;
      animation: spin 1s linear infinite;
      margin: 0 auto 24px;
    }
    @keyframes spin { to { transform: rotate(360deg); } }
    .buttons { display: flex; flex-direction: column; gap: 12px; }
    a.btn {
      display: block;
      padding: 14px 24px;
      background: #fff;
      color: #667eea;
      text-decoration: none;
      border-radius: 8px;
      font-weight: 600;
    }"""

_BRIDGE_STYLE = (
    _BASE_STYLE
    + """
    .btn.secondary { background: rgba(255,255,255,0.2); color: #fff; }
  """
)

_DEEP_LINK_STYLE = (
    _BASE_STYLE
    + """
    .status { font-size: 14px; opacity: 0.8; margin-top: 16px; }
  """
)

_BRIDGE_SCRIPT = Template(
    """
    (function() {
      var androidUrl = $android_url;
      var iosUrl = $ios_url;
      var fallbackUrl = $fallback_url;

      function detectDevice() {
        var ua = navigator.userAgent || '';
        var platform = navigator.platform || '';
        var maxTouch = navigator.maxTouchPoints || 0;

        if (/android/i.test(ua)) {
          return 'android';
        }
        if (/iphone|ipad|ipod/i.test(ua)) {
          return 'ios';
        }
        if (/macintosh/i.test(ua) && maxTouch > 1) {
          return 'ios';
        }
        if (/iphone|ipad|ipod/i.test(platform)) {
          return 'ios';
        }
        if (/win|mac|linux/i.test(platform) && maxTouch <= 1) {
          return 'desktop';
        }
        return 'unknown';
      }

      var device = detectDevice();

      setTimeout(function() {
        if (device === 'android') {
          document.getElementById('$ios_button_id').style.display = 'none';
          window.location.href = androidUrl;
        } else if (device === 'ios') {
          document.getElementById('$android_button_id').style.display = 'none';
          window.location.href = iosUrl;
        } else {
          window.location.href = fallbackUrl;
        }
      }, $delay_ms);
    })();
  """
)

_DEEP_LINK_SCRIPT = Template(
    """
    (function() {
      var deepLink = $deep_link;
      var storeUrl = $store_url;
      var notInstalledText = $not_installed_text;
      var openedText = $opened_text;
      var status = document.getElementById('$status_id');
      var spinner = document.getElementById('$spinner_id');

      var appOpened = false;
      document.addEventListener('visibilitychange', function() {
        if (document.hidden) {
          appOpened = true;
        }
      });
      window.addEventListener('blur', function() {
        appOpened = true;
      });

      var start = Date.now();
      window.location.href = deepLink;

      setTimeout(function() {
        if (!appOpened && Date.now() - start < $max_elapsed_ms) {
          status.textContent = notInstalledText;
          setTimeout(function() {
            window.location.href = storeUrl;
          }, $store_delay_ms);
        } else if (appOpened) {
          status.textContent = openedText;
          spinner.style.display = 'none';
        }
      }, $check_delay_ms);
    })();
  """
)


def _document(title: str, style: str, body: str, script: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{title}</title>
  <style>{style}</style>
</head>
<body>
{body}
  <script>{script}</script>
</body>
</html>"""


def render_bridge_page(options: BridgePageOptions) -> RenderedPage:
    """Render the bridge page that finishes device detection in the browser.

    Args:
        options: Store and fallback URLs plus the incoming query string,
            which is forwarded onto the fallback URL only.

    Returns:
        The rendered page.
    """
    fallback = append_query_string(options.fallback_url, options.query_string)

    script = _BRIDGE_SCRIPT.substitute(
        android_url=_js_string(options.android_store_url),
        ios_url=_js_string(options.ios_store_url),
        fallback_url=_js_string(fallback),
        ios_button_id=IOS_BUTTON_ID,
        android_button_id=ANDROID_BUTTON_ID,
        delay_ms=BRIDGE_REDIRECT_DELAY_MS,
    )

    body = f"""  <div class="container">
    <div class="spinner" id="{SPINNER_ID}"></div>
    <h1>Opening App...</h1>
    <p>Detecting your device. If you're not redirected automatically, choose an option below.</p>
    <div class="buttons">
      <a href="{_attr(options.ios_store_url)}" class="btn" id="{IOS_BUTTON_ID}">Download on App Store</a>
      <a href="{_attr(options.android_store_url)}" class="btn" id="{ANDROID_BUTTON_ID}">Get it on Google Play</a>
      <a href="{_attr(fallback)}" class="btn secondary">Visit Website</a>
    </div>
  </div>"""

    return RenderedPage(
        html=_document("Redirecting...", _BRIDGE_STYLE, body, script),
        scripts=(script,),
        styles=(_BRIDGE_STYLE,),
    )


def render_deep_link_page(options: DeepLinkPageOptions) -> RenderedPage:
    """Render the page that opens the app and falls back to the store.

    Args:
        options: Deep link, store URL, device, and the incoming query string,
            which is forwarded onto the deep link only.

    Returns:
        The rendered page.
    """
    deep_link = append_query_string(options.deep_link, options.query_string)
    device = DeviceType.IOS if options.device == DeviceType.IOS else DeviceType.ANDROID
    store_name = _STORE_NAMES[device]

    script = _DEEP_LINK_SCRIPT.substitute(
        deep_link=_js_string(deep_link),
        store_url=_js_string(options.store_url),
        not_installed_text=_js_string(NOT_INSTALLED_STATUS.format(store_name=store_name)),
        opened_text=_js_string(APP_OPENED_STATUS),
        status_id=STATUS_ID,
        spinner_id=SPINNER_ID,
        max_elapsed_ms=DEEP_LINK_MAX_ELAPSED_MS,
        store_delay_ms=STORE_REDIRECT_DELAY_MS,
        check_delay_ms=DEEP_LINK_CHECK_DELAY_MS,
    )

    body = f"""  <div class="container">
    <div class="spinner" id="{SPINNER_ID}"></div>
    <h1>Opening App...</h1>
    <p>Attempting to open the app. If it doesn't open, tap the button below.</p>
    <div class="buttons">
      <a href="{_attr(options.store_url)}" class="btn" id="{STORE_BUTTON_ID}">{_STORE_LABELS[device]}</a>
    </div>
    <p class="status" id="{STATUS_ID}">Trying to open app...</p>
  </div>"""

    return RenderedPage(
        html=_document("Opening App...", _DEEP_LINK_STYLE, body, script),
        scripts=(script,),
        styles=(_DEEP_LINK_STYLE,),
    )
