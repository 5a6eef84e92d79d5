"""Debug endpoint: shows how the current request would be routed.

Only served when debug mode is on. Client IP headers are reported as
``[redacted]``, never echoed.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

from smartlink.api_state import get_routing_config
from smartlink.config.routing import RoutingConfig
from smartlink.platform.device_detection import detect_device, needs_bridge_page
from smartlink.platform.targets import resolve_target

router = APIRouter(tags=["debug"])

REDACTED = "[redacted]"

_ECHOED_HEADERS = ("User-Agent", "Sec-CH-UA-Platform", "Sec-CH-UA-Mobile")
_IP_HEADERS = ("x-forwarded-for", "x-real-ip")


@router.get("/api/debug")
def debug_routing(
    request: Request, config: RoutingConfig = Depends(get_routing_config)
) -> Response:
    """Report detection, configuration and the resolved target."""
    if not config.debug:
        return PlainTextResponse("Not Found", status_code=404)

    detection = detect_device(request.headers)

    headers = {name: request.headers.get(name) for name in _ECHOED_HEADERS}
    for name in _IP_HEADERS:
        headers[name] = REDACTED if request.headers.get(name) else None

    debug_info = {
        "detection": detection.to_dict(),
        "needsBridgePage": needs_bridge_page(detection),
        "headers": headers,
        "config": config.to_dict(),
        "queryString": request.url.query,
        "chosenTarget": resolve_target(detection, config).value,
    }

    return JSONResponse(content=debug_info, headers={"Cache-Control": "no-store"})
