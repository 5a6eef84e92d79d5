"""Smart-link redirect endpoint.

Detects the device, resolves the target, schedules the routing event and
answers with a 302 or a rendered page.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response

from smartlink.api_state import get_log_sink, get_routing_config
from smartlink.config.routing import RoutingConfig
from smartlink.events import LogSink, build_log_event, emit_log_event
from smartlink.platform.device_detection import DeviceType, detect_device
from smartlink.platform.targets import TargetType, resolve_target
from smartlink.render.pages import (
    BridgePageOptions,
    DeepLinkPageOptions,
    append_query_string,
    render_bridge_page,
    render_deep_link_page,
)
from smartlink.security.security_headers import redirect_headers

router = APIRouter(tags=["redirect"])


def redirect_302(location: str) -> Response:
    """Create a 302 redirect with no-store caching and referrer policy."""
    return Response(status_code=302, headers=redirect_headers(location))


def build_routing_response(
    target: TargetType,
    device: DeviceType,
    config: RoutingConfig,
    query_string: str,
) -> Response:
    """Turn a resolved target into the HTTP response.

    The query string is forwarded onto the fallback URL and deep links,
    never onto store listings.
    """
    if target == TargetType.BRIDGE:
        page = render_bridge_page(
            BridgePageOptions(
                android_store_url=config.android_store_url,
                ios_store_url=config.ios_store_url,
                fallback_url=config.fallback_url,
                query_string=query_string,
            )
        )
        return page.to_response()

    if target == TargetType.DEEP_LINK:
        page = render_deep_link_page(
            DeepLinkPageOptions(
                deep_link=config.deep_link_for(device),
                store_url=config.store_url_for(device),
                device=device,
                query_string=query_string,
            )
        )
        return page.to_response()

    if target == TargetType.ANDROID_STORE:
        return redirect_302(config.android_store_url)

    if target == TargetType.IOS_STORE:
        return redirect_302(config.ios_store_url)

    return redirect_302(append_query_string(config.fallback_url, query_string))


@router.get("/")
@router.get("/api/redirect")
def smart_redirect(
    request: Request,
    background_tasks: BackgroundTasks,
    config: RoutingConfig = Depends(get_routing_config),
    sink: Optional[LogSink] = Depends(get_log_sink),
) -> Response:
    """Route the visitor to the app, a store listing, or the fallback site."""
    query_string = request.url.query
    detection = detect_device(request.headers)
    target = resolve_target(detection, config)

    event = build_log_event(
        request.url.path, request.headers, query_string, detection.device, target
    )
    background_tasks.add_task(emit_log_event, event, sink)

    return build_routing_response(target, detection.device, config, query_string)
