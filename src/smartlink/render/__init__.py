"""Rendered bridge and deep-link pages."""

from smartlink.render.pages import (
    BridgePageOptions,
    DeepLinkPageOptions,
    RenderedPage,
    append_query_string,
    render_bridge_page,
    render_deep_link_page,
)

__all__ = [
    "BridgePageOptions",
    "DeepLinkPageOptions",
    "RenderedPage",
    "append_query_string",
    "render_bridge_page",
    "render_deep_link_page",
]
