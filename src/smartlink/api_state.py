"""Per-application state shared by route modules.

The routing config and log sink are attached to ``app.state`` by
``create_app`` and read through these dependencies, so route modules never
touch module globals or the environment:

    @router.get("/")
    def handler(config: RoutingConfig = Depends(get_routing_config)): ...
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request

from smartlink.config.routing import RoutingConfig
from smartlink.events import LogSink


def get_routing_config(request: Request) -> RoutingConfig:
    """Routing config of the application serving this request."""
    return request.app.state.routing_config


def get_log_sink(request: Request) -> Optional[LogSink]:
    """Log sink for routing events; ``None`` means the default logger sink."""
    return getattr(request.app.state, "log_sink", None)
