"""Registry of API services keyed by tunnel side."""

from __future__ import annotations

from typing import Any, Callable

from . import log

Handler = Callable[[Any, Any], Any]

_handlers: dict[str, Handler] = {}


def register_handler(name: str, handler: Handler) -> None:
    """Register the API service ``handler`` under ``name``."""
    _handlers[name] = handler


def run_service(ctx, name: str, auth):
    """Run the service registered as ``name``; do nothing if there is none."""
    handler = _handlers.get(name)
    if handler is None:
        log.debug("api handler not found", name)
        return None
    log.debug("api handler found", name)
    return handler(ctx, auth)