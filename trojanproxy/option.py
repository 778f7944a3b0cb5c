"""Registry of command-line option handlers tried in priority order."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .errors import TrojanError


class OptionHandler(ABC):
    """A way of starting the program, selected by command-line options."""

    @abstractmethod
    def name(self) -> str:
        """Unique name of the handler."""

    @abstractmethod
    def handle(self) -> None:
        """Run the handler; raise TrojanError when it does not apply."""

    @abstractmethod
    def priority(self) -> int:
        """Higher priorities are tried first."""


_handlers: dict[str, OptionHandler] = {}


def register_handler(handler: OptionHandler) -> None:
    """Register ``handler``, replacing any with the same name."""
    _handlers[handler.name()] = handler


def pop_option_handler() -> OptionHandler:
    """Remove and return the handler with the highest priority."""
    if not _handlers:
        raise TrojanError("no option left")
    best = max(_handlers.values(), key=lambda handler: handler.priority())
    del _handlers[best.name()]
    return best