"""Event bus and the events exchanged between the host and the lens core.

Inbound events are published by the document host (edits, unloads, server
detaches). Outbound events are published by the core so a host can observe
refresh progress without reaching into coordinator state.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar
from weakref import WeakMethod

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for all events carried by :class:`EventBus`."""


# =============================================================================
# Host → core
# =============================================================================


@dataclass(slots=True)
class DocumentLinesChanged(Event):
    """Emitted by the host when lines ``[first_line, last_line)`` were edited.

    Attributes:
        document: Handle of the edited document.
        first_line: First affected line (zero-indexed).
        last_line: Line after the last affected one, in pre-edit numbering.
    """

    document: Any
    first_line: int
    last_line: int


@dataclass(slots=True)
class DocumentUnloaded(Event):
    """Emitted by the host when a document is unloaded or wiped."""

    document: Any


@dataclass(slots=True)
class ServerDetached(Event):
    """Emitted by the host when a server stops serving a document."""

    document: Any
    server_id: Any


# =============================================================================
# Core → host
# =============================================================================


@dataclass(slots=True)
class LensesSaved(Event):
    """Emitted after a server's lens list for a document was cached."""

    document: Any
    server_id: Any
    count: int


@dataclass(slots=True)
class RefreshStarted(Event):
    """Emitted when list requests went out for a document.

    Attributes:
        document: The refreshed document.
        server_ids: Servers a list request was sent to.
    """

    document: Any
    server_ids: tuple[Any, ...]


@dataclass(slots=True)
class RefreshFinished(Event):
    """Emitted when a server's lenses for a document finished resolving."""

    document: Any
    server_id: Any
    lens_count: int


@dataclass(slots=True)
class RefreshFailed(Event):
    """Emitted when a list request failed; cached lenses were left untouched."""

    document: Any
    server_id: Any
    error: Any


@dataclass(slots=True)
class LensExecuted(Event):
    """Emitted when a server acknowledged a lens command."""

    document: Any
    server_id: Any
    command: str
    error: Any = None


# Events that fire per keystroke and should not be traced on publish.
_QUIET_EVENT_TYPES: set[type] = {DocumentLinesChanged}


class EventBus(Generic[E]):
    """Typed publish/subscribe bus.

    Handlers run synchronously in subscription order on the publishing
    thread. Bound methods are held through :class:`WeakMethod` so a
    subscriber that is garbage collected drops out on the next publish; plain
    functions and lambdas are held strongly.

    Not thread-safe. All calls happen on the host's control thread.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: defaultdict[type[Event], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Register ``handler`` for events of exactly ``event_type``."""

        self._handlers[event_type].append(_HandlerRef.create(handler))
        logger.debug("Subscribed %s to %s", _handler_name(handler), event_type.__name__)

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove the first registration of ``handler``; unknown handlers are ignored."""

        handlers = self._handlers.get(event_type)
        if not handlers:
            return
        for index, handler_ref in enumerate(handlers):
            if handler_ref.matches(handler):
                handlers.pop(index)
                logger.debug("Unsubscribed %s from %s", _handler_name(handler), event_type.__name__)
                return

    def publish(self, event: E) -> None:
        """Deliver ``event`` to every live handler.

        A handler that raises is logged and the remaining handlers still run.
        """

        event_type = type(event)
        handlers = self._handlers.get(event_type)
        if not handlers:
            return
        if event_type not in _QUIET_EVENT_TYPES:
            logger.debug("Publishing %s to %d handler(s)", event_type.__name__, len(handlers))

        # Handlers may (un)subscribe while we iterate.
        dead: list[_HandlerRef] = []
        for handler_ref in list(handlers):
            handler = handler_ref.resolve()
            if handler is None:
                dead.append(handler_ref)
                continue
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %s raised for event %s",
                    _handler_name(handler),
                    event_type.__name__,
                )

        for handler_ref in dead:
            if handler_ref in handlers:
                handlers.remove(handler_ref)

    def clear(self) -> None:
        """Remove every registered handler."""

        self._handlers.clear()

    def handler_count(self, event_type: type[E] | None = None) -> int:
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class _HandlerRef:
    """Weak reference for bound methods, strong reference otherwise."""

    __slots__ = ("_ref", "_is_weak")

    def __init__(self, handler_ref: Any, is_weak: bool) -> None:
        self._ref = handler_ref
        self._is_weak = is_weak

    @classmethod
    def create(cls, handler: Handler) -> _HandlerRef:
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), is_weak=True)
            except TypeError:
                pass
        return cls(handler, is_weak=False)

    def resolve(self) -> Handler | None:
        if not self._is_weak:
            return self._ref
        return self._ref()

    def matches(self, handler: Handler) -> bool:
        resolved = self.resolve()
        return resolved is not None and resolved == handler


def _handler_name(handler: Handler) -> str:
    if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
        return f"{type(handler.__self__).__name__}.{handler.__func__.__name__}"
    return getattr(handler, "__name__", repr(handler))


__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "DocumentLinesChanged",
    "DocumentUnloaded",
    "ServerDetached",
    "LensesSaved",
    "RefreshStarted",
    "RefreshFinished",
    "RefreshFailed",
    "LensExecuted",
]
