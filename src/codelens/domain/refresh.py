"""Refresh pipeline: list lenses, cache them, display, resolve."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Hashable, Iterable

from ..events import (
    DocumentUnloaded,
    EventBus,
    RefreshFailed,
    RefreshFinished,
    RefreshStarted,
    ServerDetached,
)
from ..models import CodeLens
from ..ports import LIST_LENSES
from ..settings import DisplayOptions

if TYPE_CHECKING:  # pragma: no cover
    from ..ports import DocumentHost, ServerRegistry
    from ..state import LensState
    from .lens_store import LensStore
    from .renderer import Renderer
    from .resolver import ResolveCoordinator

LOGGER = logging.getLogger(__name__)


class RefreshCoordinator:
    """Runs at most one refresh per document at a time.

    A refresh requested while another is in flight for the same document is
    dropped, not queued. There is no timeout: a server that never answers
    blocks further refreshes of that document until it answers or the
    document unloads or loses the server.

    Events Emitted:
        - RefreshStarted: when list requests went out for a document.
        - RefreshFinished: when a server's lenses finished resolving.
        - RefreshFailed: when a list request failed.
    """

    def __init__(
        self,
        state: LensState,
        host: DocumentHost,
        servers: ServerRegistry,
        store: LensStore,
        renderer: Renderer,
        resolver: ResolveCoordinator,
        event_bus: EventBus,
        *,
        default_display: DisplayOptions | None = None,
    ) -> None:
        self._state = state
        self._host = host
        self._servers = servers
        self._store = store
        self._renderer = renderer
        self._resolver = resolver
        self._bus = event_bus
        self._default_display = default_display or DisplayOptions()

        event_bus.subscribe(DocumentUnloaded, self._on_document_unloaded)
        event_bus.subscribe(ServerDetached, self._on_server_detached)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def refresh(self, document: Hashable | None = None, display: Any = None) -> list[Hashable]:
        """Request lenses for ``document`` (or every loaded document).

        Args:
            document: Restrict the refresh to one document.
            display: :class:`DisplayOptions` or an options mapping.

        Returns:
            The documents a refresh was started for.

        Raises:
            InvalidOptionsError: if ``display`` has the wrong shape.
        """
        options = DisplayOptions.coerce(display, default=self._default_display)

        if document is not None:
            targets: Iterable[Hashable] = [document] if self._host.is_loaded(document) else []
        else:
            targets = list(self._host.loaded_documents())

        started: list[Hashable] = []
        for doc in targets:
            if doc in self._state.in_flight:
                LOGGER.debug("RefreshCoordinator.refresh: %r already in flight, dropping", doc)
                continue
            if self._start(doc, options):
                started.append(doc)
        return started

    def on_codelens(
        self,
        error: Any,
        result: Iterable[CodeLens | Any] | None,
        document: Hashable,
        server_id: Hashable,
        display: Any = None,
    ) -> None:
        """Handle a ``textDocument/codeLens`` response.

        On error the document's refresh mark is cleared and the lenses
        already cached for this server are kept. On success the lenses are
        saved, already-resolved ones are displayed right away, and the rest
        are resolved.
        """
        options = DisplayOptions.coerce(display, default=self._default_display)

        if error is not None:
            self._state.in_flight.discard(document)
            LOGGER.error("codelens: list request to server %r failed: %s", server_id, error)
            self._bus.publish(RefreshFailed(document=document, server_id=server_id, error=error))
            return

        if not self._host.is_loaded(document):
            self._state.in_flight.discard(document)
            LOGGER.debug("RefreshCoordinator: %r unloaded before lenses arrived", document)
            return

        lenses = [CodeLens.coerce(item) for item in (result or ())]
        self._store.save(lenses, document, server_id)

        # Eager display for lenses that arrived resolved.
        self._renderer.display(lenses, document, server_id, options)

        def on_resolved() -> None:
            self._state.in_flight.discard(document)
            LOGGER.debug("RefreshCoordinator: %r resolved %d lens(es) from %r", document, len(lenses), server_id)
            self._bus.publish(RefreshFinished(document=document, server_id=server_id, lens_count=len(lenses)))

        self._resolver.resolve(lenses, document, server_id, on_resolved, options)

    def is_in_flight(self, document: Hashable) -> bool:
        return self._state.is_refreshing(document)

    def reset(self) -> None:
        self._bus.unsubscribe(DocumentUnloaded, self._on_document_unloaded)
        self._bus.unsubscribe(ServerDetached, self._on_server_detached)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _start(self, document: Hashable, options: DisplayOptions) -> bool:
        self._state.in_flight.add(document)
        params = {"textDocument": self._host.text_document(document)}

        sent: list[Hashable] = []
        for server in self._servers.attached(document):
            server_id = server.id

            def handler(error: Any, result: Any, server_id: Hashable = server_id) -> None:
                self.on_codelens(error, result, document, server_id, options)

            request_id = server.request(LIST_LENSES, params, handler)
            if request_id is not None:
                sent.append(server_id)

        if not sent:
            self._state.in_flight.discard(document)
            LOGGER.debug("RefreshCoordinator: no server answered for %r", document)
            return False

        LOGGER.debug("RefreshCoordinator: refreshing %r via %s", document, sent)
        self._bus.publish(RefreshStarted(document=document, server_ids=tuple(sent)))
        return True

    def _on_document_unloaded(self, event: DocumentUnloaded) -> None:
        self._state.in_flight.discard(event.document)

    def _on_server_detached(self, event: ServerDetached) -> None:
        self._store.clear(event.server_id, event.document)
        self._state.in_flight.discard(event.document)


__all__ = ["RefreshCoordinator"]
