"""Lens cache keyed by document and server.

The store owns the per-document subscriptions that keep displayed lenses in
step with the buffer: edits clear the touched lines and unloading a document
drops its cache entry.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Hashable, Iterable, Iterator, Sequence

from ..events import DocumentLinesChanged, DocumentUnloaded, EventBus, LensesSaved
from ..models import CodeLens, Namespace

if TYPE_CHECKING:  # pragma: no cover
    from ..ports import AnnotationSurface, DocumentHost
    from ..state import LensState

LOGGER = logging.getLogger(__name__)


class _DocumentWatch:
    """Event subscriptions for one cached document."""

    __slots__ = ("document", "_store", "__weakref__")

    def __init__(self, document: Hashable, store: LensStore) -> None:
        self.document = document
        self._store = store

    def attach(self, bus: EventBus) -> None:
        bus.subscribe(DocumentLinesChanged, self.on_lines)
        bus.subscribe(DocumentUnloaded, self.on_unload)

    def detach(self, bus: EventBus) -> None:
        bus.unsubscribe(DocumentLinesChanged, self.on_lines)
        bus.unsubscribe(DocumentUnloaded, self.on_unload)

    def on_lines(self, event: DocumentLinesChanged) -> None:
        if event.document == self.document:
            self._store.clear_lines(self.document, event.first_line, event.last_line)

    def on_unload(self, event: DocumentUnloaded) -> None:
        if event.document == self.document:
            self._store.drop(self.document)


class LensStore:
    """Domain manager for cached lenses.

    Events Emitted:
        - LensesSaved: after a server's lens list was stored.
    """

    def __init__(
        self,
        state: LensState,
        host: DocumentHost,
        surface: AnnotationSurface,
        event_bus: EventBus,
    ) -> None:
        self._state = state
        self._host = host
        self._surface = surface
        self._bus = event_bus
        self._watches: dict[Hashable, _DocumentWatch] = {}

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def save(self, lenses: Iterable[CodeLens] | None, document: Hashable, server_id: Hashable) -> None:
        """Replace the lenses ``server_id`` reported for ``document``.

        Unloaded documents are ignored.
        """
        if not self._host.is_loaded(document):
            LOGGER.debug("LensStore.save: document %r not loaded, skipping", document)
            return

        by_server = self._state.cache.get(document)
        if by_server is None:
            by_server = {}
            self._state.cache[document] = by_server
            self._watch(document)

        stored = list(lenses or ())
        by_server[server_id] = stored
        self._state.namespaces.get(server_id)
        LOGGER.debug(
            "LensStore.save: document=%r, server=%r, lenses=%d",
            document,
            server_id,
            len(stored),
        )
        self._bus.publish(LensesSaved(document=document, server_id=server_id, count=len(stored)))

    def clear(self, server_id: Hashable | None = None, document: Hashable | None = None) -> None:
        """Clear cached lenses and their annotations.

        Args:
            server_id: Limit to one server; ``None`` means every server that
                has a namespace or cached lenses.
            document: Limit to one document; ``None`` means every loaded one.
        """
        documents: Sequence[Hashable] = (
            [document] if document is not None else list(self._host.loaded_documents())
        )
        known = self._state.namespaces.known_servers()
        for doc in documents:
            server_ids: Sequence[Hashable]
            if server_id is not None:
                server_ids = [server_id]
            else:
                server_ids = list(known) + [sid for sid in self._state.cache.get(doc, {}) if sid not in known]
            for sid in server_ids:
                namespace = self._state.namespaces.get(sid)
                # Lenses shown through display() may have no cache entry.
                by_server = self._state.cache.get(doc)
                if by_server is not None:
                    by_server[sid] = []
                self._surface.clear(doc, namespace, 0, None)
        LOGGER.debug("LensStore.clear: server=%r, document=%r", server_id, document)

    def clear_lines(self, document: Hashable, first_line: int, last_line: int) -> None:
        """Clear annotations on ``[first_line, last_line)`` for every cached server."""

        by_server = self._state.cache.get(document)
        if not by_server:
            return
        for sid in by_server:
            self._surface.clear(document, self._state.namespaces.get(sid), first_line, last_line)

    def clear_line(self, document: Hashable, namespace: Namespace, line: int) -> None:
        self._surface.clear(document, namespace, line, line + 1)

    def drop(self, document: Hashable) -> None:
        """Forget ``document`` entirely (unload/wipe)."""

        self._state.cache.pop(document, None)
        watch = self._watches.pop(document, None)
        if watch is not None:
            watch.detach(self._bus)
        LOGGER.debug("LensStore.drop: document=%r", document)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, document: Hashable | None = None) -> list[CodeLens]:
        """Return every cached lens for ``document`` (current document when ``None``)."""

        if document is None:
            document = self._host.current_document()
        by_server = self._state.cache.get(document)
        if not by_server:
            return []
        lenses: list[CodeLens] = []
        for server_lenses in by_server.values():
            lenses.extend(server_lenses)
        return lenses

    def iter_entries(self, document: Hashable) -> Iterator[tuple[Hashable, CodeLens]]:
        """Yield ``(server_id, lens)`` pairs cached for ``document``."""

        for sid, server_lenses in self._state.cache.get(document, {}).items():
            for lens in server_lenses:
                yield sid, lens

    def has_entry(self, document: Hashable) -> bool:
        return document in self._state.cache

    def watched_documents(self) -> tuple[Hashable, ...]:
        return tuple(self._watches)

    def reset(self) -> None:
        """Unsubscribe every watcher. Cache contents live in the state object."""

        for watch in self._watches.values():
            watch.detach(self._bus)
        self._watches.clear()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _watch(self, document: Hashable) -> None:
        if document in self._watches:
            return
        watch = _DocumentWatch(document, self)
        watch.attach(self._bus)
        self._watches[document] = watch


__all__ = ["LensStore"]
