"""Process-wide mutable state shared by the lens components.

Lifecycle:
    - Created once per controller (normally once per process).
    - ``cache`` entries appear on the first save for a document and go away
      when the document unloads.
    - ``in_flight`` holds documents with an outstanding refresh; entries are
      removed when the refresh completes, fails, or the document unloads or
      loses a server.
    - ``namespaces`` only grows.
    - :meth:`LensState.reset` drops everything, for tests and reloads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Hashable

from .domain.namespaces import NamespaceRegistry
from .models import CodeLens

LensCache = dict[Hashable, dict[Hashable, list[CodeLens]]]


@dataclass(slots=True)
class LensState:
    """Explicit container for the lens cache, refresh marks and namespaces."""

    cache: LensCache = field(default_factory=dict)
    in_flight: set[Hashable] = field(default_factory=set)
    namespaces: NamespaceRegistry = field(default_factory=NamespaceRegistry)

    def is_refreshing(self, document: Hashable) -> bool:
        return document in self.in_flight

    def reset(self) -> None:
        self.cache.clear()
        self.in_flight.clear()
        self.namespaces.reset()


__all__ = ["LensState", "LensCache"]
