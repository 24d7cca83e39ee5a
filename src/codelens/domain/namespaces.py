"""Per-server display namespaces."""

from __future__ import annotations

import itertools
import logging
from typing import Callable, Hashable

from ..models import Namespace

LOGGER = logging.getLogger(__name__)

NAMESPACE_PREFIX = "codelens:"


class NamespaceRegistry:
    """Get-or-create mapping from server id to :class:`Namespace`.

    Namespaces are never evicted: the number of distinct servers seen by one
    process is small, and hosts typically cannot free a namespace anyway.
    """

    __slots__ = ("_namespaces", "_factory", "_counter")

    def __init__(self, factory: Callable[[str], int] | None = None) -> None:
        """Initialize the registry.

        Args:
            factory: Optional host allocator returning a namespace id for a
                name. Defaults to a local counter starting at 1.
        """
        self._namespaces: dict[Hashable, Namespace] = {}
        self._factory = factory
        self._counter = itertools.count(1)

    def get(self, server_id: Hashable) -> Namespace:
        namespace = self._namespaces.get(server_id)
        if namespace is None:
            name = f"{NAMESPACE_PREFIX}{server_id}"
            ns_id = self._factory(name) if self._factory is not None else next(self._counter)
            namespace = Namespace(id=ns_id, name=name)
            self._namespaces[server_id] = namespace
            LOGGER.debug("NamespaceRegistry.get: allocated %s (id=%s)", name, ns_id)
        return namespace

    def known_servers(self) -> tuple[Hashable, ...]:
        """Return every server id a namespace was allocated for, in allocation order."""

        return tuple(self._namespaces)

    def __contains__(self, server_id: object) -> bool:
        return server_id in self._namespaces

    def __len__(self) -> int:
        return len(self._namespaces)

    def reset(self) -> None:
        """Forget every namespace. Only meant for test isolation."""

        self._namespaces.clear()
        self._counter = itertools.count(1)


__all__ = ["NamespaceRegistry", "NAMESPACE_PREFIX"]
