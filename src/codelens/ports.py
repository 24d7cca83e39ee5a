"""Interfaces the lens core consumes from its host.

The core never talks to a transport, a buffer model or a UI toolkit directly.
Hosts (and tests) implement these protocols and inject them into
:class:`codelens.controller.CodeLensController`.
"""

from __future__ import annotations

from typing import Any, Callable, Hashable, Mapping, Protocol, Sequence, TypeVar

from .models import Chunk, Namespace

__all__ = [
    "LIST_LENSES",
    "RESOLVE_LENS",
    "EXECUTE_COMMAND",
    "ResponseHandler",
    "LanguageServer",
    "ServerRegistry",
    "DocumentHost",
    "AnnotationSurface",
    "Prompter",
    "DisplaySink",
]

LIST_LENSES = "textDocument/codeLens"
RESOLVE_LENS = "codeLens/resolve"
EXECUTE_COMMAND = "workspace/executeCommand"

T = TypeVar("T")

# handler(error, result); exactly one of them is meaningful.
ResponseHandler = Callable[[Any, Any], None]

# sink(document, namespace, line, chunks)
DisplaySink = Callable[[Any, Namespace, int, list[Chunk]], None]


class LanguageServer(Protocol):
    """A live connection to a language server."""

    id: Hashable

    def request(self, method: str, params: Any, handler: ResponseHandler) -> Hashable | None:
        """Send ``method`` and return a request id, or ``None`` when nothing was sent.

        ``handler`` runs later on the control thread. For ``codeLens/resolve``
        ``params`` is the :class:`~codelens.models.CodeLens` itself and the
        result is a lens (or lens mapping); for ``textDocument/codeLens`` the
        result is a sequence of lenses.
        """
        ...


class ServerRegistry(Protocol):
    """Lookup of live server connections."""

    def get(self, server_id: Hashable) -> LanguageServer | None:
        """Return the live server for ``server_id`` or ``None`` once it disconnected."""
        ...

    def attached(self, document: Hashable) -> Sequence[LanguageServer]:
        """Return the servers providing lenses for ``document``."""
        ...


class DocumentHost(Protocol):
    """Buffer model queries."""

    def is_loaded(self, document: Hashable) -> bool:
        ...

    def loaded_documents(self) -> Sequence[Hashable]:
        ...

    def line_count(self, document: Hashable) -> int:
        ...

    def indent(self, document: Hashable, line: int) -> int:
        """Return the indentation of ``line`` in display columns."""
        ...

    def current_document(self) -> Hashable:
        ...

    def cursor_line(self) -> int:
        """Return the zero-indexed cursor line in the current document."""
        ...

    def text_document(self, document: Hashable) -> Mapping[str, Any]:
        """Return the text document identifier sent with list requests."""
        ...


class AnnotationSurface(Protocol):
    """Attach or clear styled annotation text, scoped by document and namespace."""

    def set_inline(self, document: Hashable, namespace: Namespace, line: int, chunks: Sequence[Chunk]) -> None:
        ...

    def set_block_above(self, document: Hashable, namespace: Namespace, line: int, chunks: Sequence[Chunk]) -> None:
        ...

    def clear(self, document: Hashable, namespace: Namespace, start: int = 0, end: int | None = None) -> None:
        """Clear lines ``[start, end)``; ``end=None`` clears to the end of the document."""
        ...


class Prompter(Protocol):
    """Interactive selection and notification UI."""

    def select(
        self,
        items: Sequence[T],
        *,
        prompt: str,
        format_item: Callable[[T], str],
        on_choice: Callable[[T | None], None],
    ) -> None:
        """Offer ``items``; ``on_choice`` receives the pick or ``None`` on cancel."""
        ...

    def notify(self, message: str) -> None:
        ...
