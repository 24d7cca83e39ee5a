"""Shared test doubles for the lens core.

The fakes record every interaction so tests can assert on what the core did
without a real editor, transport or UI. Server requests are held until the
test answers them explicitly, which mirrors the asynchronous callbacks of a
real client.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any, Callable, Hashable, Sequence

from codelens.models import Chunk, CodeLens, Command, Namespace, Range


def make_lens(line: int, character: int = 0, title: str | None = None, command: str = "cmd", end_line: int | None = None) -> CodeLens:
    """Build a lens on ``line``; it is resolved when ``title`` is given."""

    resolved = Command(title=title, command=command) if title is not None else None
    return CodeLens(range=Range.from_lines(line, end_line, start_character=character), command=resolved)


class FakeHost:
    """In-memory document host."""

    def __init__(self) -> None:
        self.documents: dict[Hashable, list[int]] = {}
        self.current: Hashable | None = None
        self.cursor: int = 0

    def open(self, document: Hashable, line_count: int = 10, *, indents: dict[int, int] | None = None) -> Hashable:
        indent_by_line = [0] * line_count
        for line, indent in (indents or {}).items():
            indent_by_line[line] = indent
        self.documents[document] = indent_by_line
        if self.current is None:
            self.current = document
        return document

    def unload(self, document: Hashable) -> None:
        self.documents.pop(document, None)

    def is_loaded(self, document: Hashable) -> bool:
        return document in self.documents

    def loaded_documents(self) -> list[Hashable]:
        return list(self.documents)

    def line_count(self, document: Hashable) -> int:
        return len(self.documents.get(document, ()))

    def indent(self, document: Hashable, line: int) -> int:
        return self.documents[document][line]

    def current_document(self) -> Hashable:
        return self.current

    def cursor_line(self) -> int:
        return self.cursor

    def text_document(self, document: Hashable) -> dict[str, Any]:
        return {"uri": f"file:///{document}"}


class FakeSurface:
    """Annotation surface keeping the visible state per (document, namespace, line)."""

    def __init__(self) -> None:
        self.annotations: dict[tuple[Hashable, int, int], tuple[str, tuple[tuple[str, str], ...]]] = {}
        self.calls: list[tuple[Any, ...]] = []

    def set_inline(self, document: Hashable, namespace: Namespace, line: int, chunks: Sequence[Chunk]) -> None:
        self.calls.append(("inline", document, namespace.id, line, tuple(chunks)))
        self.annotations[(document, namespace.id, line)] = ("inline", tuple(c.as_tuple() for c in chunks))

    def set_block_above(self, document: Hashable, namespace: Namespace, line: int, chunks: Sequence[Chunk]) -> None:
        self.calls.append(("block", document, namespace.id, line, tuple(chunks)))
        self.annotations[(document, namespace.id, line)] = ("block", tuple(c.as_tuple() for c in chunks))

    def clear(self, document: Hashable, namespace: Namespace, start: int = 0, end: int | None = None) -> None:
        self.calls.append(("clear", document, namespace.id, start, end))
        for key in list(self.annotations):
            doc, ns_id, line = key
            if doc == document and ns_id == namespace.id and line >= start and (end is None or line < end):
                del self.annotations[key]

    def text(self, document: Hashable, namespace: Namespace, line: int) -> str | None:
        """Return the concatenated text shown on ``line`` or ``None``."""

        entry = self.annotations.get((document, namespace.id, line))
        if entry is None:
            return None
        return "".join(text for text, _style in entry[1])

    def render_calls(self) -> list[tuple[Any, ...]]:
        return [call for call in self.calls if call[0] in {"inline", "block"}]


@dataclass
class PendingRequest:
    method: str
    params: Any
    handler: Callable[[Any, Any], None]
    request_id: int

    def respond(self, result: Any = None) -> None:
        self.handler(None, result)

    def fail(self, error: Any) -> None:
        self.handler(error, None)


@dataclass
class FakeServer:
    """Language server whose requests stay pending until answered."""

    id: Hashable
    pending: list[PendingRequest] = field(default_factory=list)
    sent: list[PendingRequest] = field(default_factory=list)
    accept_requests: bool = True
    _ids: Any = field(default_factory=lambda: itertools.count(1))

    def request(self, method: str, params: Any, handler: Callable[[Any, Any], None]) -> int | None:
        if not self.accept_requests:
            return None
        request = PendingRequest(method, params, handler, next(self._ids))
        self.pending.append(request)
        self.sent.append(request)
        return request.request_id

    def requests(self, method: str) -> list[PendingRequest]:
        return [request for request in self.pending if request.method == method]

    def take(self, method: str) -> PendingRequest:
        for index, request in enumerate(self.pending):
            if request.method == method:
                return self.pending.pop(index)
        raise AssertionError(f"no pending {method} request")

    def resolve_with(self, title: str, command: str = "cmd") -> None:
        """Answer the oldest pending resolve request with ``title``."""

        request = self.take("codeLens/resolve")
        lens_range = Range.from_dict(request.params["range"])
        request.respond(CodeLens(range=lens_range, command=Command(title=title, command=command)))


class FakeServers:
    """Server registry mapping ids to :class:`FakeServer` and documents to attached ids."""

    def __init__(self) -> None:
        self.servers: dict[Hashable, FakeServer] = {}
        self.attachments: dict[Hashable, list[Hashable]] = {}

    def add(self, server_id: Hashable, *documents: Hashable) -> FakeServer:
        server = self.servers.setdefault(server_id, FakeServer(server_id))
        for document in documents:
            self.attachments.setdefault(document, []).append(server_id)
        return server

    def disconnect(self, server_id: Hashable) -> None:
        self.servers.pop(server_id, None)
        for attached in self.attachments.values():
            if server_id in attached:
                attached.remove(server_id)

    def get(self, server_id: Hashable) -> FakeServer | None:
        return self.servers.get(server_id)

    def attached(self, document: Hashable) -> list[FakeServer]:
        return [self.servers[sid] for sid in self.attachments.get(document, []) if sid in self.servers]


class FakePrompter:
    """Prompter recording selections; tests pick via :meth:`choose`."""

    def __init__(self) -> None:
        self.notices: list[str] = []
        self.selections: list[dict[str, Any]] = []

    def select(self, items, *, prompt, format_item, on_choice) -> None:
        self.selections.append(
            {
                "items": list(items),
                "labels": [format_item(item) for item in items],
                "prompt": prompt,
                "on_choice": on_choice,
            }
        )

    def notify(self, message: str) -> None:
        self.notices.append(message)

    def choose(self, index: int | None) -> None:
        selection = self.selections[-1]
        selection["on_choice"](None if index is None else selection["items"][index])
