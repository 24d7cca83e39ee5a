"""Resolve unresolved lenses line by line.

Resolution fans out one ``codeLens/resolve`` request per unresolved lens and
fans back in per line: a line is rendered once all of its lenses settled, and
the pass completes once every line did. All callbacks run on the control
thread, so the countdowns below need no locking.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Callable, Hashable, Sequence

from ..models import CodeLens, Command
from ..ports import RESOLVE_LENS
from ..settings import DisplayOptions
from .renderer import group_by_line

if TYPE_CHECKING:  # pragma: no cover
    from ..ports import DocumentHost, ServerRegistry
    from ..state import LensState
    from .renderer import Renderer

LOGGER = logging.getLogger(__name__)


class ResolvePass:
    """Outer countdown over every lens of one resolve pass.

    ``remaining`` starts at the total lens count; each settled line subtracts
    its size. ``on_complete`` fires once, when the count reaches zero.
    """

    __slots__ = ("remaining", "_on_complete", "_completed")

    def __init__(self, total: int, on_complete: Callable[[], None]) -> None:
        self.remaining = total
        self._on_complete = on_complete
        self._completed = False

    @property
    def completed(self) -> bool:
        return self._completed

    def settle_line(self, size: int) -> None:
        self.remaining -= size
        if self.remaining <= 0 and not self._completed:
            self._completed = True
            self._on_complete()


class LineCountdown:
    """Inner countdown over the lenses starting on one line."""

    __slots__ = ("line", "lenses", "remaining", "_on_settled")

    def __init__(self, line: int, lenses: Sequence[CodeLens], on_settled: Callable[[LineCountdown], None]) -> None:
        self.line = line
        self.lenses = lenses
        self.remaining = len(lenses)
        self._on_settled = on_settled

    @property
    def settled(self) -> bool:
        return self.remaining == 0

    def settle_one(self) -> None:
        if self.remaining == 0:
            LOGGER.debug("LineCountdown.settle_one: line %d already settled", self.line)
            return
        self.remaining -= 1
        if self.remaining == 0:
            self._on_settled(self)


class ResolveCoordinator:
    """Fan-out/fan-in resolution of one server's lenses for one document."""

    def __init__(
        self,
        state: LensState,
        host: DocumentHost,
        servers: ServerRegistry,
        renderer: Renderer,
    ) -> None:
        self._state = state
        self._host = host
        self._servers = servers
        self._renderer = renderer

    def resolve(
        self,
        lenses: Sequence[CodeLens] | None,
        document: Hashable,
        server_id: Hashable,
        on_complete: Callable[[], None],
        options: DisplayOptions,
    ) -> ResolvePass:
        """Resolve ``lenses`` and render each line as soon as it is complete.

        Args:
            lenses: The cached lenses; resolved commands are written onto
                these instances.
            document: Document the lenses belong to.
            server_id: Server that produced them.
            on_complete: Called exactly once when every lens settled.
            options: Display options forwarded to the renderer.
        """
        lenses = list(lenses or ())
        resolve_pass = ResolvePass(len(lenses), on_complete)
        if not lenses:
            resolve_pass.settle_line(0)
            return resolve_pass

        namespace = self._state.namespaces.get(server_id)
        server = self._servers.get(server_id)

        def on_line_settled(countdown: LineCountdown) -> None:
            if self._host.is_loaded(document) and countdown.line < self._host.line_count(document):
                self._renderer.render_line(document, namespace, countdown.line, countdown.lenses, options)
            resolve_pass.settle_line(len(countdown.lenses))

        for line, line_lenses in group_by_line(lenses).items():
            countdown = LineCountdown(line, line_lenses, on_line_settled)
            for lens in line_lenses:
                if lens.resolved:
                    countdown.settle_one()
                elif server is None:
                    LOGGER.debug("ResolveCoordinator: server %r gone, line %d stays unresolved", server_id, line)
                    countdown.settle_one()
                else:
                    self._request(server, lens, document, countdown)
        return resolve_pass

    def _request(self, server: Any, lens: CodeLens, document: Hashable, countdown: LineCountdown) -> None:
        def handler(error: Any, result: Any) -> None:
            if error is not None:
                LOGGER.debug("ResolveCoordinator: resolve failed on line %d: %s", countdown.line, error)
            elif self._host.is_loaded(document):
                command = _result_command(result)
                if command is not None:
                    lens.command = command
            countdown.settle_one()

        request_id = server.request(RESOLVE_LENS, lens.to_dict(), handler)
        if request_id is None:
            LOGGER.debug("ResolveCoordinator: resolve for line %d was not sent", countdown.line)
            countdown.settle_one()


def _result_command(result: Any) -> Command | None:
    if isinstance(result, CodeLens):
        return result.command
    if isinstance(result, Mapping):
        raw = result.get("command")
        if isinstance(raw, Command):
            return raw
        if isinstance(raw, Mapping):
            return Command.from_dict(raw)
    return None


__all__ = ["ResolveCoordinator", "ResolvePass", "LineCountdown"]
