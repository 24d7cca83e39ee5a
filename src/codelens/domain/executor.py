"""Execute the lens under the cursor."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Hashable

from ..errors import ServerGoneError
from ..events import EventBus, LensExecuted
from ..models import CodeLens
from ..ports import EXECUTE_COMMAND

if TYPE_CHECKING:  # pragma: no cover
    from ..ports import DocumentHost, Prompter, ServerRegistry
    from ..state import LensState
    from .lens_store import LensStore

LOGGER = logging.getLogger(__name__)

NO_LENS_MESSAGE = "No executable codelens found at current line"
SELECT_PROMPT = "Code lenses:"


@dataclass(slots=True, frozen=True)
class LensCandidate:
    """An executable lens and the server that provided it."""

    server_id: Hashable
    lens: CodeLens

    @property
    def title(self) -> str:
        return self.lens.command.title if self.lens.command is not None else ""


class Executor:
    """Finds, disambiguates and executes lenses.

    Events Emitted:
        - LensExecuted: when the server answered the execute request.
    """

    def __init__(
        self,
        state: LensState,
        host: DocumentHost,
        servers: ServerRegistry,
        store: LensStore,
        prompter: Prompter,
        event_bus: EventBus,
        refresh: Callable[[], Any],
    ) -> None:
        """Initialize the executor.

        Args:
            refresh: Called with no arguments after a command completed;
                normally ``RefreshCoordinator.refresh``.
        """
        self._state = state
        self._host = host
        self._servers = servers
        self._store = store
        self._prompter = prompter
        self._bus = event_bus
        self._refresh = refresh

    def candidates(self, document: Hashable, line: int) -> list[LensCandidate]:
        """Return executable lenses of ``document`` covering ``line``."""

        return [
            LensCandidate(server_id=sid, lens=lens)
            for sid, lens in self._store.iter_entries(document)
            if lens.command is not None and lens.command.executable and lens.range.covers_line(line)
        ]

    def run(self) -> None:
        """Execute the lens at the cursor, asking the user when several apply."""

        document = self._host.current_document()
        line = self._host.cursor_line()
        options = self.candidates(document, line)

        if not options:
            self._prompter.notify(NO_LENS_MESSAGE)
            return
        if len(options) == 1:
            self.execute(options[0].lens, document, options[0].server_id)
            return

        def on_choice(choice: LensCandidate | None) -> None:
            if choice is None:
                LOGGER.debug("Executor.run: selection cancelled")
                return
            self.execute(choice.lens, document, choice.server_id)

        self._prompter.select(
            options,
            prompt=SELECT_PROMPT,
            format_item=lambda candidate: candidate.title,
            on_choice=on_choice,
        )

    def execute(self, lens: CodeLens, document: Hashable, server_id: Hashable) -> None:
        """Run ``lens``'s command on ``server_id`` and refresh afterwards.

        Raises:
            ServerGoneError: if ``server_id`` has no live connection.
        """
        line = lens.line
        namespace = self._state.namespaces.get(server_id)
        self._store.clear_line(document, namespace, line)

        server = self._servers.get(server_id)
        if server is None:
            raise ServerGoneError(
                f"Server {server_id!r} is required to execute a lens",
                server_id=server_id,
            )

        command = lens.command
        if command is None:
            raise ValueError("Cannot execute an unresolved lens")
        params: dict[str, Any] = {"command": command.command}
        if command.arguments is not None:
            params["arguments"] = command.arguments

        def handler(error: Any, _result: Any) -> None:
            if error is not None:
                LOGGER.error("codelens: command %s failed on server %r: %s", command.command, server_id, error)
            self._bus.publish(
                LensExecuted(document=document, server_id=server_id, command=command.command, error=error)
            )
            self._refresh()

        LOGGER.debug("Executor.execute: %s on %r (line %d)", command.command, server_id, line)
        if server.request(EXECUTE_COMMAND, params, handler) is None:
            LOGGER.warning("codelens: command %s was not sent to server %r", command.command, server_id)
            self._refresh()


__all__ = ["Executor", "LensCandidate", "NO_LENS_MESSAGE", "SELECT_PROMPT"]
