"""Public entry point wiring the lens components together."""

from __future__ import annotations

import logging
from typing import Any, Callable, Hashable, Iterable

from .domain.executor import Executor
from .domain.lens_store import LensStore
from .domain.namespaces import NamespaceRegistry
from .domain.refresh import RefreshCoordinator
from .domain.renderer import Renderer
from .domain.resolver import ResolveCoordinator
from .events import EventBus
from .models import CodeLens
from .ports import AnnotationSurface, DocumentHost, Prompter, ServerRegistry
from .settings import CodeLensSettings, DisplayOptions
from .state import LensState

LOGGER = logging.getLogger(__name__)


class CodeLensController:
    """Owns one :class:`LensState` and exposes the lens operations.

    Example::

        bus = EventBus()
        lenses = CodeLensController(host, surface, servers, prompter, event_bus=bus)
        lenses.refresh()
        ...
        bus.publish(DocumentLinesChanged(document=buf, first_line=3, last_line=4))
        lenses.run()
    """

    def __init__(
        self,
        host: DocumentHost,
        surface: AnnotationSurface,
        servers: ServerRegistry,
        prompter: Prompter,
        *,
        event_bus: EventBus | None = None,
        settings: CodeLensSettings | None = None,
        state: LensState | None = None,
        namespace_factory: Callable[[str], int] | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            host: Buffer model queries.
            surface: Annotation primitive.
            servers: Live server lookup.
            prompter: Selection and notification UI.
            event_bus: Bus carrying host notifications; one is created when
                omitted.
            settings: Display defaults, chunk styling and the package log
                level. The log level is only applied when settings are given.
            state: Pre-built state, mainly for tests sharing state.
            namespace_factory: Host allocator for namespace ids.
        """
        self.settings = settings or CodeLensSettings()
        if settings is not None:
            logging.getLogger("codelens").setLevel(settings.log_level_number)
        self.event_bus = event_bus if event_bus is not None else EventBus()
        self.state = state if state is not None else LensState(namespaces=NamespaceRegistry(namespace_factory))

        self.store = LensStore(self.state, host, surface, self.event_bus)
        self.renderer = Renderer(
            self.state,
            host,
            surface,
            separator=self.settings.separator,
            lens_style=self.settings.lens_style,
            separator_style=self.settings.separator_style,
        )
        self.resolver = ResolveCoordinator(self.state, host, servers, self.renderer)
        self.refresher = RefreshCoordinator(
            self.state,
            host,
            servers,
            self.store,
            self.renderer,
            self.resolver,
            self.event_bus,
            default_display=self.settings.display,
        )
        self.executor = Executor(
            self.state,
            host,
            servers,
            self.store,
            prompter,
            self.event_bus,
            refresh=self.refresh,
        )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def get(self, document: Hashable | None = None) -> list[CodeLens]:
        """Return all cached lenses for ``document`` (current document when ``None``)."""

        return self.store.get(document)

    def run(self) -> None:
        """Execute the lens on the cursor line."""

        self.executor.run()

    def execute(self, lens: CodeLens, document: Hashable, server_id: Hashable) -> None:
        """Execute ``lens`` on ``server_id``; raises ``ServerGoneError`` if it disconnected."""

        self.executor.execute(lens, document, server_id)

    def clear(self, server_id: Hashable | None = None, document: Hashable | None = None) -> None:
        """Clear lenses for one/all servers on one/all loaded documents."""

        self.store.clear(server_id, document)

    def display(
        self,
        lenses: Iterable[CodeLens | Any] | None,
        document: Hashable,
        server_id: Hashable,
        options: DisplayOptions | Any = None,
    ) -> None:
        """Render ``lenses`` directly, without touching the cache."""

        resolved_options = DisplayOptions.coerce(options, default=self.settings.display)
        items = [CodeLens.coerce(item) for item in lenses] if lenses else None
        self.renderer.display(items, document, server_id, resolved_options)

    def save(self, lenses: Iterable[CodeLens | Any] | None, document: Hashable, server_id: Hashable) -> None:
        """Store ``lenses`` for ``document`` and ``server_id``."""

        items = [CodeLens.coerce(item) for item in lenses] if lenses else None
        self.store.save(items, document, server_id)

    def refresh(self, document: Hashable | None = None, display: DisplayOptions | Any = None) -> list[Hashable]:
        """Refresh lenses for ``document`` (all loaded documents when ``None``)."""

        return self.refresher.refresh(document, display)

    def on_codelens(
        self,
        error: Any,
        result: Iterable[CodeLens | Any] | None,
        document: Hashable,
        server_id: Hashable,
        display: DisplayOptions | Any = None,
    ) -> None:
        """Bridge a ``textDocument/codeLens`` response into save, display and resolve."""

        self.refresher.on_codelens(error, result, document, server_id, display)

    def reset(self) -> None:
        """Drop every cached lens, refresh mark and namespace."""

        self.store.reset()
        self.state.reset()
        LOGGER.debug("CodeLensController.reset")

    def shutdown(self) -> None:
        """Detach from the event bus. The controller must not be used afterwards."""

        self.store.reset()
        self.refresher.reset()


__all__ = ["CodeLensController"]
