"""Turn resolved lenses into annotation chunks."""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from typing import TYPE_CHECKING, Hashable, Iterable, Sequence

from ..models import LENS_STYLE, SEPARATOR_STYLE, Chunk, CodeLens, Namespace
from ..settings import DisplayOptions

if TYPE_CHECKING:  # pragma: no cover
    from ..ports import AnnotationSurface, DocumentHost
    from ..state import LensState

LOGGER = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


def group_by_line(lenses: Iterable[CodeLens]) -> dict[int, list[CodeLens]]:
    """Group lenses by start line, preserving their relative order."""

    grouped: defaultdict[int, list[CodeLens]] = defaultdict(list)
    for lens in lenses:
        grouped[lens.line].append(lens)
    return dict(grouped)


class Renderer:
    """Builds chunk lists for a line and hands them to a sink or the surface.

    A line is rendered only when every lens on it is resolved. Otherwise the
    current annotation is left in place, so users may briefly see outdated
    titles rather than text that flickers as each lens resolves.
    """

    def __init__(
        self,
        state: LensState,
        host: DocumentHost,
        surface: AnnotationSurface,
        *,
        separator: str = " | ",
        lens_style: str = LENS_STYLE,
        separator_style: str = SEPARATOR_STYLE,
    ) -> None:
        self._state = state
        self._host = host
        self._surface = surface
        self._separator = separator
        self._lens_style = lens_style
        self._separator_style = separator_style

    def build_chunks(self, lenses: Sequence[CodeLens]) -> list[Chunk] | None:
        """Return the chunks for ``lenses`` or ``None`` if any is unresolved."""

        ordered = sorted(lenses, key=lambda lens: lens.column)
        chunks: list[Chunk] = []
        for index, lens in enumerate(ordered):
            if lens.command is None:
                return None
            chunks.append(Chunk(_WHITESPACE_RE.sub(" ", lens.command.title), self._lens_style))
            if index < len(ordered) - 1:
                chunks.append(Chunk(self._separator, self._separator_style))
        return chunks

    def render_line(
        self,
        document: Hashable,
        namespace: Namespace,
        line: int,
        lenses: Sequence[CodeLens],
        options: DisplayOptions,
    ) -> bool:
        """Display ``lenses`` on ``line``.

        Returns:
            ``False`` when the line was skipped because a lens is unresolved.
        """
        chunks = self.build_chunks(lenses)
        if chunks is None:
            LOGGER.debug("Renderer.render_line: line %d has unresolved lenses, keeping stale text", line)
            return False

        if options.custom_display_sink is not None:
            options.custom_display_sink(document, namespace, line, chunks)
            return True

        self._surface.clear(document, namespace, line, line + 1)
        if not chunks:
            return True

        if options.virtual_block_above_line:
            indent = self._host.indent(document, line)
            if indent > 0:
                chunks.insert(0, Chunk(" " * indent, ""))
            self._surface.set_block_above(document, namespace, line, chunks)
        else:
            self._surface.set_inline(document, namespace, line, chunks)
        return True

    def display(
        self,
        lenses: Sequence[CodeLens] | None,
        document: Hashable,
        server_id: Hashable,
        options: DisplayOptions,
    ) -> None:
        """Render every line of ``document`` from ``lenses``.

        Lines without lenses are rendered with an empty list, which clears
        them. An empty ``lenses`` clears the whole namespace.
        """
        if not self._host.is_loaded(document):
            return

        namespace = self._state.namespaces.get(server_id)
        if not lenses:
            self._surface.clear(document, namespace, 0, None)
            return

        by_line = group_by_line(lenses)
        for line in range(self._host.line_count(document)):
            self.render_line(document, namespace, line, by_line.get(line, []), options)


__all__ = ["Renderer", "group_by_line"]
