"""Dataclasses describing code lenses and their display chunks."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Hashable

__all__ = [
    "Position",
    "Range",
    "Command",
    "CodeLens",
    "Chunk",
    "Namespace",
    "Document",
    "ServerId",
    "LENS_STYLE",
    "SEPARATOR_STYLE",
]

# Opaque handles supplied by the host.
Document = Hashable
ServerId = Hashable

LENS_STYLE = "CodeLens"
SEPARATOR_STYLE = "CodeLensSeparator"


def _coerce_line(value: Any, label: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Position {label} must be an integer") from exc
    if number < 0:
        raise ValueError(f"Position {label} must not be negative")
    return number


@dataclass(slots=True, frozen=True)
class Position:
    """Zero-based line/character position inside a document."""

    line: int
    character: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "line", _coerce_line(self.line, "line"))
        object.__setattr__(self, "character", _coerce_line(self.character, "character"))

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Position:
        return cls(line=payload["line"], character=payload.get("character", 0))

    def to_dict(self) -> dict[str, int]:
        return {"line": self.line, "character": self.character}


@dataclass(slots=True, frozen=True)
class Range:
    """Span between two positions.

    Line coverage treats the end line as part of the range, so a lens spanning
    ``(3, 0)-(3, 12)`` covers line 3.
    """

    start: Position
    end: Position

    @classmethod
    def from_lines(cls, start_line: int, end_line: int | None = None, *, start_character: int = 0) -> Range:
        """Shortcut for building a range from line numbers."""

        last = start_line if end_line is None else end_line
        return cls(Position(start_line, start_character), Position(last, 0))

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Range:
        return cls(start=Position.from_dict(payload["start"]), end=Position.from_dict(payload["end"]))

    def covers_line(self, line: int) -> bool:
        """Return ``True`` when ``line`` falls between the start and end lines."""

        return self.start.line <= line <= self.end.line

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}


@dataclass(slots=True, frozen=True)
class Command:
    """Executable command attached to a resolved lens."""

    title: str
    command: str = ""
    arguments: Any = None

    @property
    def executable(self) -> bool:
        return bool(self.command)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Command:
        return cls(
            title=str(payload.get("title", "")),
            command=str(payload.get("command") or ""),
            arguments=payload.get("arguments"),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"title": self.title, "command": self.command}
        if self.arguments is not None:
            payload["arguments"] = self.arguments
        return payload


@dataclass(slots=True, eq=False)
class CodeLens:
    """A range-anchored advisory command.

    Lenses compare by identity: the cache, the resolver and the renderer all
    share the same instances, and resolution fills :attr:`command` in place.
    """

    range: Range
    command: Command | None = None
    data: Any = None

    @property
    def resolved(self) -> bool:
        return self.command is not None

    @property
    def line(self) -> int:
        """Line the lens is anchored (and displayed) on."""

        return self.range.start.line

    @property
    def column(self) -> int:
        return self.range.start.character

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> CodeLens:
        raw_command = payload.get("command")
        command = Command.from_dict(raw_command) if isinstance(raw_command, Mapping) else None
        return cls(range=Range.from_dict(payload["range"]), command=command, data=payload.get("data"))

    @classmethod
    def coerce(cls, value: CodeLens | Mapping[str, Any]) -> CodeLens:
        if isinstance(value, CodeLens):
            return value
        if isinstance(value, Mapping):
            return cls.from_dict(value)
        raise TypeError(f"Cannot build a CodeLens from {type(value).__name__}")

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"range": self.range.to_dict()}
        if self.command is not None:
            payload["command"] = self.command.to_dict()
        if self.data is not None:
            payload["data"] = self.data
        return payload


@dataclass(slots=True, frozen=True)
class Chunk:
    """A styled text fragment handed to the annotation surface."""

    text: str
    style: str = ""

    def as_tuple(self) -> tuple[str, str]:
        return (self.text, self.style)


@dataclass(slots=True, frozen=True)
class Namespace:
    """Display channel isolating one server's annotations."""

    id: int
    name: str = field(default="")
