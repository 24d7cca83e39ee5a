"""Display options and settings for the lens core."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Dict

from jsonschema import Draft7Validator, ValidationError

from .errors import InvalidOptionsError
from .models import LENS_STYLE, SEPARATOR_STYLE
from .ports import DisplaySink

__all__ = [
    "DisplayOptions",
    "CodeLensSettings",
    "DISPLAY_OPTIONS_SCHEMA",
    "SETTINGS_SCHEMA",
]

LOGGER = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_OPTION_ALIASES: Mapping[str, str] = {
    "virtual_block_above_line": "virtualBlockAboveLine",
    "custom_display_sink": "customDisplaySink",
}

DISPLAY_OPTIONS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "virtualBlockAboveLine": {"type": ["boolean", "null"]},
        # Callables are not JSON; checked after schema validation.
        "customDisplaySink": {},
    },
    "additionalProperties": False,
}

SETTINGS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "separator": {"type": "string"},
        "lens_style": {"type": "string"},
        "separator_style": {"type": "string"},
        "log_level": {"type": "string", "enum": list(_LOG_LEVELS)},
    },
    "additionalProperties": False,
}

_DISPLAY_VALIDATOR = Draft7Validator(DISPLAY_OPTIONS_SCHEMA)
_SETTINGS_VALIDATOR = Draft7Validator(SETTINGS_SCHEMA)


@dataclass(slots=True, frozen=True)
class DisplayOptions:
    """How resolved lenses are presented.

    Attributes:
        virtual_block_above_line: Render as a block above the line instead of
            trailing inline text.
        custom_display_sink: ``sink(document, namespace, line, chunks)``
            replacing the built-in rendering. It is also called for lines
            whose chunk list is empty and must clear prior output itself.
    """

    virtual_block_above_line: bool = False
    custom_display_sink: DisplaySink | None = None

    @classmethod
    def coerce(cls, value: Any, *, default: DisplayOptions | None = None) -> DisplayOptions:
        """Return ``value`` as :class:`DisplayOptions`.

        ``None`` yields ``default`` (or the defaults). Mappings may use the
        camelCase keys ``virtualBlockAboveLine``/``customDisplaySink`` or
        their snake_case spelling.

        Raises:
            InvalidOptionsError: when ``value`` has the wrong shape.
        """

        if value is None:
            return default if default is not None else cls()
        if isinstance(value, DisplayOptions):
            if not isinstance(value.virtual_block_above_line, bool):
                raise InvalidOptionsError(
                    "virtualBlockAboveLine must be a boolean",
                    option="virtualBlockAboveLine",
                )
            _require_callable(value.custom_display_sink)
            return value
        if not isinstance(value, Mapping):
            raise InvalidOptionsError(
                f"display options must be a mapping, got {type(value).__name__}",
                option="display",
            )

        candidate = {_OPTION_ALIASES.get(key, key): item for key, item in value.items()}
        try:
            _DISPLAY_VALIDATOR.validate(candidate)
        except ValidationError as error:
            raise InvalidOptionsError(_format_validation_error("display", error), option="display") from error

        sink = candidate.get("customDisplaySink")
        _require_callable(sink)
        return cls(
            virtual_block_above_line=bool(candidate.get("virtualBlockAboveLine") or False),
            custom_display_sink=sink,
        )


@dataclass(slots=True, frozen=True)
class CodeLensSettings:
    """Settings shared by every component of a controller."""

    display: DisplayOptions = field(default_factory=DisplayOptions)
    separator: str = " | "
    lens_style: str = LENS_STYLE
    separator_style: str = SEPARATOR_STYLE
    log_level: str = "INFO"

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None) -> CodeLensSettings:
        """Build settings from a user-supplied mapping (e.g. a parsed config file)."""

        if payload is None:
            return cls()
        if not isinstance(payload, Mapping):
            raise InvalidOptionsError("settings must be a mapping", option="settings")
        candidate = dict(payload)
        raw_display = candidate.pop("display", None)
        try:
            _SETTINGS_VALIDATOR.validate(candidate)
        except ValidationError as error:
            raise InvalidOptionsError(_format_validation_error("settings", error), option="settings") from error
        return cls(display=DisplayOptions.coerce(raw_display), **candidate)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, *, base: CodeLensSettings | None = None) -> CodeLensSettings:
        """Apply ``CODELENS_*`` environment overrides on top of ``base``."""

        env = os.environ if environ is None else environ
        settings = base or cls()

        virtual_lines = env.get("CODELENS_VIRTUAL_LINES")
        if virtual_lines is not None:
            display = replace(
                settings.display,
                virtual_block_above_line=virtual_lines.strip().lower() in _TRUE_VALUES,
            )
            settings = replace(settings, display=display)

        separator = env.get("CODELENS_SEPARATOR")
        if separator:
            settings = replace(settings, separator=separator)

        log_level = env.get("CODELENS_LOG_LEVEL")
        if log_level:
            normalized = log_level.strip().upper()
            if normalized in _LOG_LEVELS:
                settings = replace(settings, log_level=normalized)
            else:
                LOGGER.warning("Ignoring unknown CODELENS_LOG_LEVEL=%r", log_level)

        return settings

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level)


def _require_callable(sink: Any) -> None:
    if sink is not None and not callable(sink):
        raise InvalidOptionsError("customDisplaySink must be callable", option="customDisplaySink")


def _format_validation_error(prefix: str, error: ValidationError) -> str:
    path = ".".join(str(part) for part in error.path)
    if path:
        return f"{prefix}.{path}: {error.message}"
    return f"{prefix}: {error.message}"
