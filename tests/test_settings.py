"""Tests for display options and settings."""

from __future__ import annotations

import logging

import pytest

from codelens.errors import InvalidOptionsError
from codelens.settings import CodeLensSettings, DisplayOptions


def _sink(document, namespace, line, chunks) -> None:
    return None


class TestDisplayOptions:
    def test_none_uses_defaults(self) -> None:
        assert DisplayOptions.coerce(None) == DisplayOptions()

    def test_none_prefers_given_default(self) -> None:
        default = DisplayOptions(virtual_block_above_line=True)
        assert DisplayOptions.coerce(None, default=default) is default

    def test_camel_case_mapping(self) -> None:
        options = DisplayOptions.coerce({"virtualBlockAboveLine": True, "customDisplaySink": _sink})
        assert options.virtual_block_above_line is True
        assert options.custom_display_sink is _sink

    def test_snake_case_aliases(self) -> None:
        options = DisplayOptions.coerce({"virtual_block_above_line": True})
        assert options.virtual_block_above_line is True

    def test_empty_mapping_is_valid(self) -> None:
        assert DisplayOptions.coerce({}) == DisplayOptions()

    @pytest.mark.parametrize(
        "value",
        [
            "inline",
            ["virtualBlockAboveLine"],
            {"virtualBlockAboveLine": "yes"},
            {"unknown": True},
            {"customDisplaySink": "not callable"},
        ],
    )
    def test_invalid_shapes_fail_fast(self, value: object) -> None:
        with pytest.raises(InvalidOptionsError):
            DisplayOptions.coerce(value)

    def test_invalid_options_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError) as excinfo:
            DisplayOptions.coerce({"virtualBlockAboveLine": 1})
        assert excinfo.value.to_dict()["error"] == "invalid_options"

    def test_dataclass_instance_with_bad_sink_is_rejected(self) -> None:
        with pytest.raises(InvalidOptionsError):
            DisplayOptions.coerce(DisplayOptions(custom_display_sink=42))  # type: ignore[arg-type]

    def test_dataclass_instance_with_non_bool_flag_is_rejected(self) -> None:
        with pytest.raises(InvalidOptionsError) as excinfo:
            DisplayOptions.coerce(DisplayOptions(virtual_block_above_line="yes"))  # type: ignore[arg-type]
        assert excinfo.value.option == "virtualBlockAboveLine"


class TestCodeLensSettings:
    def test_from_mapping(self) -> None:
        settings = CodeLensSettings.from_mapping(
            {"display": {"virtualBlockAboveLine": True}, "separator": " · ", "log_level": "DEBUG"}
        )
        assert settings.display.virtual_block_above_line is True
        assert settings.separator == " · "
        assert settings.log_level_number == logging.DEBUG

    def test_from_mapping_rejects_unknown_keys(self) -> None:
        with pytest.raises(InvalidOptionsError):
            CodeLensSettings.from_mapping({"colour": "red"})

    def test_from_mapping_rejects_non_mapping(self) -> None:
        with pytest.raises(InvalidOptionsError):
            CodeLensSettings.from_mapping(["separator"])  # type: ignore[arg-type]

    def test_env_overrides(self) -> None:
        settings = CodeLensSettings.from_env(
            {
                "CODELENS_VIRTUAL_LINES": "true",
                "CODELENS_SEPARATOR": " / ",
                "CODELENS_LOG_LEVEL": "warning",
            }
        )
        assert settings.display.virtual_block_above_line is True
        assert settings.separator == " / "
        assert settings.log_level == "WARNING"

    def test_env_ignores_unknown_log_level(self) -> None:
        settings = CodeLensSettings.from_env({"CODELENS_LOG_LEVEL": "chatty"})
        assert settings.log_level == "INFO"

    def test_env_keeps_base_values(self) -> None:
        base = CodeLensSettings(separator=" :: ")
        settings = CodeLensSettings.from_env({}, base=base)
        assert settings == base
