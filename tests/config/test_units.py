"""Tests for _units.py — ByteConfig, TimeConfig and their parsers."""

from datetime import timedelta

import pytest
from pydantic import BaseModel, ValidationError

from layerconf._units import ByteConfig, TimeConfig, _UnitValue, parse_byte_size, parse_duration


class TestParseDuration:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("30s", timedelta(seconds=30)),
            ("1h 30m", timedelta(hours=1, minutes=30)),
            ("1h30m", timedelta(hours=1, minutes=30)),
            ("250ms", timedelta(milliseconds=250)),
            ("2d", timedelta(days=2)),
            ("1w", timedelta(weeks=1)),
            ("45", timedelta(seconds=45)),
            ("1.5h", timedelta(minutes=90)),
            ("10 minutes", timedelta(minutes=10)),
        ],
    )
    def test_valid(self, text, expected):
        assert parse_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "   ", "abc", "10 parsecs", "1h -"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_duration(text)


class TestParseByteSize:
    def test_decimal_units(self):
        assert parse_byte_size("10MB") == 10_000_000

    def test_binary_units(self):
        assert parse_byte_size("4KiB") == 4096

    def test_invalid(self):
        with pytest.raises(ValueError, match="byte size"):
            parse_byte_size("lots")


class _LimitsModel(BaseModel):
    max_size: ByteConfig
    timeout: TimeConfig


class TestPydanticFields:
    def test_parses_and_keeps_raw(self):
        model = _LimitsModel(max_size="4KiB", timeout="1h 30m")
        assert model.max_size.parsed == 4096
        assert model.max_size.raw == "4KiB"
        assert model.timeout.parsed == timedelta(minutes=90)
        assert str(model.timeout) == "1h 30m"

    def test_number_is_accepted(self):
        model = _LimitsModel(max_size=1024, timeout=5)
        assert model.max_size.parsed == 1024
        assert model.timeout.parsed == timedelta(seconds=5)

    def test_invalid_text_fails_validation(self):
        with pytest.raises(ValidationError):
            _LimitsModel(max_size="huge", timeout="30s")

    def test_wrong_type_fails_validation(self):
        with pytest.raises(ValidationError):
            _LimitsModel(max_size=["1MB"], timeout="30s")

    def test_parse_failure_reported_as_parsing_error(self):
        with pytest.raises(ValidationError) as exc_info:
            _LimitsModel(max_size="huge", timeout="30s")
        assert exc_info.value.errors()[0]["type"] == "unit_parsing"

    def test_dump_uses_raw_text(self):
        dumped = _LimitsModel(max_size="10MB", timeout="30s").model_dump()
        assert dumped == {"max_size": "10MB", "timeout": "30s"}

    def test_equality_on_parsed_value(self):
        assert TimeConfig.from_raw("60s") == TimeConfig.from_raw("1m")
        assert ByteConfig.from_raw("1KiB") != ByteConfig.from_raw("1KB")


class TestUnitValueBase:
    def test_base_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            _UnitValue(1, "1")

    def test_subclass_must_define_parse(self):
        class Incomplete(_UnitValue):
            pass

        with pytest.raises(TypeError):
            Incomplete.from_raw("1")
