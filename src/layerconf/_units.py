"""Field types for human-readable sizes and durations.

Both keep the raw text next to the parsed value so it can be echoed back in
logs or diagnostics::

    class CacheConfig(ConfigSection):
        class Meta:
            key = "cache"

        max_size: ByteConfig        # "10MB"
        ttl: TimeConfig             # "1h 30m"
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any

from pydantic import ByteSize, GetCoreSchemaHandler, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import CoreSchema, PydanticCustomError, core_schema

_BYTE_SIZE = TypeAdapter(ByteSize)


# ---------------------------------------------------------------------------
# Duration parsing
# ---------------------------------------------------------------------------

_DURATION_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "ms": 1e-3,
    "s": 1,
    "sec": 1,
    "secs": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "mins": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hr": 3600,
    "hrs": 3600,
    "hour": 3600,
    "hours": 3600,
    "d": 86400,
    "day": 86400,
    "days": 86400,
    "w": 604800,
    "week": 604800,
    "weeks": 604800,
}

_DURATION_PART = re.compile(r"\s*(\d+(?:\.\d+)?)\s*([a-zA-Z]*)\s*")


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"30s"``, ``"1h 30m"`` or ``"250ms"``.

    A bare number is read as seconds.

    >>> parse_duration("1h 30m")
    datetime.timedelta(seconds=5400)
    >>> parse_duration("45")
    datetime.timedelta(seconds=45)
    """
    stripped = text.strip()
    if not stripped:
        raise ValueError("empty duration")

    total = 0.0
    position = 0
    while position < len(stripped):
        match = _DURATION_PART.match(stripped, position)
        if match is None or match.end() == position:
            raise ValueError(f"Cannot parse duration {text!r}")
        amount, unit = match.groups()
        unit = unit.lower() or "s"
        if unit not in _DURATION_UNITS:
            raise ValueError(f"Unknown duration unit {unit!r} in {text!r}")
        total += float(amount) * _DURATION_UNITS[unit]
        position = match.end()

    return timedelta(seconds=total)


def parse_byte_size(text: str) -> int:
    """Parse a size such as ``"10MB"`` or ``"4KiB"`` into bytes.

    >>> parse_byte_size("4KiB")
    4096
    """
    try:
        return int(_BYTE_SIZE.validate_python(text))
    except PydanticValidationError as exc:
        raise ValueError(f"Cannot parse byte size {text!r}") from exc


# ---------------------------------------------------------------------------
# Field types
# ---------------------------------------------------------------------------


class _UnitValue(ABC):
    """Shared behaviour: a parsed value plus the text it came from."""

    __slots__ = ("parsed", "raw")

    def __init__(self, parsed: Any, raw: str) -> None:
        self.parsed = parsed
        self.raw = raw

    @classmethod
    @abstractmethod
    def parse(cls, raw: str) -> Any:
        """Convert *raw* text to the parsed value, raising ``ValueError``."""

    @classmethod
    def from_raw(cls, raw: str) -> Any:
        return cls(cls.parse(raw), raw)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(parsed={self.parsed!r}, raw={self.raw!r})"

    def __str__(self) -> str:
        return self.raw

    def __eq__(self, other: object) -> bool:
        if isinstance(other, type(self)):
            return bool(self.parsed == other.parsed)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.parsed)

    # -- Pydantic v2 integration --------------------------------------------

    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        source_type: Any,
        handler: GetCoreSchemaHandler,
    ) -> CoreSchema:
        def _validate(value: Any) -> Any:
            if isinstance(value, cls):
                return value
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                value = str(value)
            if not isinstance(value, str):
                raise PydanticCustomError(
                    "unit_type",
                    "expected a string, got {type_name}",
                    {"type_name": type(value).__name__},
                )
            try:
                return cls.from_raw(value)
            except ValueError as exc:
                # A parse failure is a shape error, not a constraint violation.
                raise PydanticCustomError("unit_parsing", "{reason}", {"reason": str(exc)}) from exc

        def _serialize(value: Any, _info: Any) -> str:
            return value.raw

        return core_schema.no_info_plain_validator_function(
            _validate,
            serialization=core_schema.plain_serializer_function_ser_schema(
                _serialize,
                info_arg=True,
            ),
        )


class ByteConfig(_UnitValue):
    """A byte count written as text (``"10MB"``, ``"4KiB"``).

    ``parsed`` holds the number of bytes.
    """

    parsed: int

    @classmethod
    def parse(cls, raw: str) -> int:
        return parse_byte_size(raw)


class TimeConfig(_UnitValue):
    """A duration written as text (``"30s"``, ``"1h 30m"``).

    ``parsed`` holds a ``timedelta``.
    """

    parsed: timedelta

    @classmethod
    def parse(cls, raw: str) -> timedelta:
        return parse_duration(raw)
