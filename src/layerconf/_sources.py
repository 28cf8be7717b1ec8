"""Configuration origins and the source loader.

Each origin turns into an interpolated table, or ``UNDEFINED`` when an
optional file is absent.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import rtoml

from ._environment import Environment
from ._interpolation import interpolate
from ._types import UNDEFINED, ParseError, SourceNotFoundError, _Undefined

logger = logging.getLogger(__name__)


def parse_toml(text: str, source: str) -> dict[str, Any]:
    """Parse TOML *text* into a table, tagging errors with *source*."""
    try:
        return rtoml.loads(text)
    except rtoml.TomlParsingError as exc:
        raise ParseError(source, str(exc)) from exc


class Origin(ABC):
    """A registered configuration source."""

    @abstractmethod
    def describe(self) -> str:
        """Return a human-readable identity used in logs and errors."""

    @abstractmethod
    def load(self, env: Environment) -> dict[str, Any] | _Undefined:
        """Parse and interpolate the source."""


@dataclass(frozen=True)
class FileOrigin(Origin):
    """A TOML file on disk.

    Optional files that do not exist contribute nothing. Every other failure,
    for optional and required files alike, is fatal.
    """

    path: Path
    required: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", Path(self.path))

    def describe(self) -> str:
        return str(self.path)

    def load(self, env: Environment) -> dict[str, Any] | _Undefined:
        if not self.path.exists():
            if self.required:
                raise SourceNotFoundError(self.describe(), "required file does not exist")
            logger.debug("Optional config file %s not found, skipping", self.path)
            return UNDEFINED

        try:
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceNotFoundError(self.describe(), f"file could not be read ({exc})") from exc

        table = parse_toml(text, self.describe())
        return interpolate(table, env, source=self.describe())


@dataclass(frozen=True)
class TextOrigin(Origin):
    """Inline TOML text."""

    content: str
    name: str = "<inline>"

    def describe(self) -> str:
        return self.name

    def load(self, env: Environment) -> dict[str, Any]:
        table = parse_toml(self.content, self.name)
        return interpolate(table, env, source=self.name)


@dataclass(frozen=True)
class MappingOrigin(Origin):
    """An already-parsed table, e.g. programmatic overrides.

    String leaves are interpolated like any other source.
    """

    data: Mapping[str, Any] = field(default_factory=dict)
    name: str = "<mapping>"

    def describe(self) -> str:
        return self.name

    def load(self, env: Environment) -> dict[str, Any]:
        return interpolate(_to_table(self.data), env, source=self.name)


def _to_table(data: Mapping[str, Any]) -> dict[str, Any]:
    """Convert nested mappings and tuples into plain dicts and lists."""
    return {key: _to_value(value) for key, value in data.items()}


def _to_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return _to_table(value)
    if isinstance(value, (list, tuple)):
        return [_to_value(item) for item in value]
    return value


def load_origin(origin: Origin, env: Environment) -> dict[str, Any] | _Undefined:
    """Load one origin, logging the outcome."""
    try:
        result = origin.load(env)
    except Exception:
        logger.error("Failed to load configuration from %s", origin.describe())
        raise

    if not isinstance(result, _Undefined):
        logger.debug("Loaded configuration from %s", origin.describe())
    return result
