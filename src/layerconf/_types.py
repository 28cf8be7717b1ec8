"""Foundation types for layerconf.

Provides the ``UNDEFINED`` sentinel and the closed ``ConfigError`` taxonomy.
"""

from __future__ import annotations

from typing import Any


# ---------------------------------------------------------------------------
# Sentinel
# ---------------------------------------------------------------------------


class _Undefined:
    """Sentinel for absent values and skipped sources (distinct from ``None``)."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Base exception for configuration errors."""


class SourceNotFoundError(ConfigError):
    """A required source (or an included file) is missing or unreadable."""

    def __init__(self, source: str, reason: str | None = None, path: str | None = None) -> None:
        self.source = source
        self.reason = reason
        self.path = path
        message = f"Configuration source '{source}' not found"
        if reason:
            message = f"{message}: {reason}"
        if path:
            message = f"{message} (referenced from '{path}')"
        super().__init__(message)


class ParseError(ConfigError):
    """Malformed TOML text or a malformed interpolation token."""

    def __init__(
        self,
        source: str,
        message: str,
        *,
        path: str | None = None,
        position: int | None = None,
    ) -> None:
        self.source = source
        self.message = message
        self.path = path
        self.position = position
        location = source
        if path:
            location = f"{location} at '{path}'"
        if position is not None:
            location = f"{location}, offset {position}"
        super().__init__(f"Failed to parse {location}: {message}")


class InterpolationError(ConfigError):
    """An environment variable referenced without a default is undefined."""

    def __init__(self, name: str, path: str, source: str | None = None) -> None:
        self.name = name
        self.path = path
        self.source = source
        where = f"'{path}'" if path else "value"
        if source:
            where = f"{where} in {source}"
        super().__init__(f"Environment variable '{name}' is not set (referenced by {where})")


class DeserializeError(ConfigError):
    """A section's subtree does not match the target type's shape."""

    def __init__(self, key: str, cause: Exception | None = None) -> None:
        self.key = key
        self.cause = cause
        message = f"Configuration section '{key}' could not be deserialized"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class ConfigValidationError(ConfigError):
    """A validation pass rejected a successfully deserialized section."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        self.message = message
        super().__init__(f"Validation failed for '{key}': {message}")


class SectionNotFoundError(ConfigError):
    """The merged configuration has no subtree for a section key."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Configuration key '{key}' not found.")


class UndefinedSectionError(ConfigError):
    """Raised when a required configuration section is missing or invalid."""

    def __init__(self, key: str, cause: Any = None) -> None:
        self.key = key
        self.cause = cause
        message = f"Configuration section '{key}' is required but not set."
        if cause is not None:
            message = f"Configuration section '{key}' is required but invalid: {cause}"
        super().__init__(message)
