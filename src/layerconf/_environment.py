"""Environment variable sources used during interpolation.

Interpolation never reads ``os.environ`` directly; it goes through an
``Environment`` so tests can inject values without touching process state.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol, runtime_checkable

from dotenv import dotenv_values


@runtime_checkable
class Environment(Protocol):
    """Read-only view of environment variables."""

    def lookup(self, name: str) -> str | None:
        ...


class ProcessEnvironment:
    """Reads from ``os.environ`` of the running process."""

    def lookup(self, name: str) -> str | None:
        return os.environ.get(name)

    def __repr__(self) -> str:
        return "ProcessEnvironment()"


class FakeEnvironment:
    """Dict-backed environment for tests.

    >>> env = FakeEnvironment({"HOST": "db.local"})
    >>> env.lookup("HOST")
    'db.local'
    >>> env.lookup("PORT") is None
    True
    """

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(values or {})

    def lookup(self, name: str) -> str | None:
        return self._values.get(name)

    # -- Mutation helpers for test setup ------------------------------------

    def set(self, name: str, value: str) -> None:
        self._values[name] = value

    def unset(self, name: str) -> None:
        self._values.pop(name, None)

    def __repr__(self) -> str:
        return f"FakeEnvironment({sorted(self._values)!r})"


class LayeredEnvironment:
    """Chains several environments; the first one defining a name wins."""

    def __init__(self, *layers: Environment) -> None:
        self.layers: tuple[Environment, ...] = layers

    def lookup(self, name: str) -> str | None:
        for layer in self.layers:
            value = layer.lookup(name)
            if value is not None:
                return value
        return None

    def __repr__(self) -> str:
        return f"LayeredEnvironment{self.layers!r}"


class DotenvEnvironment:
    """Variables declared in a ``.env`` file.

    The file is read once, at construction, with ``python-dotenv``. A missing
    file yields an empty environment. Keys declared without a value
    (``FOO`` on its own line) are treated as undefined.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self._values: dict[str, str] = {}
        if self.path.is_file():
            self._values = {
                key: value
                for key, value in dotenv_values(self.path, interpolate=False).items()
                if value is not None
            }

    def lookup(self, name: str) -> str | None:
        return self._values.get(name)

    def __repr__(self) -> str:
        return f"DotenvEnvironment({str(self.path)!r})"


# ---------------------------------------------------------------------------
# Module-level environment management
# ---------------------------------------------------------------------------

_active_environment: Environment | None = None


def set_environment(env: Environment | None) -> None:
    """Set the module-level environment used when none is injected."""
    global _active_environment
    _active_environment = env


def get_environment() -> Environment | None:
    """Return the current module-level environment (may be ``None``)."""
    return _active_environment


def _auto_environment() -> Environment:
    """Return the module-level environment, defaulting to the process one."""
    if _active_environment is None:
        return ProcessEnvironment()
    return _active_environment
