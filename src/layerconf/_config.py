"""The merged, read-only configuration and typed section extraction.

Extraction operations for a section type ``T`` bound to key ``K``:

============================  ==============================================
``get(T)``                    ``None`` if ``K`` is missing, does not fit
                              ``T`` or breaks one of its field constraints.
                              Such sections look exactly like missing ones
                              here; use ``get_validated`` when the
                              difference matters.
``get_or_default(T)``         ``T()`` instead of ``None``.
``require(T)``                raises ``UndefinedSectionError``; meant for
                              start-up code that cannot continue without
                              the section.
``get_validated(T)``          raises ``SectionNotFoundError``,
                              ``DeserializeError`` (wrong shape) or
                              ``ConfigValidationError`` (field constraints,
                              field validators, the validation pass).
============================  ==============================================
"""

from __future__ import annotations

import logging
import os
import sys
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ._environment import Environment, _auto_environment
from ._section import section_key
from ._types import (
    UNDEFINED,
    ConfigValidationError,
    DeserializeError,
    SectionNotFoundError,
    SourceNotFoundError,
    UndefinedSectionError,
    _Undefined,
)
from ._value import clone, lookup

if TYPE_CHECKING:
    from ._builder import ConfigBuilder

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONFIG_ENV_VAR = "CONFIG_FILE_PATH"
DEFAULT_CONFIG_PATH = Path("config") / "config.toml"


@lru_cache(maxsize=128)
def _adapter(section_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(section_type)


# Pydantic error types raised by field constraints and validators rather than
# by a subtree of the wrong shape.
_CONSTRAINT_ERROR_TYPES = frozenset(
    {
        "string_pattern_mismatch",
        "value_error",
        "assertion_error",
        "finite_number",
        "decimal_max_digits",
        "decimal_max_places",
        "decimal_whole_digits",
    }
)
_CONSTRAINT_ERROR_PREFIXES = ("greater_than", "less_than", "multiple_of")
_CONSTRAINT_ERROR_SUFFIXES = ("too_short", "too_long")


def _is_constraint_error(error_type: str) -> bool:
    return (
        error_type in _CONSTRAINT_ERROR_TYPES
        or error_type.startswith(_CONSTRAINT_ERROR_PREFIXES)
        or error_type.endswith(_CONSTRAINT_ERROR_SUFFIXES)
    )


def _translate_validation_error(key: str, exc: PydanticValidationError) -> Exception:
    """Map a pydantic failure to ``DeserializeError`` or ``ConfigValidationError``.

    Any shape error (missing field, wrong type, unparsable value) makes the
    whole failure a ``DeserializeError``. Only failures made up entirely of
    constraint and validator errors count as validation failures.
    """
    errors = exc.errors()
    if not errors or not all(_is_constraint_error(error["type"]) for error in errors):
        return DeserializeError(key, exc)

    details = []
    for error in errors:
        location = ".".join(str(part) for part in error["loc"])
        details.append(f"{location}: {error['msg']}" if location else error["msg"])
    return ConfigValidationError(key, "; ".join(details))


class Config:
    """Immutable merged configuration tree.

    The tree is copied on the way in and on the way out, so a ``Config`` can
    be shared between threads without locking.
    """

    __slots__ = ("_tree",)

    def __init__(self, tree: dict[str, Any] | None = None) -> None:
        data = tree if tree is not None else {}
        if not isinstance(data, dict):
            raise TypeError(f"Config tree must be a table, got {type(data).__name__}")
        self._tree: dict[str, Any] = clone(data)

    @classmethod
    def _wrap(cls, tree: dict[str, Any]) -> Config:
        """Adopt a freshly merged tree without copying it."""
        config = cls.__new__(cls)
        config._tree = tree
        return config

    # -- Construction -------------------------------------------------------

    @staticmethod
    def builder() -> ConfigBuilder:
        from ._builder import ConfigBuilder

        return ConfigBuilder()

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> Config:
        """Load a single required TOML file."""
        return cls.builder().add_required_file(path).build()

    @classmethod
    def discover(
        cls,
        path: str | os.PathLike[str] | None = None,
        *,
        env: Environment | None = None,
    ) -> Config:
        """Load the first configuration file found, in priority order:

        1. explicit *path* (must exist)
        2. the file named by ``CONFIG_FILE_PATH``
        3. ``config/config.toml`` under the working directory
        4. ``config/config.toml`` beside the running executable

        *env* is used both for ``CONFIG_FILE_PATH`` and for interpolation.
        """
        target = path if path is not None else find_config_file(env)
        builder = cls.builder()
        if env is not None:
            builder.with_environment(env)
        return builder.add_required_file(target).build()

    # -- Raw access ---------------------------------------------------------

    def as_dict(self) -> dict[str, Any]:
        """Return a copy of the whole merged tree."""
        return clone(self._tree)

    def get_value(self, key: str, default: Any = UNDEFINED) -> Any:
        """Return a copy of the subtree at *key* (dotted paths allowed)."""
        node = lookup(self._tree, key)
        if isinstance(node, _Undefined):
            if isinstance(default, _Undefined):
                raise UndefinedSectionError(key)
            return default
        return clone(node)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and not isinstance(lookup(self._tree, key), _Undefined)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Config):
            return self._tree == other._tree
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Config(keys={sorted(self._tree)!r})"

    # -- Typed extraction ---------------------------------------------------

    def _deserialize(self, section_type: type[T]) -> T:
        """Look up and deserialize a section, raising on any failure."""
        key = section_key(section_type)
        node = lookup(self._tree, key)
        if isinstance(node, _Undefined):
            raise SectionNotFoundError(key)
        try:
            return _adapter(section_type).validate_python(clone(node))
        except PydanticValidationError as exc:
            raise _translate_validation_error(key, exc) from exc

    def get(self, section_type: type[T]) -> T | None:
        """Return the section, or ``None`` if it is missing, malformed or rejected."""
        try:
            return self._deserialize(section_type)
        except SectionNotFoundError:
            return None
        except DeserializeError as exc:
            logger.debug("Treating malformed section '%s' as missing: %s", exc.key, exc.cause)
            return None
        except ConfigValidationError as exc:
            logger.warning("Ignoring section '%s' rejected by its constraints: %s", exc.key, exc.message)
            return None

    def get_or_default(self, section_type: type[T]) -> T:
        """Return the section, or ``section_type()`` if it is missing or malformed."""
        result = self.get(section_type)
        if result is None:
            return section_type()
        return result

    def require(self, section_type: type[T]) -> T:
        """Return the section or raise ``UndefinedSectionError``."""
        try:
            return self._deserialize(section_type)
        except SectionNotFoundError as exc:
            raise UndefinedSectionError(exc.key) from exc
        except DeserializeError as exc:
            raise UndefinedSectionError(exc.key, exc.cause) from exc
        except ConfigValidationError as exc:
            raise UndefinedSectionError(exc.key, exc.message) from exc

    get_or_panic = require
    expect = require

    def get_validated(
        self,
        section_type: type[T],
        validator: Callable[[T], Any] | None = None,
    ) -> T:
        """Return the section after running its validation pass.

        Field constraints (``Field(ge=...)``, ``min_length`` and the like) and
        field validators are reported as ``ConfigValidationError``, not as
        ``DeserializeError``. The pass then calls ``validate_section()`` when the type defines it, then
        *validator* when given. Either may raise ``ValueError`` or
        ``AssertionError`` to reject the value.
        """
        value = self._deserialize(section_type)
        key = section_key(section_type)

        checks: list[Callable[[], Any]] = []
        hook = getattr(value, "validate_section", None)
        if callable(hook):
            checks.append(hook)
        if validator is not None:
            checks.append(lambda: validator(value))

        for check in checks:
            try:
                check()
            except (ValueError, AssertionError) as exc:
                raise ConfigValidationError(key, str(exc) or type(exc).__name__) from exc

        return value


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def _executable_dir() -> Path:
    entry = sys.argv[0] if sys.argv and sys.argv[0] else sys.executable
    return Path(entry).resolve().parent


def find_config_file(env: Environment | None = None) -> Path:
    """Resolve the configuration file used by ``Config.discover``."""
    active_env = env or _auto_environment()

    env_path = active_env.lookup(CONFIG_ENV_VAR)
    if env_path:
        candidate = Path(env_path)
        if candidate.is_file():
            return candidate
        logger.warning(
            "%s is set to '%s' but the file does not exist; falling back to default paths",
            CONFIG_ENV_VAR,
            env_path,
        )

    if DEFAULT_CONFIG_PATH.is_file():
        return DEFAULT_CONFIG_PATH

    fallback = _executable_dir() / DEFAULT_CONFIG_PATH
    if fallback.is_file():
        return fallback

    raise SourceNotFoundError(str(fallback), "no configuration file found")
