"""Typed configuration sections.

Subclass ``ConfigSection`` and declare fields plus a ``Meta`` inner class
naming the table the section is read from::

    class DatabaseConfig(ConfigSection):
        class Meta:
            key = "database"

        url: str = "sqlite://"
        pool_size: int = 5

    db = config.get_or_default(DatabaseConfig)

Classes that cannot inherit from ``ConfigSection`` (dataclasses, existing
pydantic models) can be bound to a key with the ``section`` decorator.
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")

_KEY_ATTRIBUTE = "__section_key__"


class ConfigSection(BaseModel):
    """Base class for declarative, typed configuration sections.

    ``key()`` is a convenience; ``Config`` resolves the key through
    ``section_key``, which reads ``Meta.key`` directly. A section that
    declares its own field called ``key`` therefore still loads, but the
    field hides the classmethod and pydantic warns about the shadowing.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    class Meta:
        key: str = ""

    @classmethod
    def key(cls) -> str:
        """Return the table key this section is bound to."""
        key = getattr(cls.Meta, "key", "")
        if not key:
            raise TypeError(f"{cls.__name__}.Meta.key is not set")
        return key

    def validate_section(self) -> None:
        """Hook for checks run by ``Config.get_validated``.

        Raise ``ValueError`` to reject the section. The default accepts
        everything.
        """


def section(key: str) -> Callable[[type[T]], type[T]]:
    """Bind *key* to an arbitrary class.

    The key is stored on the class, so fields of any name (``key``
    included) stay untouched.

    >>> from dataclasses import dataclass
    >>> @section("server")
    ... @dataclass
    ... class ServerConfig:
    ...     host: str = "0.0.0.0"
    >>> section_key(ServerConfig)
    'server'
    """
    if not key:
        raise ValueError("section key must not be empty")

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _KEY_ATTRIBUTE, key)
        return cls

    return decorator


def section_key(section_type: Any) -> str:
    """Return the key declared by *section_type*.

    Looked up in order: the ``section`` decorator, ``Meta.key``, then a
    ``key()`` classmethod. Raises ``TypeError`` if the type declares none.
    """
    name = getattr(section_type, "__name__", section_type)

    key = getattr(section_type, _KEY_ATTRIBUTE, None)
    if key:
        return key

    meta = getattr(section_type, "Meta", None)
    if meta is not None and hasattr(meta, "key"):
        key = meta.key
        if not key:
            raise TypeError(f"{name}.Meta.key is not set")
        return key

    key_method = getattr(section_type, "key", None)
    if callable(key_method):
        return key_method()

    raise TypeError(
        f"{name!r} does not declare a configuration key; "
        "subclass ConfigSection or use @section(key)"
    )
