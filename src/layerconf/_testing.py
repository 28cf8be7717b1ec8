"""Test utilities for layerconf."""

from __future__ import annotations

from collections.abc import Mapping
from contextlib import contextmanager
from typing import Iterator

from ._environment import FakeEnvironment, get_environment, set_environment


@contextmanager
def override_environment(
    values: Mapping[str, str] | None = None,
    **variables: str,
) -> Iterator[FakeEnvironment]:
    """Temporarily replace the default environment with a ``FakeEnvironment``.

    Usage::

        with override_environment(DATABASE_URL="postgres://h") as env:
            config = ConfigBuilder().add_toml_str(text).build()
            env.set("PORT", "5432")  # mutate inside context

    Builders that were given an explicit environment are not affected.
    """
    previous = get_environment()
    fake = FakeEnvironment({**dict(values or {}), **variables})
    set_environment(fake)
    try:
        yield fake
    finally:
        set_environment(previous)
