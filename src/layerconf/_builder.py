"""Ordered assembly of configuration sources into a ``Config``."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any

from ._config import Config
from ._environment import DotenvEnvironment, Environment, LayeredEnvironment, _auto_environment
from ._sources import FileOrigin, MappingOrigin, Origin, TextOrigin, load_origin
from ._types import _Undefined
from ._value import merge

logger = logging.getLogger(__name__)

PathLike = str | os.PathLike[str]


class ConfigBuilder:
    """Collects origins in order and merges them on ``build()``.

    Later origins override earlier ones leaf by leaf; tables merge deeply,
    everything else is replaced::

        config = (
            ConfigBuilder()
            .add_required_file("config/base.toml")
            .add_file("config/local.toml")
            .add_toml_str('[server]\\nport = 9000')
            .build()
        )
    """

    def __init__(self) -> None:
        self._origins: list[Origin] = []
        self._dotenv_paths: list[PathLike] = []
        self._environment: Environment | None = None

    @property
    def origins(self) -> tuple[Origin, ...]:
        return tuple(self._origins)

    # -- Sources ------------------------------------------------------------

    def add_origin(self, origin: Origin) -> ConfigBuilder:
        self._origins.append(origin)
        return self

    def add_file(self, path: PathLike) -> ConfigBuilder:
        """Add a TOML file that is skipped when it does not exist."""
        return self.add_origin(FileOrigin(path, required=False))

    def add_required_file(self, path: PathLike) -> ConfigBuilder:
        """Add a TOML file that must exist."""
        return self.add_origin(FileOrigin(path, required=True))

    def add_toml_str(self, content: str, name: str = "<inline>") -> ConfigBuilder:
        return self.add_origin(TextOrigin(content, name))

    def add_mapping(self, data: Mapping[str, Any], name: str = "<mapping>") -> ConfigBuilder:
        return self.add_origin(MappingOrigin(data, name))

    # -- Environment --------------------------------------------------------

    def add_dotenv_file(self, path: PathLike) -> ConfigBuilder:
        """Make the variables of a ``.env`` file visible to interpolation.

        Process variables take precedence over dotenv values; between dotenv
        files the first registered wins. ``os.environ`` is never modified.
        """
        self._dotenv_paths.append(path)
        return self

    def add_dotenv(self, path: PathLike = ".env") -> ConfigBuilder:
        return self.add_dotenv_file(path)

    def with_environment(self, env: Environment) -> ConfigBuilder:
        """Use *env* instead of the module-level environment."""
        self._environment = env
        return self

    def _resolve_environment(self) -> Environment:
        base = self._environment or _auto_environment()
        if not self._dotenv_paths:
            return base
        return LayeredEnvironment(base, *(DotenvEnvironment(path) for path in self._dotenv_paths))

    # -- Build --------------------------------------------------------------

    def build(self) -> Config:
        """Load every origin in registration order and merge the results.

        The first failing origin aborts the build. With no origins, or only
        absent optional files, the result wraps an empty table.
        """
        env = self._resolve_environment()
        merged: dict[str, Any] = {}
        loaded = 0

        for origin in self._origins:
            table = load_origin(origin, env)
            if isinstance(table, _Undefined):
                continue
            merged = merge(merged, table)
            loaded += 1

        logger.info(
            "Built configuration from %d of %d source(s) with %d top-level key(s)",
            loaded,
            len(self._origins),
            len(merged),
        )
        return Config._wrap(merged)
