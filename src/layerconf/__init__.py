"""Layered TOML configuration with environment interpolation and typed sections.

Sources are loaded in registration order, interpolated (``${NAME}`` and
``${NAME:default}``), deep-merged, and exposed as an immutable ``Config``
from which typed sections are extracted.
"""

from ._builder import ConfigBuilder
from ._config import CONFIG_ENV_VAR, Config, find_config_file
from ._environment import (
    DotenvEnvironment,
    Environment,
    FakeEnvironment,
    LayeredEnvironment,
    ProcessEnvironment,
    get_environment,
    set_environment,
)
from ._interpolation import interpolate, interpolate_string
from ._section import ConfigSection, section, section_key
from ._sources import FileOrigin, MappingOrigin, Origin, TextOrigin
from ._testing import override_environment
from ._types import (
    UNDEFINED,
    ConfigError,
    ConfigValidationError,
    DeserializeError,
    InterpolationError,
    ParseError,
    SectionNotFoundError,
    SourceNotFoundError,
    UndefinedSectionError,
)
from ._units import ByteConfig, TimeConfig, parse_byte_size, parse_duration
from ._value import merge, merge_all

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Core
    "Config",
    "ConfigBuilder",
    "ConfigSection",
    "section",
    "section_key",
    "find_config_file",
    "CONFIG_ENV_VAR",
    # Sources
    "Origin",
    "FileOrigin",
    "TextOrigin",
    "MappingOrigin",
    # Tree operations
    "merge",
    "merge_all",
    "interpolate",
    "interpolate_string",
    # Environment
    "Environment",
    "ProcessEnvironment",
    "FakeEnvironment",
    "LayeredEnvironment",
    "DotenvEnvironment",
    "get_environment",
    "set_environment",
    # Errors
    "UNDEFINED",
    "ConfigError",
    "SourceNotFoundError",
    "ParseError",
    "InterpolationError",
    "DeserializeError",
    "ConfigValidationError",
    "SectionNotFoundError",
    "UndefinedSectionError",
    # Units
    "ByteConfig",
    "TimeConfig",
    "parse_byte_size",
    "parse_duration",
    # Testing
    "override_environment",
]
