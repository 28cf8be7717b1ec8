"""Environment variable interpolation and file inclusion for value trees.

Token grammar, scanned left to right once per string leaf::

    ${NAME}            value of NAME, error if NAME is undefined
    ${NAME:default}    value of NAME, or the literal default text

Substituted text is inserted verbatim and is never scanned again. A leaf
whose raw text has the form ``file:<path>`` is replaced by the contents of
``<path>``; only the ``<path>`` part is interpolated, so a substituted value
can never turn into a file reference.
"""

from __future__ import annotations

import re
from pathlib import Path

from ._environment import Environment
from ._types import InterpolationError, ParseError, SourceNotFoundError
from ._value import Value, format_path, is_table

_TOKEN_START = "${"
_TOKEN_END = "}"
_DEFAULT_SEPARATOR = ":"
_FILE_PREFIX = "file:"
_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def interpolate_string(
    text: str,
    env: Environment,
    path: str = "",
    source: str = "<string>",
) -> str:
    """Replace every ``${...}`` token in *text*.

    >>> from layerconf import FakeEnvironment
    >>> interpolate_string("${URL}/db", FakeEnvironment({"URL": "postgres://h"}))
    'postgres://h/db'
    >>> interpolate_string("${HOST:0.0.0.0}", FakeEnvironment())
    '0.0.0.0'
    """
    pieces: list[str] = []
    cursor = 0

    while True:
        start = text.find(_TOKEN_START, cursor)
        if start == -1:
            pieces.append(text[cursor:])
            break

        pieces.append(text[cursor:start])
        end = text.find(_TOKEN_END, start + len(_TOKEN_START))
        if end == -1:
            raise ParseError(source, "unterminated '${' token", path=path, position=start)

        body = text[start + len(_TOKEN_START):end]
        name, separator, default = body.partition(_DEFAULT_SEPARATOR)
        if not name:
            raise ParseError(source, "empty variable name in '${}' token", path=path, position=start)
        if not _IDENTIFIER.fullmatch(name):
            raise ParseError(source, f"invalid variable name {name!r}", path=path, position=start)

        value = env.lookup(name)
        if value is None:
            if not separator:
                raise InterpolationError(name, path, source)
            value = default

        pieces.append(value)
        cursor = end + len(_TOKEN_END)

    return "".join(pieces)


def _is_file_reference(text: str) -> bool:
    return text.startswith(_FILE_PREFIX) and len(text) > len(_FILE_PREFIX)


def include_file(text: str, path: str = "") -> str:
    """Return the contents of the file named by a ``file:<path>`` leaf.

    Leaves without the prefix are returned unchanged.
    """
    if not _is_file_reference(text):
        return text
    return _read_included(text[len(_FILE_PREFIX):], path)


def _read_included(target: str, path: str) -> str:
    try:
        return Path(target).read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise SourceNotFoundError(target, "file does not exist", path=path) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceNotFoundError(target, f"file could not be read ({exc})", path=path) from exc


def interpolate(
    value: Value,
    env: Environment,
    *,
    path: str = "",
    source: str = "<string>",
    include_files: bool = True,
) -> Value:
    """Return a new tree with every string leaf interpolated.

    Tables and arrays are rebuilt in their original order; non-string
    scalars pass through unchanged. Table keys are not interpolated.
    """
    if is_table(value):
        return {
            key: interpolate(
                child,
                env,
                path=format_path(path, key),
                source=source,
                include_files=include_files,
            )
            for key, child in value.items()
        }

    if isinstance(value, list):
        return [
            interpolate(
                child,
                env,
                path=format_path(path, index),
                source=source,
                include_files=include_files,
            )
            for index, child in enumerate(value)
        ]

    if isinstance(value, str):
        if include_files and _is_file_reference(value):
            target = interpolate_string(value[len(_FILE_PREFIX):], env, path, source)
            return _read_included(target, path)
        return interpolate_string(value, env, path, source)

    return value
