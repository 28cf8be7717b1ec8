"""Value tree helpers: deep merge and section lookup.

A value tree is the plain structure produced by the TOML parser: ``dict`` for
tables, ``list`` for arrays, and scalars for everything else. None of the
helpers here mutate their arguments; results never share mutable containers
with the inputs.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable
from datetime import date, datetime, time
from typing import Any, Union

from ._types import UNDEFINED

Value = Union[dict[str, Any], list[Any], str, int, float, bool, datetime, date, time]
"""A node of a configuration tree."""


def is_table(value: Any) -> bool:
    return isinstance(value, dict)


def clone(value: Value) -> Value:
    """Return a structurally independent copy of *value*."""
    return copy.deepcopy(value)


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


def merge(base: Value, override: Value) -> Value:
    """Deep-merge *override* onto *base*.

    Tables merge key by key; any other pairing is won by *override* as a
    whole, so arrays from an earlier source are replaced, never extended.

    >>> merge({"a": {"x": 1}}, {"a": {"y": 2}})
    {'a': {'x': 1, 'y': 2}}
    >>> merge({"a": [1, 2]}, {"a": [3]})
    {'a': [3]}
    """
    if not (is_table(base) and is_table(override)):
        return clone(override)

    result: dict[str, Any] = {key: clone(value) for key, value in base.items()}
    for key, value in override.items():
        if key in result:
            result[key] = merge(result[key], value)
        else:
            result[key] = clone(value)
    return result


def merge_all(values: Iterable[Value]) -> Value:
    """Fold *values* left to right through :func:`merge`, starting from ``{}``."""
    merged: Value = {}
    for value in values:
        merged = merge(merged, value)
    return merged


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


def _resolve_dot_path(source: dict[str, Any], key: str) -> Any:
    """Walk nested tables using dot-separated key segments.

    Returns ``UNDEFINED`` if any segment is missing.
    """
    current: Any = source
    for segment in key.split("."):
        if not is_table(current) or segment not in current:
            return UNDEFINED
        current = current[segment]
    return current


def lookup(tree: dict[str, Any], key: str) -> Any:
    """Find the subtree stored under *key*.

    The literal key is tried first (TOML allows quoted keys containing
    dots), then *key* is treated as a dotted path through nested tables.
    The returned node is the tree's own object; callers copy it.
    """
    if key in tree:
        return tree[key]
    if "." in key:
        return _resolve_dot_path(tree, key)
    return UNDEFINED


def format_path(parent: str, key: str | int) -> str:
    """Render a leaf path such as ``servers[0].host``."""
    if isinstance(key, int):
        return f"{parent}[{key}]"
    return f"{parent}.{key}" if parent else key
