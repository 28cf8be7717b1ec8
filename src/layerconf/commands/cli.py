"""Command line interface for inspecting merged configuration."""

from __future__ import annotations

import json
import sys
from datetime import date, datetime, time
from typing import Any

import click
import rtoml

from .._builder import ConfigBuilder
from .._config import Config
from .._types import ConfigError


def build_config(required: tuple[str, ...], optional: tuple[str, ...], dotenv: str | None) -> Config:
    """Build a Config from required files followed by optional ones."""
    builder = ConfigBuilder()
    if dotenv:
        builder.add_dotenv_file(dotenv)
    for path in required:
        builder.add_required_file(path)
    for path in optional:
        builder.add_file(path)
    return builder.build()


def _json_default(value: Any) -> str:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def render(value: Any, fmt: str, key: str | None = None) -> str:
    """Render a tree (or a section of it) as TOML or JSON."""
    if fmt == "json":
        return json.dumps(value, indent=2, sort_keys=True, default=_json_default)
    if not isinstance(value, dict):
        # TOML documents must be tables.
        value = {key or "value": value}
    return rtoml.dumps(value, pretty=True)


def _fail(error: ConfigError) -> None:
    click.secho(f"Error: {error}", fg="red", err=True)
    sys.exit(1)


_source_options = [
    click.option(
        "-r",
        "--required",
        "required",
        multiple=True,
        type=click.Path(dir_okay=False),
        help="TOML file that must exist. Loaded before optional files, in order given.",
    ),
    click.option(
        "-f",
        "--file",
        "optional",
        multiple=True,
        type=click.Path(dir_okay=False),
        help="TOML file that is skipped when missing. Later files override earlier ones.",
    ),
    click.option(
        "--dotenv",
        type=click.Path(dir_okay=False),
        default=None,
        help="Read interpolation variables from this .env file as well.",
    ),
]


def source_options(func):
    for option in reversed(_source_options):
        func = option(func)
    return func


@click.group("layerconf")
def layerconf_group():
    """Inspect layered TOML configuration."""
    pass


@layerconf_group.command("show")
@source_options
@click.option("--section", "section", default=None, help="Only print this (dotted) key.")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["toml", "json"]),
    default="toml",
    show_default=True,
)
def show_cli(
    required: tuple[str, ...],
    optional: tuple[str, ...],
    dotenv: str | None,
    section: str | None,
    fmt: str,
) -> None:
    """Print the merged configuration.

    Examples:\n
        layerconf show -r config/base.toml -f config/local.toml\n
        layerconf show -r config.toml --section database --format json\n
    """
    try:
        config = build_config(required, optional, dotenv)
        value = config.get_value(section) if section else config.as_dict()
    except ConfigError as e:
        _fail(e)
        return

    click.echo(render(value, fmt, section))


@layerconf_group.command("check")
@source_options
def check_cli(required: tuple[str, ...], optional: tuple[str, ...], dotenv: str | None) -> None:
    """Load the configuration and report whether it is valid."""
    try:
        build_config(required, optional, dotenv)
    except ConfigError as e:
        _fail(e)
        return

    click.secho("OK", fg="green")


def main() -> None:
    layerconf_group()


if __name__ == "__main__":
    main()
