# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""Filterbox CLI - run and inspect filter chains"""

import json
import logging
import sys
from pathlib import Path

import click

# Force UTF-8 encoding for Windows
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")
    sys.stderr.reconfigure(encoding="utf-8")

from filterbox import __version__
from filterbox.core.chain import FilterChain
from filterbox.core.config import get_config, load_chain_config, load_config, set_config
from filterbox.core.exceptions import ConfigValidationError, FilterBoxError
from filterbox.core.logger import LEVELS, get_logger
from filterbox.core.registry import get_registry
from filterbox.core.schema import ChainSchemaGenerator

logger = logging.getLogger("filterbox.cli")


def _report(error: FilterBoxError, prefix: str = "Error"):
    click.echo(f"{prefix}: {error.message}", err=True)
    if isinstance(error, ConfigValidationError):
        for item in error.errors:
            loc = ".".join(str(part) for part in item.get("loc", []))
            click.echo(f"  - {loc}: {item.get('msg')}", err=True)


def _build_chain(config_file: str, strict: bool) -> FilterChain:
    data = load_chain_config(Path(config_file))
    return FilterChain(data, strict=True if strict else None)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    type=click.Choice(list(LEVELS), case_sensitive=False),
    default=None,
    help="Override the configured log level",
)
@click.option(
    "--settings",
    "settings_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Settings file (YAML)",
)
def cli(log_level: str, settings_file: str):
    """Filterbox - composable value filters.

    Build a filter chain from a YAML or JSON file and run text through it.

    Examples:
        filterbox run chain.yaml --input "  Hello  "
        cat data.txt | filterbox run chain.yaml
        filterbox validate chain.yaml
        filterbox list
    """
    try:
        if settings_file:
            settings = load_config(Path(settings_file))
            set_config(settings)
        else:
            settings = get_config()
    except FilterBoxError as e:
        _report(e, "Invalid settings")
        raise click.Abort()

    level = (log_level or settings.observability.log_level).upper()
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=LEVELS.get(level, logging.INFO),
        stream=sys.stderr,
        force=True,
    )
    if settings.observability.file_logging:
        log = get_logger("filterbox", level, settings.paths.log_dir, console_output=False)
        log.info(f"Writing logs to {log.log_file}")


@cli.command()
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--input", "-i", "text", default=None, help="Value to filter (default: each stdin line)")
@click.option("--strict", is_flag=True, help="Reject unknown configuration keys")
def run(config_file: str, text: str, strict: bool):
    """Run text through the chain defined in CONFIG_FILE.

    Examples:
        filterbox run chain.yaml --input "<b>Hi</b>"
        filterbox run chain.yaml < input.txt
    """
    try:
        chain = _build_chain(config_file, strict)
    except FilterBoxError as e:
        _report(e)
        raise click.Abort()

    logger.debug(f"Running {config_file} ({chain.count()} filters)")

    try:
        if text is not None:
            click.echo(chain.filter(text))
            return

        for line in click.get_text_stream("stdin"):
            click.echo(chain.filter(line.rstrip("\r\n")))
    except FilterBoxError as e:
        _report(e)
        raise click.Abort()


@cli.command()
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--strict", is_flag=True, help="Reject unknown configuration keys")
def validate(config_file: str, strict: bool):
    """Validate a chain file and list its filters in execution order."""
    try:
        chain = _build_chain(config_file, strict)
    except FilterBoxError as e:
        _report(e, "Validation failed")
        raise click.Abort()

    click.echo(f"Chain is valid: {config_file}")
    for entry, priority in chain.get_entries():
        click.echo(f"  [{priority:>6}] {entry!r}")


@cli.command("list")
def list_filters():
    """List registered filters and their aliases."""
    registry = get_registry()
    descriptions = registry.list_builtin_filters()

    click.echo("Available filters:")
    for name, aliases in registry.list_aliases().items():
        line = f"  {name}"
        if aliases:
            line += f" ({', '.join(aliases)})"
        if name in descriptions:
            line += f" - {descriptions[name]}"
        click.echo(line)


@cli.command()
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Output file")
def schema(output: str):
    """Print the JSON Schema of chain configuration files."""
    schema_data = ChainSchemaGenerator.generate()
    if output is None:
        click.echo(json.dumps(schema_data, indent=2))
        return

    with open(output, "w", encoding="utf-8") as f:
        json.dump(schema_data, f, indent=2)
    click.echo(f"Schema generated: {output}")


if __name__ == "__main__":
    cli()
