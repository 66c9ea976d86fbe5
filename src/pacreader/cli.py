"""pacreader: inspect and validate pacman.conf files."""

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from pacreader.config import PacmanConfig, load_config
from pacreader.constants import DEFAULT_CONFIG_PATH
from pacreader.errors import ConfigError
from pacreader.handle import expand_servers, resolve_architecture

logger = logging.getLogger(__name__)

cli = typer.Typer(help="Read pacman.conf files.", no_args_is_help=True)
err_console = Console(stderr=True, soft_wrap=True)

ConfigArg = typer.Argument(DEFAULT_CONFIG_PATH, help="Path to the config file to read")


def _load(config: Path) -> PacmanConfig:
    logger.debug(f"Loading {config}")
    try:
        return load_config(config)
    except (ConfigError, OSError) as e:
        err_console.print(f"[red]error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e


@cli.callback()
def setup(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")):
    if verbose:
        logging.getLogger("pacreader").setLevel(logging.DEBUG)


@cli.command()
def check(config: Path = ConfigArg):
    """Parse a config file and report whether it is valid."""
    conf = _load(config)
    typer.echo(f"{config}: OK ({len(conf.repos)} repositories)")


@cli.command()
def show(config: Path = ConfigArg):
    """Print the parsed configuration as JSON."""
    conf = _load(config)
    typer.echo(conf.model_dump_json(indent=2))


@cli.command()
def dump(config: Path = ConfigArg):
    """Print the parsed configuration in pacman.conf format."""
    conf = _load(config)
    try:
        typer.echo(conf.to_ini(), nl=False)
    except ConfigError as e:
        err_console.print(f"[red]error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e


@cli.command()
def servers(
    config: Path = ConfigArg,
    arch: str | None = typer.Option(None, help="Architecture to substitute for $arch (default: from config)"),
):
    """List the server addresses of every repository, with $repo and $arch filled in."""
    conf = _load(config)
    try:
        resolved = resolve_architecture(arch or conf.architecture)
    except ConfigError as e:
        err_console.print(f"[red]error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e

    for repo in conf.repos:
        for url in expand_servers(repo, resolved):
            typer.echo(f"{repo.name}\t{url}")


def main() -> None:
    """Main entry point for the pacreader CLI."""
    cli()
