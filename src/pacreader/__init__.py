import logging

import typer
from rich.logging import RichHandler

from .config import PacmanConfig, RepoConfig, load_config, parse_config
from .errors import ConfigError
from .siglevel import SigLevel, parse_siglevel

logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            rich_tracebacks=True,
            tracebacks_suppress=[typer],
        )
    ],
)

__all__ = [
    "ConfigError",
    "PacmanConfig",
    "RepoConfig",
    "SigLevel",
    "load_config",
    "parse_config",
    "parse_siglevel",
]
