"""Turning a parsed configuration into a package engine handle."""

import logging
import os
from collections.abc import Callable
from enum import IntFlag
from typing import Protocol

from pacreader.config import PacmanConfig, RepoConfig
from pacreader.errors import ArchitectureError

logger = logging.getLogger(__name__)
engine_logger = logging.getLogger("pacreader.alpm")


class SyncDatabase(Protocol):
    servers: list[str]


class Handle(Protocol):
    """The subset of a `pyalpm.Handle` used during finalization."""

    logcb: Callable[[int, str], None] | None

    def register_syncdb(self, name: str, siglevel: int) -> SyncDatabase: ...


HandleFactory = Callable[[str, str], Handle]


class LogLevel(IntFlag):
    """Engine log levels, as passed to the log callback."""

    ERROR = 1
    WARNING = 2
    DEBUG = 4
    FUNCTION = 8


DEFAULT_LOG_LEVEL = LogLevel.WARNING

_LOGGING_LEVELS = {
    LogLevel.ERROR: logging.ERROR,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.FUNCTION: logging.DEBUG,
}


def log_callback(level: int, message: str, threshold: int = DEFAULT_LOG_LEVEL) -> None:
    """Forward an engine log line to the `pacreader.alpm` logger.

    Lines above `threshold` (i.e. more verbose) are dropped.
    """
    if level > threshold:
        return
    engine_logger.log(_LOGGING_LEVELS.get(level, logging.DEBUG), message.rstrip("\n"))


def get_arch() -> str:
    """Return the machine hardware name of the running system (e.g. x86_64)."""
    machine = os.uname().machine
    if not machine:
        raise OSError("uname() returned an empty machine name")
    return machine


def resolve_architecture(arch: str, arch_provider: Callable[[], str] = get_arch) -> str:
    """Replace the special value "auto" with the running system's architecture.

    Raises:
        ArchitectureError: if `arch` is "auto" and the provider fails
    """
    if arch != "auto":
        return arch
    try:
        return arch_provider()
    except OSError as e:
        raise ArchitectureError("architecture is 'auto' but couldn't uname()") from e


def expand_server(url: str, repo: str, arch: str) -> str:
    """Substitute `$repo` and then `$arch` in a server address.

    Examples:
        >>> expand_server("https://mirror.example/$repo/os/$arch", "core", "x86_64")
        'https://mirror.example/core/os/x86_64'
    """
    return url.replace("$repo", repo).replace("$arch", arch)


def expand_servers(repo: RepoConfig, arch: str) -> list[str]:
    return [expand_server(url, repo.name, arch) for url in repo.servers]


def _default_handle_factory() -> HandleFactory:
    import pyalpm

    return pyalpm.Handle


def create_handle(
    conf: PacmanConfig,
    handle_factory: HandleFactory | None = None,
    arch_provider: Callable[[], str] = get_arch,
) -> Handle:
    """Build a package engine handle and register every repository with it.

    `conf.architecture` is resolved in place and each successfully registered
    repository gets its templated server list, both on `conf` and on the
    engine's sync database. A repository that fails to register is skipped.

    Args:
        conf: A parsed configuration
        handle_factory: Called as `handle_factory(root_dir, db_path)`. Defaults to `pyalpm.Handle`.
        arch_provider: Returns the running system's architecture

    Returns:
        The engine handle

    Raises:
        ArchitectureError: if the architecture is "auto" and cannot be determined
    """
    if handle_factory is None:
        handle_factory = _default_handle_factory()

    handle = handle_factory(conf.root_dir, conf.db_path)
    handle.logcb = log_callback
    conf.architecture = resolve_architecture(conf.architecture, arch_provider)

    for repo in conf.repos:
        try:
            db = handle.register_syncdb(repo.name, int(repo.sig_level))
        except Exception as e:
            logger.warning(f"Skipping repository {repo.name}: registration failed: {e}")
            continue
        repo.servers = expand_servers(repo, conf.architecture)
        db.servers = list(repo.servers)
        logger.debug(f"Registered repository {repo.name} with {len(repo.servers)} servers")

    return handle
