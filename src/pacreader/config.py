"""Parser for the pacman.conf format."""

import logging
from enum import Enum, IntFlag
from pathlib import Path
from typing import NamedTuple, TextIO

from pydantic import BaseModel, Field

from pacreader.constants import DEFAULT_DB_PATH, DEFAULT_ROOT_DIR, OPTIONS_SECTION
from pacreader.errors import (
    ConfigSyntaxError,
    IncludeError,
    InvalidSigLevelError,
    OptionPlacementError,
    UnknownOptionError,
)
from pacreader.siglevel import SigLevel, format_siglevel, parse_siglevel
from pacreader.tokenizer import ConfReader, Token, TokenType

logger = logging.getLogger(__name__)


class PacmanOption(IntFlag):
    """Boolean switches of the [options] section."""

    USE_SYSLOG = 1 << 0
    COLOR = 1 << 1
    SHOW_SIZE = 1 << 2
    USE_DELTA = 1 << 3
    TOTAL_DOWNLOAD = 1 << 4
    CHECK_SPACE = 1 << 5
    VERBOSE_PKG_LISTS = 1 << 6
    I_LOVE_CANDY = 1 << 7


class OptionKind(str, Enum):
    FLAG = "flag"
    STRING = "string"
    LIST = "list"
    SIGLEVEL = "siglevel"


class OptionSpec(NamedTuple):
    kind: OptionKind
    field: str | None = None
    flag: PacmanOption = PacmanOption(0)


# every key accepted in [options]; anything else is an unknown option
# fmt: off
OPTIONS: dict[str, OptionSpec] = {
    "RootDir":            OptionSpec(OptionKind.STRING, "root_dir"),
    "DBPath":             OptionSpec(OptionKind.STRING, "db_path"),
    "GPGDir":             OptionSpec(OptionKind.STRING, "gpg_dir"),
    "LogFile":            OptionSpec(OptionKind.STRING, "log_file"),
    "Architecture":       OptionSpec(OptionKind.STRING, "architecture"),
    "XferCommand":        OptionSpec(OptionKind.STRING, "xfer_command"),
    "CleanMethod":        OptionSpec(OptionKind.STRING, "clean_method"),
    "CacheDir":           OptionSpec(OptionKind.LIST, "cache_dir"),
    "HoldPkg":            OptionSpec(OptionKind.LIST, "hold_pkg"),
    "SyncFirst":          OptionSpec(OptionKind.LIST, "sync_first"),
    "IgnoreGroup":        OptionSpec(OptionKind.LIST, "ignore_group"),
    "IgnorePkg":          OptionSpec(OptionKind.LIST, "ignore_pkg"),
    "NoExtract":          OptionSpec(OptionKind.LIST, "no_extract"),
    "NoUpgrade":          OptionSpec(OptionKind.LIST, "no_upgrade"),
    "UseSyslog":          OptionSpec(OptionKind.FLAG, flag=PacmanOption.USE_SYSLOG),
    "Color":              OptionSpec(OptionKind.FLAG, flag=PacmanOption.COLOR),
    "ShowSize":           OptionSpec(OptionKind.FLAG, flag=PacmanOption.SHOW_SIZE),
    "UseDelta":           OptionSpec(OptionKind.FLAG, flag=PacmanOption.USE_DELTA),
    "TotalDownload":      OptionSpec(OptionKind.FLAG, flag=PacmanOption.TOTAL_DOWNLOAD),
    "CheckSpace":         OptionSpec(OptionKind.FLAG, flag=PacmanOption.CHECK_SPACE),
    "VerbosePkgLists":    OptionSpec(OptionKind.FLAG, flag=PacmanOption.VERBOSE_PKG_LISTS),
    "ILoveCandy":         OptionSpec(OptionKind.FLAG, flag=PacmanOption.I_LOVE_CANDY),
    "SigLevel":           OptionSpec(OptionKind.SIGLEVEL, "sig_level"),
    "LocalFileSigLevel":  OptionSpec(OptionKind.SIGLEVEL, "local_file_sig_level"),
    "RemoteFileSigLevel": OptionSpec(OptionKind.SIGLEVEL, "remote_file_sig_level"),
}
# fmt: on


class RepoConfig(BaseModel):
    """A sync repository, declared by a `[name]` section."""

    name: str
    sig_level: SigLevel = SigLevel.USE_DEFAULT
    servers: list[str] = Field(default_factory=list)


class PacmanConfig(BaseModel):
    """A parsed pacman.conf."""

    cache_dir: list[str] = Field(default_factory=list)
    hold_pkg: list[str] = Field(default_factory=list)
    sync_first: list[str] = Field(default_factory=list)
    ignore_group: list[str] = Field(default_factory=list)
    ignore_pkg: list[str] = Field(default_factory=list)
    no_extract: list[str] = Field(default_factory=list)
    no_upgrade: list[str] = Field(default_factory=list)

    root_dir: str = DEFAULT_ROOT_DIR
    db_path: str = DEFAULT_DB_PATH
    gpg_dir: str = ""
    log_file: str = ""
    architecture: str = ""
    xfer_command: str = ""
    clean_method: str = ""

    sig_level: SigLevel = SigLevel(0)
    local_file_sig_level: SigLevel = SigLevel.USE_DEFAULT
    remote_file_sig_level: SigLevel = SigLevel.USE_DEFAULT

    options: PacmanOption = PacmanOption(0)
    repos: list[RepoConfig] = Field(default_factory=list)

    def get_repo(self, name: str) -> RepoConfig | None:
        """Return the first repository called `name`, if any."""
        return next((r for r in self.repos if r.name == name), None)

    def to_ini(self) -> str:
        """Render this configuration in pacman.conf format.

        Empty strings and lists are left out, so parsing the output
        gives back an equal configuration.
        """
        lines = [f"[{OPTIONS_SECTION}]"]
        for key, spec in OPTIONS.items():
            match spec.kind:
                case OptionKind.FLAG:
                    if self.options & spec.flag:
                        lines.append(key)
                case OptionKind.STRING:
                    if value := getattr(self, spec.field):
                        lines.append(f"{key} = {value}")
                case OptionKind.LIST:
                    if values := getattr(self, spec.field):
                        lines.append(f"{key} = {' '.join(values)}")
                case OptionKind.SIGLEVEL:
                    if tokens := format_siglevel(getattr(self, spec.field)):
                        lines.append(f"{key} = {' '.join(tokens)}")

        for repo in self.repos:
            lines.extend(["", f"[{repo.name}]"])
            if tokens := format_siglevel(repo.sig_level):
                lines.append(f"SigLevel = {' '.join(tokens)}")
            lines.extend(f"Server = {server}" for server in repo.servers)
        return "\n".join(lines) + "\n"


class ReaderStack:
    """The active reader plus the suspended readers of the files that included it.

    Streams opened for Include directives are owned by the stack and closed
    when their reader is popped or when the stack is closed; the primary
    stream belongs to the caller.
    """

    def __init__(self, primary: ConfReader):
        self.active = primary
        self._suspended: list[ConfReader] = []

    def __enter__(self) -> "ReaderStack":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def depth(self) -> int:
        return len(self._suspended)

    def _open_paths(self) -> list[Path]:
        return [r.path for r in (*self._suspended, self.active) if r.path is not None]

    def include(self, path: str) -> None:
        """Suspend the active reader and continue reading from `path`.

        Raises:
            IncludeError: if `path` is already being read, or cannot be opened
        """
        parent = self.active
        target = Path(path)
        if target.resolve() in self._open_paths():
            raise IncludeError(
                f"include cycle: {path} at line {parent.lineno} is already being read",
                lineno=parent.lineno,
                source=parent.name,
            )
        try:
            stream = target.open(encoding="utf-8", errors="surrogateescape")
        except OSError as e:
            raise IncludeError(
                f"error while processing Include directive at line {parent.lineno}: {e}",
                lineno=parent.lineno,
                source=parent.name,
            ) from e

        logger.debug(f"Including {path} from {parent.name}:{parent.lineno}")
        self._suspended.append(parent)
        self.active = ConfReader(stream, str(target), path=target.resolve())

    def pop(self) -> bool:
        """Drop the exhausted active reader and resume its parent.

        Returns:
            False if the active reader is the primary one
        """
        if not self._suspended:
            return False
        self.active.stream.close()
        self.active = self._suspended.pop()
        return True

    def close(self) -> None:
        while self.pop():
            pass


def _apply_repo_directive(repo: RepoConfig, token: Token, reader: ConfReader) -> None:
    match token.name:
        case "SigLevel":
            try:
                repo.sig_level = parse_siglevel(token.values)
            except InvalidSigLevelError as e:
                raise InvalidSigLevelError(
                    f"invalid SigLevel for repo {repo.name!r} at line {reader.lineno}: {e.message}",
                    lineno=reader.lineno,
                    source=reader.name,
                ) from e
        case "Server":
            repo.servers.extend(token.values)
        case "Usage":
            logger.debug(f"Ignoring Usage for repo {repo.name}: {' '.join(token.values)}")
        case _:
            raise OptionPlacementError(
                f"option {token.name} outside of [{OPTIONS_SECTION}] section, at line {reader.lineno}",
                lineno=reader.lineno,
                source=reader.name,
            )


def _apply_option(conf: PacmanConfig, token: Token, reader: ConfReader) -> None:
    spec = OPTIONS.get(token.name)
    if spec is None:
        raise UnknownOptionError(
            f"unknown option at line {reader.lineno}: {token.name}",
            lineno=reader.lineno,
            source=reader.name,
        )

    match spec.kind:
        case OptionKind.FLAG:
            conf.options |= spec.flag
        case OptionKind.STRING:
            setattr(conf, spec.field, " ".join(token.values))
        case OptionKind.LIST:
            getattr(conf, spec.field).extend(token.values)
        case OptionKind.SIGLEVEL:
            try:
                setattr(conf, spec.field, parse_siglevel(token.values))
            except InvalidSigLevelError as e:
                raise InvalidSigLevelError(
                    f"invalid value at line {reader.lineno}: {e.message}",
                    lineno=reader.lineno,
                    source=reader.name,
                ) from e


def parse_config(stream: TextIO, name: str | None = None) -> PacmanConfig:
    """Parse a pacman.conf from an open text stream.

    Include directives are followed as they are met. Keys that appear before
    the first section header are treated as [options] keys.

    Args:
        stream: The primary config stream; it is not closed
        name: Display name for error messages. Defaults to the stream's name.

    Returns:
        The assembled configuration

    Raises:
        ConfigError: on the first syntax or semantic error found
    """
    conf = PacmanConfig()
    primary = ConfReader(stream, name)
    if primary.name != "<stream>" and Path(primary.name).is_file():
        primary.path = Path(primary.name).resolve()

    repo: RepoConfig | None = None
    with ReaderStack(primary) as readers:
        while True:
            reader = readers.active
            token = reader.read_token()
            if token is None:
                if not readers.pop():
                    break
                continue

            match token.type:
                case TokenType.COMMENT:
                    pass
                case TokenType.SECTION:
                    logger.debug(f"Entering section [{token.name}] at {reader.name}:{reader.lineno}")
                    if token.name == OPTIONS_SECTION:
                        repo = None
                    else:
                        repo = RepoConfig(name=token.name)
                        conf.repos.append(repo)
                case TokenType.KEY if token.name == "Include":
                    if not token.values:
                        raise ConfigSyntaxError(
                            f"Include directive without a path at line {reader.lineno}",
                            lineno=reader.lineno,
                            source=reader.name,
                        )
                    readers.include(token.values[0])
                case TokenType.KEY if repo is not None:
                    _apply_repo_directive(repo, token, reader)
                case TokenType.KEY:
                    _apply_option(conf, token, reader)

    logger.debug(f"Parsed {primary.name}: {len(conf.repos)} repositories")
    return conf


def load_config(path: str | Path) -> PacmanConfig:
    """Read and parse the pacman.conf at `path`."""
    path = Path(path)
    with path.open(encoding="utf-8", errors="surrogateescape") as f:
        return parse_config(f, str(path))
