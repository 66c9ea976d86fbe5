"""Line tokenizer for the pacman.conf INI dialect."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TextIO

from pacreader.constants import MAX_LINE_LENGTH
from pacreader.errors import ConfigSyntaxError


class TokenType(str, Enum):
    COMMENT = "comment"
    SECTION = "section"
    KEY = "key"


@dataclass(frozen=True)
class Token:
    """One classified line.

    `values` is empty for comments, section headers and boolean directives.
    """

    type: TokenType
    name: str = ""
    values: tuple[str, ...] = ()


COMMENT_TOKEN = Token(TokenType.COMMENT)


def parse_line(line: str, lineno: int) -> Token:
    """Classify a single physical line.

    Args:
        line: The raw line, with or without its line terminator
        lineno: Line number of `line`, used in error messages

    Returns:
        The classified token

    Raises:
        ConfigSyntaxError: if a section header is malformed
    """
    line = line.strip()
    if not line or line.startswith("#"):
        return COMMENT_TOKEN

    if line.startswith("["):
        closing = line.find("]")
        if closing < 0:
            raise ConfigSyntaxError(f"missing ']' in section name at line {lineno}", lineno=lineno)
        name = line[1:closing]
        if trailing := line[closing + 1 :]:
            raise ConfigSyntaxError(
                f"trailing characters {trailing!r} after section name {name} at line {lineno}",
                lineno=lineno,
            )
        return Token(TokenType.SECTION, name)

    if "=" not in line:
        # boolean option
        return Token(TokenType.KEY, line)

    name, _, rest = line.partition("=")
    values = tuple(word.strip() for word in rest.split(" ") if word.strip())
    return Token(TokenType.KEY, name.strip(), values)


class ConfReader:
    """A text source plus its own line counter.

    Args:
        stream: Text stream to read lines from
        name: Display name used in error messages (usually the file path)
        path: Resolved path of the file behind `stream`, if it is a file
    """

    def __init__(self, stream: TextIO, name: str | None = None, path: Path | None = None):
        self.stream = stream
        self.name = name or getattr(stream, "name", None) or "<stream>"
        self.path = path
        self.lineno = 0

    def __repr__(self) -> str:
        return f"ConfReader({self.name!r}, lineno={self.lineno})"

    def read_token(self) -> Token | None:
        """Read and classify the next line.

        Returns:
            The next token, or None at end of input

        Raises:
            ConfigSyntaxError: for overlong or undecodable lines and malformed section headers
        """
        try:
            line = self.stream.readline(MAX_LINE_LENGTH)
        except UnicodeDecodeError as e:
            lineno = self.lineno + 1
            raise ConfigSyntaxError(
                f"line {lineno} is not valid text: {e}", lineno=lineno, source=self.name
            ) from e
        if not line:
            return None
        self.lineno += 1

        # the line and its terminator must fit in the buffer, counted in bytes
        if len(line.rstrip("\r\n").encode("utf-8", "surrogateescape")) >= MAX_LINE_LENGTH:
            raise ConfigSyntaxError(f"line {self.lineno} too long", lineno=self.lineno, source=self.name)

        try:
            return parse_line(line, self.lineno)
        except ConfigSyntaxError as e:
            e.source = self.name
            raise
