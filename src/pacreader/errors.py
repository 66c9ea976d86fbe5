"""Exceptions raised while reading and finalizing a configuration."""


class ConfigError(ValueError):
    """Base class for every configuration failure.

    Args:
        message: Human readable description of the failure
        lineno: Line number in `source` where the failure was found, if known
        source: Name of the file (or stream) being read, if known
    """

    def __init__(self, message: str, lineno: int | None = None, source: str | None = None):
        super().__init__(message)
        self.message = message
        self.lineno = lineno
        self.source = source

    def __str__(self) -> str:
        if self.source:
            return f"{self.source}: {self.message}"
        return self.message


class ConfigSyntaxError(ConfigError):
    """Malformed line: bad section header, overlong line, Include without a path."""


class UnknownOptionError(ConfigError):
    """A key in the options scope that names no known option."""


class OptionPlacementError(ConfigError):
    """A global option used inside a repository section."""


class InvalidSigLevelError(ConfigError):
    """A signature level token that is not recognized."""


class IncludeError(ConfigError):
    """An Include target that cannot be opened, or that includes itself."""


class ArchitectureError(ConfigError):
    """The running machine's architecture could not be determined."""
