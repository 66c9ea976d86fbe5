from os import getenv
from pathlib import Path

# config file read when no path is given on the command line
DEFAULT_CONFIG_PATH = Path(getenv("PACREADER_CONFIG", "/etc/pacman.conf"))

DEFAULT_ROOT_DIR = "/"
DEFAULT_DB_PATH = "/var/lib/pacman"

# byte size of the engine's buffered line reader; a line must fit in it with its terminator
MAX_LINE_LENGTH = 4096

# the only section whose keys are global options
OPTIONS_SECTION = "options"
