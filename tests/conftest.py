"""Test harness configuration.

This repo uses a `src/` layout; make sure the in-repo sources are imported
even when an older `pacreader` is installed.
"""

from __future__ import annotations

import sys
import textwrap
from pathlib import Path

import pytest

PACMAN_CONF = """
#
# GENERAL OPTIONS
#
[options]
RootDir     = /
DBPath      = /var/lib/pacman/
CacheDir    = /var/cache/pacman/pkg/ /other/cachedir
LogFile     = /var/log/pacman.log
GPGDir      = /etc/pacman.d/gnupg/
HoldPkg     = pacman glibc
# If upgrades are available for these packages they will be asked for first
SyncFirst   = pacman
#XferCommand = /usr/bin/curl -C - -f %u > %o
XferCommand = /usr/bin/wget --passive-ftp -c -O %o %u
CleanMethod = KeepInstalled
Architecture = x86_64

# Pacman won't upgrade packages listed in IgnorePkg and members of IgnoreGroup
IgnorePkg   = hello world
IgnoreGroup = kde

NoUpgrade   = kernel26
NoExtract   =

# Misc options
UseSyslog
#UseDelta
TotalDownload
CheckSpace
#VerbosePkgLists
ILoveCandy
# By default, pacman accepts packages signed by keys that its local keyring
# trusts (see pacman-key and its man page), as well as unsigned packages.
SigLevel    = Required DatabaseOptional
LocalFileSigLevel = Optional
RemoteFileSigLevel = Required

[core]
SigLevel = Required
Server = ftp://ftp.example.com/foobar/$repo/os/$arch/

[custom]
SigLevel = Optional TrustAll
Server = file:///home/custompkgs
"""


def pytest_configure() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src_path = str(repo_root / "src")
    if sys.path[:1] != [src_path] and src_path not in sys.path:
        sys.path.insert(0, src_path)


@pytest.fixture()
def pacman_conf() -> str:
    return PACMAN_CONF


@pytest.fixture()
def write_conf(tmp_path: Path):
    """Write dedented config text to `tmp_path / name` and return the path."""

    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(text).lstrip("\n"), encoding="utf-8")
        return path

    return _write
