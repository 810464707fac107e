# xdot - symlink your dotfiles from ~/.xdot
# Copyright (C) 2025 The xdot contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
xdot - symlink your dotfiles from ~/.xdot

Every package under ``~/.xdot`` is a directory tree mirroring where its
files belong. A first directory named ``@NAME`` stands for the directory
held by ``$NAME`` (``@XDG_CONFIG_HOME``, ``@HOME``, ...); everything else
is placed relative to ``/``::

    ~/.xdot/git/@XDG_CONFIG_HOME/git/config  ->  ~/.config/git/config
    ~/.xdot/bash/@HOME/.bashrc               ->  ~/.bashrc

Basic usage::

    from xdot import link, unlink

    result = link("git", "bash")
    for action in result.conflicts:
        print("Skipped:", action)

    result = unlink("bash")

With configuration reuse::

    from xdot import link, XdotConfig

    config = XdotConfig(dir="/home/user/dotfiles", verbose=1)
    link("pkg1", config=config)
    link("pkg2", config=config)

Dry-run mode::

    result = link("pkg", dry_run=True)
    print("Would perform:", result.actions)
"""

from xdot.xdot import link, unlink, relink, process
from xdot.resolve import resolve, classify
from xdot.discover import find_packages
from xdot.types import (
    Mode,
    Outcome,
    LinkAction,
    BaseDirRef,
    PlainSegment,
    XdotConfig,
    XdotResult,
    XdotError,
    XdotCLIError,
    XdotResolutionError,
    MissingHomeError,
    UnknownVariableError,
    XdotFilesystemError,
)
from xdot.util import VERSION as __version__

# CLI entry point
from xdot.cli import main

__all__ = [
    "link",
    "unlink",
    "relink",
    "process",
    "resolve",
    "classify",
    "find_packages",
    "Mode",
    "Outcome",
    "LinkAction",
    "BaseDirRef",
    "PlainSegment",
    "XdotConfig",
    "XdotResult",
    "XdotError",
    "XdotCLIError",
    "XdotResolutionError",
    "MissingHomeError",
    "UnknownVariableError",
    "XdotFilesystemError",
    "__version__",
    "main",
]
