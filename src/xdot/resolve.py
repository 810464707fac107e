# xdot - symlink your dotfiles from ~/.xdot
# Copyright (C) 2025 The xdot contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Destination resolution for package entries.

A package entry whose first component is ``@NAME`` lives in the base
directory named by environment variable ``NAME``; the XDG Base Directory
variables and ``HOME`` fall back to their standard defaults when unset.
Every other entry is mapped relative to the filesystem root::

    @XDG_CONFIG_HOME/git/config  ->  $XDG_CONFIG_HOME/git/config
    @HOME/.bashrc                ->  $HOME/.bashrc
    usr/local/bin/tool           ->  /usr/local/bin/tool
"""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from typing import Optional

from xdot.types import (
    BaseDirRef,
    PlainSegment,
    Segment,
    MissingHomeError,
    UnknownVariableError,
)
from xdot.util import debug, join_paths

BASE_DIR_SIGIL = "@"

# Defaults relative to $HOME, from the XDG Base Directory Specification
XDG_DEFAULTS = {
    "XDG_CONFIG_HOME": ".config",
    "XDG_DATA_HOME": ".local/share",
    "XDG_CACHE_HOME": ".cache",
    "XDG_STATE_HOME": ".local/state",
}


def classify(component: str) -> Segment:
    """Classify the first component of a package entry."""
    if component.startswith(BASE_DIR_SIGIL):
        return BaseDirRef(component[len(BASE_DIR_SIGIL):])
    return PlainSegment(component)


def split_entry(package_root: str, entry: str | Sequence[str]) -> list[str]:
    """Split a package entry into its path components.

    ``entry`` may be a '/'-separated relative path, a sequence of
    components, or an absolute path inside ``package_root``.
    """
    if isinstance(entry, str):
        if os.path.isabs(entry):
            entry = os.path.relpath(entry, package_root)
        entry = entry.split("/")
    return [c for c in entry if c and c != "."]


def home_directory(environ: Optional[Mapping[str, str]] = None) -> str:
    """Return $HOME, raising MissingHomeError if it is unset or empty."""
    environ = os.environ if environ is None else environ
    home = environ.get("HOME")
    if not home:
        raise MissingHomeError()
    return home


def base_directory(name: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """Return the directory an ``@NAME`` entry stands for."""
    environ = os.environ if environ is None else environ
    value = environ.get(name)

    if value and name in XDG_DEFAULTS and not os.path.isabs(value):
        # Relative paths in XDG variables are invalid and must be ignored
        debug(2, 1, f"Ignoring relative ${name}: {value}")
        value = None

    if value:
        return value

    if name == "HOME":
        return home_directory(environ)

    if name in XDG_DEFAULTS:
        return join_paths(home_directory(environ), XDG_DEFAULTS[name])

    raise UnknownVariableError(name)


def default_xdot_dir(environ: Optional[Mapping[str, str]] = None) -> str:
    """Return the xdot root: $XDOT_DIR if set, else ~/.xdot."""
    environ = os.environ if environ is None else environ
    return environ.get("XDOT_DIR") or join_paths(home_directory(environ), ".xdot")


def resolve(
    package_root: str,
    entry: str | Sequence[str],
    environ: Optional[Mapping[str, str]] = None,
    root: str = "/",
) -> str:
    """Compute the absolute destination of a package entry.

    Args:
        package_root: The package directory the entry belongs to.
        entry: Path of the entry relative to ``package_root``.
        environ: Environment for ``@NAME`` lookups (defaults to os.environ).
        root: Directory that root-relative entries are placed under.

    Raises:
        MissingHomeError: A default needed $HOME and it is not set.
        UnknownVariableError: ``@NAME`` is unset and has no default.
    """
    components = split_entry(package_root, entry)
    if not components:
        raise ValueError(f"empty package entry in {package_root}")

    head, rest = components[0], components[1:]
    match classify(head):
        case BaseDirRef(name=name):
            return join_paths(base_directory(name, environ), *rest)
        case PlainSegment():
            return join_paths(root, *components)
