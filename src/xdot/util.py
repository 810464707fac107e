# xdot - symlink your dotfiles from ~/.xdot
# Copyright (C) 2025 The xdot contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Utility functions for xdot.

This module contains general-purpose utilities used throughout xdot,
including verbosity-gated output and path manipulation.
"""

from __future__ import annotations

import os
import re
import sys

VERSION = "0.3.0"
PROGRAM_NAME = "xdot"

# Debug level is module-level state
_debug_level = 0


def set_debug_level(level: int) -> None:
    """Set verbosity level for debug() and report()."""
    global _debug_level
    _debug_level = level


def get_debug_level() -> int:
    """Get current debug level."""
    return _debug_level


def debug(level: int, *args) -> None:
    """
    Log to STDERR based on debug_level setting.

    Verbosity rules:
        0: errors only
        >= 1: print no-op outcomes (already linked, nothing to unlink)
        >= 2: print conflicts and descents into existing directories
        >= 3: print trace detail: package/contents/entry
        >= 4: debug helper routines

    Supports two calling conventions:
        debug(level, msg)
        debug(level, indent_level, msg)
    """
    if len(args) >= 2 and isinstance(args[0], int):
        indent_level = args[0]
        msg = args[1]
    elif len(args) >= 1:
        indent_level = 0
        msg = args[0]
    else:
        return

    if _debug_level >= level:
        indent = "    " * indent_level
        print(f"{indent}{msg}", file=sys.stderr)


def report(level: int, msg: str) -> None:
    """Print a human-readable outcome line to STDOUT if verbose enough."""
    if _debug_level >= level:
        print(msg)


def join_paths(*paths: str) -> str:
    """
    Concatenate given paths with normalization.

    Factors out redundant path elements: '//' => '/', 'a/./b' => 'a/b'.
    Unlike os.path.normpath(), '..' is left alone.
    """
    result = ""

    for part in paths:
        if not part:
            continue

        part = _canonpath(part)

        if part.startswith("/"):
            result = part  # absolute path, ignore all previous parts
        else:
            if result and result != "/":
                result += "/"
            result += part

    debug(4, 2, f"| Joined: {result}")
    return _canonpath(result)


def _canonpath(path: str) -> str:
    """
    Clean up a path by removing redundant separators and '.' components.

    Does NOT resolve symlinks or check if path exists.
    """
    if not path:
        return path

    # Remove duplicate slashes
    path = re.sub(r"/+", "/", path)

    # Remove trailing slash (unless it's just "/")
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]

    # Remove leading ./ (but not just ".")
    path = re.sub(r"^\./", "", path)

    # Remove /. at the end
    path = re.sub(r"/\.$", "", path)

    # Remove /./ in the middle
    while "/./" in path:
        path = path.replace("/./", "/")

    if not path:
        path = "."

    return path


def canonical_link_path(path: str) -> str:
    """
    Absolute form of ``path`` with its parent directories resolved.

    The last component is not followed: two paths compare equal only when
    they name the same directory entry.
    """
    path = os.path.normpath(os.path.abspath(path))
    head, tail = os.path.split(path)
    if not tail:
        return path
    return os.path.join(os.path.realpath(head), tail)


def is_within(path: str, directory: str) -> bool:
    """Return True if ``path`` is ``directory`` or lies below it."""
    try:
        return os.path.commonpath([path, directory]) == directory
    except ValueError:
        return False


def tilde(path: str, home: str | None = None) -> str:
    """Replace $HOME with ~ for readability in messages."""
    home = home if home is not None else os.environ.get("HOME", "")
    if home and home != "/":
        if path == home:
            return "~"
        if path.startswith(home + "/"):
            return "~" + path[len(home):]
    return path
