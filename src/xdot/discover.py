# xdot - symlink your dotfiles from ~/.xdot
# Copyright (C) 2025 The xdot contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Package discovery for ``xdot --all``."""

from __future__ import annotations

import os

import pathspec

from xdot.types import XdotError
from xdot.util import debug

IGNORE_FILES = (".gitignore", ".ignore")


def load_ignore_spec(xdot_dir: str) -> pathspec.GitIgnoreSpec:
    """Combine the gitignore-style patterns of every ignore file in xdot_dir."""
    lines: list[str] = []
    for name in IGNORE_FILES:
        path = os.path.join(xdot_dir, name)
        try:
            with open(path, "r", encoding="utf-8") as fh:
                lines.extend(fh.read().splitlines())
        except FileNotFoundError:
            continue
        except OSError as e:
            raise XdotError(f"Could not read {path} ({e.strerror})") from e
        debug(3, 0, f"Read ignore patterns from {path}")
    return pathspec.GitIgnoreSpec.from_lines(lines)


def find_packages(xdot_dir: str) -> list[str]:
    """Return the sorted names of all packages in xdot_dir.

    Hidden directories and directories matched by ``.gitignore``/``.ignore``
    are left out.
    """
    try:
        listing = os.listdir(xdot_dir)
    except OSError as e:
        raise XdotError(f"cannot read directory: {xdot_dir} ({e.strerror})") from e

    spec = load_ignore_spec(xdot_dir)
    packages = []
    for name in sorted(listing):
        if name.startswith("."):
            continue
        if not os.path.isdir(os.path.join(xdot_dir, name)):
            continue
        if spec.match_file(name + "/"):
            debug(2, 0, f"Ignoring package {name}")
            continue
        packages.append(name)
    return packages
