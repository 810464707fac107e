# xdot - symlink your dotfiles from ~/.xdot
# Copyright (C) 2025 The xdot contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Core link operations - symlink package contents into place.

This module provides the public API for linking and unlinking packages,
as well as the internal _Linker class that walks package trees.
"""

from __future__ import annotations

import dataclasses
import errno
import os
import stat
from typing import Sequence

from xdot.resolve import classify, default_xdot_dir, resolve
from xdot.types import (
    BaseDirRef,
    LinkAction,
    Mode,
    Outcome,
    XdotConfig,
    XdotFilesystemError,
    XdotResolutionError,
    XdotResult,
)
from xdot.util import (
    canonical_link_path,
    debug,
    is_within,
    join_paths,
    report,
    set_debug_level,
    tilde,
)


# =============================================================================
# Public API
# =============================================================================


def link(
    *package_names: str,
    config: XdotConfig | None = None,
    **kwargs,
) -> XdotResult:
    """Link packages into place.

    Args:
        *package_names: Names of packages to link (in the xdot dir)
        config: Optional XdotConfig for configuration
        **kwargs: Override config fields (dir, dry_run, root, etc.)

    Returns:
        XdotResult with one LinkAction per processed entry
    """
    linker = _Linker(_make_config(config, **kwargs))
    linker.process(package_names, Mode.LINK)
    return linker.result()


def unlink(
    *package_names: str,
    config: XdotConfig | None = None,
    **kwargs,
) -> XdotResult:
    """Remove the symlinks that point into the given packages.

    Args:
        *package_names: Names of packages to unlink
        config: Optional XdotConfig for configuration
        **kwargs: Override config fields (dir, dry_run, root, etc.)

    Returns:
        XdotResult with one LinkAction per processed entry
    """
    linker = _Linker(_make_config(config, **kwargs))
    linker.process(package_names, Mode.UNLINK)
    return linker.result()


def relink(
    *package_names: str,
    config: XdotConfig | None = None,
    **kwargs,
) -> XdotResult:
    """Unlink then link packages.

    Useful after files were added to or removed from a package.
    """
    linker = _Linker(_make_config(config, **kwargs))
    linker.process(package_names, Mode.UNLINK)
    linker.process(package_names, Mode.LINK)
    return linker.result()


def process(
    package_name: str,
    mode: Mode,
    dry_run: bool | None = None,
    verbosity: int | None = None,
    config: XdotConfig | None = None,
) -> list[LinkAction]:
    """Link or unlink a single package and return its actions.

    ``dry_run`` and ``verbosity`` override ``config`` only when given.
    """
    overrides = {}
    if dry_run is not None:
        overrides["dry_run"] = dry_run
    if verbosity is not None:
        overrides["verbose"] = verbosity
    cfg = _make_config(config, **overrides)
    return _Linker(cfg).process_package(package_name, mode)


def _make_config(config: XdotConfig | None, **kwargs) -> XdotConfig:
    """Create an XdotConfig from optional base config and overrides."""
    if config is None:
        environ = kwargs.get("environ")
        if kwargs.get("dir") is None:
            kwargs["dir"] = default_xdot_dir(environ)
        return XdotConfig(**kwargs)
    elif kwargs:
        return dataclasses.replace(config, **kwargs)
    else:
        return config


# =============================================================================
# Internal Linker class
# =============================================================================


class _Linker:
    """
    Internal class that walks package trees and applies link operations.

    Used by the module-level link(), unlink(), relink() functions and by
    the CLI. Every visited entry appends exactly one LinkAction; directories
    that are descended into are represented by their children.
    """

    def __init__(self, config: XdotConfig):
        self.c = config
        self.env = config.env
        self.xdot_dir = os.path.abspath(config.dir)

        set_debug_level(config.verbose)
        debug(2, 0, f"xdot dir is {self.xdot_dir}")

        self.actions: list[LinkAction] = []

        # Dry run: planned symlinks (path -> source, None once removed) and
        # planned directories
        self.link_planned_for: dict[str, str | None] = {}
        self.dir_planned: set[str] = set()

    def result(self) -> XdotResult:
        return XdotResult(actions=list(self.actions))

    def process(self, packages: Sequence[str], mode: Mode) -> None:
        """Process the given packages one after another."""
        for package in packages:
            self.process_package(package, mode)

    def process_package(self, package: str, mode: Mode) -> list[LinkAction]:
        """Link or unlink one package, returning the actions it produced.

        Resolution errors abort this package only; the caller may carry on
        with the next one.
        """
        start = len(self.actions)
        pkg_path = join_paths(self.xdot_dir, package)

        verb = "Linking" if mode is Mode.LINK else "Unlinking"
        report(0, f"{verb} config for `{package}` ({tilde(pkg_path, self.env.get('HOME'))})")

        if not os.path.isdir(pkg_path):
            self._record(
                package,
                Outcome.ERROR,
                pkg_path,
                message=f"The xdot directory {self.xdot_dir} does not contain package {package}",
            )
            return self.actions[start:]

        try:
            self._process_contents(package, mode, "")
        except XdotResolutionError as e:
            self._record(package, Outcome.ERROR, pkg_path, message=e.message)
            debug(2, 0, f"Aborting package {package}: {e.message}")

        return self.actions[start:]

    def _process_contents(self, package: str, mode: Mode, pkg_subdir: str) -> None:
        """Process every entry of a package (sub)directory.

        Note: _process_node() and _process_contents() are mutually recursive."""
        source_dir = join_paths(self.xdot_dir, package, pkg_subdir)
        debug(3, 0, f"{mode.value.capitalize()}ing contents of {package} / {pkg_subdir or '.'}")

        try:
            listing = os.listdir(source_dir)
        except OSError as e:
            self._record(
                package,
                Outcome.ERROR,
                source_dir,
                message=f"cannot read directory ({e.strerror})",
            )
            return

        for node in sorted(listing):
            self._process_node(package, mode, join_paths(pkg_subdir, node))

    def _process_node(self, package: str, mode: Mode, pkg_subpath: str) -> None:
        """Link or unlink one package entry.

        Note: _process_node() and _process_contents() are mutually recursive."""
        pkg_root = join_paths(self.xdot_dir, package)
        source = join_paths(pkg_root, pkg_subpath)
        destination = resolve(pkg_root, pkg_subpath, self.env, self.c.root)
        debug(3, 1, f"{pkg_subpath} -> {destination}")

        if "/" not in pkg_subpath and isinstance(classify(pkg_subpath), BaseDirRef):
            # Base directories are never linked wholesale
            if _is_real_dir(source):
                debug(2, 0, f"Descending into base directory: {destination}")
                self._process_contents(package, mode, pkg_subpath)
            else:
                self._record(
                    package,
                    Outcome.ERROR,
                    source,
                    destination,
                    "base directory entries must be directories",
                )
            return

        try:
            if mode is Mode.LINK:
                self._link_node(package, pkg_subpath, source, destination)
            else:
                self._unlink_node(package, pkg_subpath, source, destination)
        except XdotFilesystemError as e:
            self._record(package, Outcome.ERROR, source, destination, e.message)

    def _link_node(
        self, package: str, pkg_subpath: str, source: str, destination: str
    ) -> None:
        if not self._is_a_node(destination):
            self._do_link(package, source, destination)
        elif self._is_owned_link(package, source, destination):
            self._record(package, Outcome.ALREADY_LINKED, source, destination)
        elif _is_real_dir(source) and self._is_a_dir(destination):
            debug(2, 0, f"Descending into preexisting directory: {destination}")
            self._process_contents(package, Mode.LINK, pkg_subpath)
        else:
            self._record(
                package,
                Outcome.SKIPPED,
                source,
                destination,
                self._describe_conflict(destination),
            )

    def _unlink_node(
        self, package: str, pkg_subpath: str, source: str, destination: str
    ) -> None:
        if self._is_owned_link(package, source, destination):
            self._do_unlink(package, source, destination)
        elif _is_real_dir(source) and self._is_a_dir(destination):
            debug(2, 0, f"Descending into preexisting directory: {destination}")
            self._process_contents(package, Mode.UNLINK, pkg_subpath)
        elif self._is_a_node(destination):
            self._record(
                package,
                Outcome.UNLINK_SKIPPED,
                source,
                destination,
                self._describe_conflict(destination),
            )
        else:
            self._record(
                package, Outcome.UNLINK_SKIPPED, source, destination, "does not exist"
            )

    def _is_owned_link(self, package: str, source: str, destination: str) -> bool:
        """
        Is ``destination`` a symlink to ``source`` inside this package?

        Parent directories are resolved on both sides, so links made through
        a symlinked home or xdot directory are still recognised; the last
        component is compared as-is, so a link to whatever a package symlink
        points at is not mistaken for a link to the package symlink itself.
        """
        if not self._is_a_link(destination):
            return False

        link_dest = self._read_link(destination)
        target = canonical_link_path(
            os.path.join(os.path.dirname(self._actual_path(destination)), link_dest)
        )
        debug(4, 2, f"{destination} points to {target}")

        pkg_root = os.path.realpath(join_paths(self.xdot_dir, package))
        return target == canonical_link_path(source) and is_within(target, pkg_root)

    def _do_link(self, package: str, source: str, destination: str) -> None:
        """Create ``destination`` as a symlink to ``source``."""
        parent = os.path.dirname(destination)
        if self.c.dry_run:
            missing = parent
            while not self._is_a_dir(missing):
                self.dir_planned.add(missing)
                missing = os.path.dirname(missing)
            self.link_planned_for[destination] = source
        else:
            try:
                if not os.path.isdir(parent):
                    debug(1, 0, f"MKDIR: {parent}")
                    os.makedirs(parent, 0o777, exist_ok=True)
                os.symlink(source, destination)
            except OSError as e:
                raise XdotFilesystemError(
                    f"Unable to symlink {destination} => {source} ({e.strerror})",
                    destination,
                ) from e

        report(0, f"{destination} => {source}")
        self._record(package, Outcome.LINKED, source, destination)

    def _do_unlink(self, package: str, source: str, destination: str) -> None:
        """Remove the symlink at ``destination``."""
        if self.c.dry_run:
            self.link_planned_for[destination] = None
        else:
            try:
                st = os.lstat(destination)
                if not stat.S_ISLNK(st.st_mode):
                    raise OSError(errno.EINVAL, "Not a symlink", destination)
                os.unlink(destination)
            except OSError as e:
                raise XdotFilesystemError(
                    f"Unable to remove symlink ({e.strerror})", destination
                ) from e

        report(0, f"Removing symlink: {destination}")
        self._record(package, Outcome.UNLINKED, source, destination)

    # -------------------------------------------------------------------------
    # Filesystem queries that see the links planned by a dry run
    # -------------------------------------------------------------------------

    def _actual_path(self, path: str) -> str | None:
        """
        Where ``path`` would live on disk once planned links exist.

        A planned symlink above ``path`` is replaced by its source. Returns
        None when such a symlink is planned for removal, since nothing below
        it would remain.
        """
        if not self.link_planned_for:
            return path

        parent = os.path.dirname(path)
        while True:
            if parent in self.link_planned_for:
                source = self.link_planned_for[parent]
                if source is None:
                    debug(4, 2, f"{path}: parent link {parent} is planned for removal")
                    return None
                return source + path[len(parent.rstrip("/")):]
            if parent == os.path.dirname(parent):
                return path
            parent = os.path.dirname(parent)

    def _is_a_link(self, path: str) -> bool:
        """Is ``path`` a current or planned symlink?"""
        if path in self.link_planned_for:
            return self.link_planned_for[path] is not None
        if path in self.dir_planned:
            return False
        actual = self._actual_path(path)
        return actual is not None and os.path.islink(actual)

    def _is_a_dir(self, path: str) -> bool:
        """Is ``path`` a current or planned directory (following symlinks)?"""
        if path in self.link_planned_for:
            source = self.link_planned_for[path]
            return source is not None and os.path.isdir(source)
        if path in self.dir_planned:
            return True
        actual = self._actual_path(path)
        return actual is not None and os.path.isdir(actual)

    def _is_a_node(self, path: str) -> bool:
        """Does anything exist at ``path``, now or as planned?"""
        if path in self.link_planned_for:
            return self.link_planned_for[path] is not None
        if path in self.dir_planned:
            return True
        actual = self._actual_path(path)
        return actual is not None and os.path.lexists(actual)

    def _exists(self, path: str) -> bool:
        if path in self.link_planned_for:
            source = self.link_planned_for[path]
            return source is not None and os.path.exists(source)
        if path in self.dir_planned:
            return True
        actual = self._actual_path(path)
        return actual is not None and os.path.exists(actual)

    def _read_link(self, path: str) -> str:
        source = self.link_planned_for.get(path)
        if source is not None:
            return source
        return _read_link(self._actual_path(path))

    def _describe_conflict(self, destination: str) -> str:
        """Explain what is in the way at ``destination``."""
        if self._is_a_link(destination):
            link_dest = self._read_link(destination)
            if not self._exists(destination):
                return f"existing dangling symlink to {link_dest}"
            return f"existing symlink to {link_dest}"
        if self._is_a_dir(destination):
            return "existing directory"
        return "already exists"

    def _record(
        self,
        package: str,
        outcome: Outcome,
        source: str,
        destination: str | None = None,
        message: str = "",
    ) -> None:
        action = LinkAction(package, outcome, source, destination, message)
        match outcome:
            case Outcome.ALREADY_LINKED:
                debug(1, 0, f"Skipping preexisting symlink: {destination}")
            case Outcome.UNLINK_SKIPPED:
                debug(1, 0, f"Not unlinking {action}")
            case Outcome.SKIPPED:
                debug(2, 0, f"CONFLICT when linking {package}: {action}")
            case Outcome.ERROR:
                debug(2, 0, f"ERROR in {package}: {action}")
        self.actions.append(action)


# =============================================================================
# Module-level helper functions
# =============================================================================


def _is_real_dir(path: str) -> bool:
    """A directory that is not reached through a symlink at ``path``."""
    return os.path.isdir(path) and not os.path.islink(path)


def _read_link(path: str) -> str:
    try:
        return os.readlink(path)
    except OSError as e:
        raise XdotFilesystemError(
            f"Could not read link ({e.strerror})", path
        ) from e

