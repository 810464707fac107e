# xdot - symlink your dotfiles from ~/.xdot
# Copyright (C) 2025 The xdot contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Type definitions for xdot.

This module contains enums, dataclasses and exceptions that define the core
data structures used throughout xdot.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


class Mode(Enum):
    """What to do with the entries of a package."""

    LINK = "link"
    UNLINK = "unlink"


class Outcome(Enum):
    """Result of processing a single package entry."""

    LINKED = "linked"
    ALREADY_LINKED = "already-linked"
    SKIPPED = "skipped"
    UNLINKED = "unlinked"
    UNLINK_SKIPPED = "unlink-skipped"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class BaseDirRef:
    """First path component ``@NAME``: the base directory held in ``$NAME``."""

    name: str


@dataclass(frozen=True, slots=True)
class PlainSegment:
    """Any other path component, used verbatim."""

    name: str


Segment = Union[BaseDirRef, PlainSegment]


@dataclass(slots=True)
class LinkAction:
    """
    The reported outcome for one package entry.

    ``destination`` is None when the failure happened before a destination
    could be computed (e.g. an unresolvable ``@NAME``).
    """

    package: str
    outcome: Outcome
    source: str
    destination: Optional[str] = None
    message: str = ""

    def __str__(self) -> str:
        where = self.destination or self.source
        if self.message:
            return f"{where}: {self.message}"
        return where


@dataclass(frozen=True)
class XdotConfig:
    """
    Configuration for a run.

    Attributes:
        dir: The xdot root containing packages (usually ``~/.xdot``)
        verbose: Verbosity level (0-4)
        dry_run: If True, don't make filesystem changes
        strict: If True, skipped entries count as failures for the CLI
        root: Filesystem root that root-relative entries are mapped under
        environ: Environment used to resolve ``@NAME`` entries
            (``os.environ`` when None)
    """

    dir: str
    verbose: int = 0
    dry_run: bool = False
    strict: bool = False
    root: str = "/"
    environ: Optional[Mapping[str, str]] = None

    @property
    def env(self) -> Mapping[str, str]:
        return os.environ if self.environ is None else self.environ


@dataclass
class XdotResult:
    """Aggregated outcome of a link/unlink run over one or more packages."""

    actions: list[LinkAction] = field(default_factory=list)

    def by_outcome(self, outcome: Outcome) -> list[LinkAction]:
        return [a for a in self.actions if a.outcome is outcome]

    @property
    def conflicts(self) -> list[LinkAction]:
        return self.by_outcome(Outcome.SKIPPED)

    @property
    def errors(self) -> list[LinkAction]:
        return self.by_outcome(Outcome.ERROR)

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def outcomes(self) -> list[Outcome]:
        return [a.outcome for a in self.actions]


class XdotError(Exception):
    """Base class for errors that abort an xdot operation."""

    def __init__(self, message: str, errno: int = 1):
        super().__init__(message)
        self.message = message
        self.errno = errno


class XdotCLIError(XdotError):
    """Problem with the command line or rc files; printed without prefix."""


class XdotResolutionError(XdotError):
    """A package entry's destination cannot be computed."""


class MissingHomeError(XdotResolutionError):
    def __init__(self, message: str = "$HOME is not set"):
        super().__init__(message)


class UnknownVariableError(XdotResolutionError):
    def __init__(self, name: str):
        super().__init__(f"Unable to find environment variable `{name}`")
        self.name = name


class XdotFilesystemError(XdotError):
    """An I/O operation on a single path failed."""

    def __init__(self, message: str, path: str):
        super().__init__(message)
        self.path = path
