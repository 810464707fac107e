# xdot - symlink your dotfiles from ~/.xdot
# Copyright (C) 2025 The xdot contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Command-line interface for xdot.

This module contains the CLI functions including argument parsing,
rc file handling, and the main entry point.
"""

from __future__ import annotations
import os
import re
import shlex
import sys
from typing import Sequence

from xdot.discover import find_packages
from xdot.resolve import base_directory, default_xdot_dir, home_directory
from xdot.types import Mode, XdotCLIError, XdotConfig, XdotError, XdotResult
from xdot.util import VERSION, PROGRAM_NAME
from xdot.xdot import _Linker

RC_FILE = ".xdotrc"


def main() -> None:
    """Main entry point for xdot command."""
    try:
        sys.exit(_main(sys.argv[1:]))
    except XdotCLIError as e:
        print(e.message, file=sys.stderr)
        sys.exit(e.errno)
    except XdotError as e:
        print(f"{PROGRAM_NAME}: ERROR: {e.message}", file=sys.stderr)
        sys.exit(e.errno)


def _main(argv: Sequence[str]) -> int:
    """Main implementation (can raise XdotError). Returns the exit status."""
    options, packages = process_options(argv)

    config = XdotConfig(
        dir=options["dir"],
        verbose=options.get("verbose", 0),
        dry_run=options.get("dry_run", False),
        strict=options.get("strict", False),
    )

    if config.dry_run:
        print("Dry run mode, no changes will be made.")

    linker = _Linker(config)
    action = options.get("action", "link")
    if action in ("unlink", "relink"):
        linker.process(packages, Mode.UNLINK)
    if action in ("link", "relink"):
        linker.process(packages, Mode.LINK)

    result = linker.result()
    print_summary(result)
    return exit_status(result, config.strict)


def print_summary(result: XdotResult) -> None:
    """Print conflicts and errors grouped by package to STDERR."""
    for label, actions in (("conflicts", result.conflicts), ("errors", result.errors)):
        by_package: dict[str, list[str]] = {}
        for action in actions:
            by_package.setdefault(action.package, []).append(str(action))
        for package, messages in by_package.items():
            print(f"WARNING! {package} had {label}:", file=sys.stderr)
            for message in messages:
                print(f"  * {message}", file=sys.stderr)


def exit_status(result: XdotResult, strict: bool = False) -> int:
    """0 if everything went fine, 1 on errors (or conflicts when strict)."""
    if result.errors:
        return 1
    if strict and result.conflicts:
        return 1
    return 0


def _parse_bundled_options(chars: str, options: dict) -> None:
    """Parse bundled short options like -nva."""
    for char in chars:
        match char:
            case "n":
                options["dry_run"] = True
            case "v":
                options["verbose"] = options.get("verbose", 0) + 1
            case "a":
                options["all"] = True
            case "D":
                options["action"] = "unlink"
            case "R":
                options["action"] = "relink"
            case "S":
                options["action"] = "link"
            case "h":
                show_usage_and_exit()
            case "V":
                show_version_and_exit()
            case _:
                show_usage_and_exit(f"Unknown option: {char}")


def process_options(argv: Sequence[str]) -> tuple[dict, list[str]]:
    """Parse and process command line and rc file options.

    Returns: (options, packages)
    """
    cli_options, cli_packages = parse_cli_options(argv)
    rc_options, _ = get_config_file_options()

    # Command line options win over rc file options
    options = dict(rc_options)
    options.update(cli_options)

    if "dir" not in options:
        options["dir"] = default_xdot_dir()
    if not os.path.isdir(options["dir"]):
        raise XdotError(f"xdot directory {options['dir']} does not exist")

    packages = [p.rstrip("/") for p in cli_packages]
    if options.get("all"):
        packages = find_packages(options["dir"]) + packages

    check_packages(packages)

    # Keep the first occurrence of each package
    return options, list(dict.fromkeys(packages))


def parse_cli_options(args: Sequence[str]) -> tuple[dict, list[str]]:
    """Parse command line options.

    Returns: (options, packages)
    """
    options: dict = {}
    packages: list[str] = []

    i = 0
    while i < len(args):
        arg = args[i]

        if arg == "--":
            packages.extend(args[i + 1:])
            break

        elif arg in ("-d", "--dir") and i + 1 < len(args):
            i += 1
            options["dir"] = args[i]
        elif arg in ("-d", "--dir"):
            show_usage_and_exit(f"Option {arg.lstrip('-')} requires an argument")
        elif arg.startswith("--dir="):
            options["dir"] = arg[6:]
        elif arg.startswith("-d") and len(arg) > 2:
            options["dir"] = arg[2:]

        elif arg in ("-v", "--verbose"):
            options["verbose"] = options.get("verbose", 0) + 1
        elif arg.startswith("--verbose="):
            try:
                options["verbose"] = int(arg[10:])
            except ValueError:
                show_usage_and_exit(f"Invalid verbosity: {arg[10:]}")

        elif arg in ("-n", "--dry-run", "--simulate"):
            options["dry_run"] = True
        elif arg in ("-a", "--all"):
            options["all"] = True
        elif arg == "--strict":
            options["strict"] = True

        elif arg in ("-D", "--unlink"):
            options["action"] = "unlink"
        elif arg in ("-R", "--relink"):
            options["action"] = "relink"
        elif arg in ("-S", "--link"):
            options["action"] = "link"

        elif arg in ("-h", "--help"):
            show_usage_and_exit()
        elif arg in ("-V", "--version"):
            show_version_and_exit()

        # Package argument (including "-" which is a valid package name)
        elif not arg.startswith("-") or arg == "-":
            packages.append(arg)

        elif arg.startswith("--"):
            opt_name = arg[2:].split("=", 1)[0]
            show_usage_and_exit(f"Unknown option: {opt_name}")

        else:
            # Bundled short options: -nv is parsed as -n -v
            _parse_bundled_options(arg[1:], options)

        i += 1

    return options, packages


def check_packages(packages: Sequence[str]) -> None:
    """Validate package names."""
    if not packages:
        show_usage_and_exit("No packages specified")

    for package in packages:
        if "/" in package:
            raise XdotError("Slashes are not permitted in package names")
        if package in ("", ".", ".."):
            raise XdotError(f"Invalid package name: '{package}'")


def rc_file_paths() -> list[str]:
    """Candidate rc files, lowest precedence first."""
    paths = []
    home = os.environ.get("HOME")
    if home:
        paths.append(os.path.join(home, RC_FILE))
        paths.append(os.path.join(base_directory("XDG_CONFIG_HOME"), "xdot", "xdotrc"))
    return paths


def get_config_file_options() -> tuple[dict, list[str]]:
    """Search for default settings in any rc files.

    Returns: (rc_options, rc_packages)
    """
    defaults: list[str] = []

    for file_path in rc_file_paths():
        try:
            with open(file_path, "r") as f:
                for line in f:
                    line = line.rstrip("\n\r")
                    if line.lstrip().startswith("#"):
                        continue
                    try:
                        defaults.extend(shlex.split(line))
                    except ValueError:
                        defaults.extend(line.split())
        except (FileNotFoundError, PermissionError):
            continue  # Skip missing or unreadable files
        except IsADirectoryError:
            raise XdotCLIError(f"Could not open {file_path} for reading")

    rc_options, rc_packages = parse_cli_options(defaults)

    if "dir" in rc_options:
        rc_options["dir"] = expand_filepath(rc_options["dir"], "--dir option")

    return rc_options, rc_packages


_ENV_VARIABLE = re.compile(r"(?<!\\)\$(?:\{([^}]+)\}|(\w+))")


def expand_filepath(path: str, source: str) -> str:
    """Expand ``$VAR``, ``${VAR}`` and a leading ``~`` in an rc file path.

    ``\\$`` stands for a literal dollar sign.
    """

    def replace_var(match):
        var = match.group(1) or match.group(2)
        if var not in os.environ:
            raise XdotCLIError(
                f"{source} references undefined environment variable ${var}; aborting!"
            )
        return os.environ[var]

    path = _ENV_VARIABLE.sub(replace_var, path).replace("\\$", "$")
    if path == "~" or path.startswith("~/"):
        path = home_directory() + path[1:]
    return path


def show_usage_and_exit(msg: str | None = None, exit_code: int | None = None) -> None:
    """Print program usage message and exit."""
    if msg:
        print(f"{PROGRAM_NAME}: {msg}", file=sys.stderr)

    print(f"""{PROGRAM_NAME} version {VERSION}

Symlink your dotfiles from `~/.xdot`.

SYNOPSIS:

    {PROGRAM_NAME} [OPTION ...] [--] PACKAGE ...

Entries of a package whose first directory is @NAME are linked into the
directory held by $NAME (XDG_CONFIG_HOME, XDG_DATA_HOME, XDG_CACHE_HOME,
XDG_STATE_HOME and HOME have defaults); all other entries are linked
relative to /.

OPTIONS:

    -d DIR, --dir=DIR     Set xdot dir to DIR (default is $XDOT_DIR or ~/.xdot)
    -a, --all             Process every package not listed in .gitignore/.ignore

    -S, --link            Create symlinks (default)
    -D, --unlink          Remove symlinks
    -R, --relink          Remove, then create symlinks again

    -n, --dry-run         Don't modify the file system
    --strict              Exit with an error if anything was skipped
    -v, --verbose[=N]     Increase verbosity (levels are from 0 to 4;
                            -v or --verbose adds 1; --verbose=N sets level)
    -V, --version         Show version information and exit
    -h, --help            Show this help message and exit""")

    if exit_code is not None:
        sys.exit(exit_code)
    elif msg:
        sys.exit(1)
    else:
        sys.exit(0)


def show_version_and_exit() -> None:
    """Print version and exit."""
    print(f"{PROGRAM_NAME} {VERSION}")
    sys.exit(0)


if __name__ == "__main__":
    main()
