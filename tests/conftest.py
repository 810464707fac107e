"""
Pytest configuration for xdot tests.

Every test gets a scratch tree laid out like a real home directory:

    <tmp>/home           $HOME
    <tmp>/home/.xdot     the xdot dir holding the packages
    <tmp>/root           stands in for / (root-relative entries)
"""

import os
import subprocess
import sys

import pytest

from xdot import Outcome, XdotConfig


SRC_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src")

# Variables that would leak the developer's own layout into the tests
SCRUBBED_VARS = (
    "XDOT_DIR",
    "XDG_CONFIG_HOME",
    "XDG_DATA_HOME",
    "XDG_CACHE_HOME",
    "XDG_STATE_HOME",
)


class XdotTestEnv:
    """Test environment for running xdot."""

    def __init__(self, tmpdir):
        self.tmpdir = str(tmpdir)
        self.home = os.path.join(self.tmpdir, "home")
        self.xdot_dir = os.path.join(self.home, ".xdot")
        self.root_dir = os.path.join(self.tmpdir, "root")
        os.makedirs(self.xdot_dir)
        os.makedirs(self.root_dir)
        self.environ = {"HOME": self.home}

    def config(self, **kwargs):
        """An XdotConfig pointing at this environment."""
        kwargs.setdefault("dir", self.xdot_dir)
        kwargs.setdefault("root", self.root_dir)
        kwargs.setdefault("environ", dict(self.environ))
        return XdotConfig(**kwargs)

    def home_path(self, path):
        return os.path.join(self.home, path)

    def root_path(self, path):
        return os.path.join(self.root_dir, path)

    def package_path(self, name, path=""):
        return os.path.join(self.xdot_dir, name, path) if path else os.path.join(self.xdot_dir, name)

    def create_package(self, name, files):
        """
        Create a package in the xdot directory.

        files: dict mapping relative paths to content (or None for directories)
        """
        pkg_dir = self.package_path(name)
        os.makedirs(pkg_dir, exist_ok=True)

        for path, content in files.items():
            full_path = os.path.join(pkg_dir, path)
            if content is None:
                os.makedirs(full_path, exist_ok=True)
            else:
                self.create_file(full_path, content)

    def create_file(self, full_path, content=""):
        parent = os.path.dirname(full_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(full_path, "w") as f:
            f.write(content)

    def create_dir(self, full_path):
        os.makedirs(full_path, exist_ok=True)

    def create_link(self, full_path, dest):
        parent = os.path.dirname(full_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        os.symlink(dest, full_path)

    def get_filesystem_state(self, top=None):
        """
        Get a snapshot of everything below ``top`` (default: the whole tmpdir).

        Returns a dict mapping paths to tuples:
        - ('dir', mode) for directories
        - ('file', content, mode) for files
        - ('link', target) for symlinks
        """
        top = top or self.tmpdir
        state = {}
        for root, dirs, files in os.walk(top, followlinks=False):
            rel_root = os.path.relpath(root, top)
            if rel_root == ".":
                rel_root = ""

            for name in sorted(dirs) + sorted(files):
                path = os.path.join(rel_root, name) if rel_root else name
                full_path = os.path.join(root, name)
                st = os.lstat(full_path)
                if os.path.islink(full_path):
                    state[path] = ("link", os.readlink(full_path))
                elif os.path.isdir(full_path):
                    state[path] = ("dir", st.st_mode)
                else:
                    with open(full_path, "r") as fh:
                        state[path] = ("file", fh.read(), st.st_mode)

        return state

    def run_xdot(self, args, env=None):
        """Run the xdot CLI and return (returncode, stdout, stderr)."""
        cmd = [sys.executable, "-m", "xdot.cli"] + list(args)

        run_env = {k: v for k, v in os.environ.items() if k not in SCRUBBED_VARS}
        run_env["HOME"] = self.home
        run_env["PYTHONPATH"] = os.pathsep.join(
            p for p in (SRC_DIR, os.environ.get("PYTHONPATH")) if p
        )
        if env:
            run_env.update(env)
        run_env = {k: v for k, v in run_env.items() if v is not None}

        proc = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=self.tmpdir,
            env=run_env,
        )
        stdout_str = proc.stdout.decode("utf-8", errors="replace")
        stderr_str = proc.stderr.decode("utf-8", errors="replace")
        return proc.returncode, stdout_str, stderr_str


@pytest.fixture
def xdot_env(tmp_path, monkeypatch):
    """Create a fresh xdot test environment."""
    env = XdotTestEnv(tmp_path)
    monkeypatch.setenv("HOME", env.home)
    for var in SCRUBBED_VARS:
        monkeypatch.delenv(var, raising=False)
    return env


# ============================================================================
# Shared assertion helpers
# ============================================================================


def check_link(path, expected_target):
    """Check that path is a symlink pointing to expected_target."""
    assert os.path.islink(path), f"{path} should be a symlink"
    actual = os.readlink(path)
    assert actual == expected_target, f"{path}: expected {expected_target}, got {actual}"


def check_dir(path):
    """Check that path is a real directory (not a symlink)."""
    assert os.path.isdir(path), f"{path} should be a directory"
    assert not os.path.islink(path), f"{path} should not be a symlink"


def check_not_exists(path):
    """Check that path does not exist (including broken symlinks)."""
    assert not os.path.lexists(path), f"{path} should not exist"


def check_file(path, content=None):
    """Check that path is a regular file (not a symlink)."""
    assert os.path.isfile(path), f"{path} should be a file"
    assert not os.path.islink(path), f"{path} should not be a symlink"
    if content is not None:
        with open(path) as fh:
            assert fh.read() == content


def outcomes(result):
    """(outcome, destination) pairs of a result or action list."""
    actions = getattr(result, "actions", result)
    return [(a.outcome, a.destination) for a in actions]


def all_outcomes_are(result, outcome: Outcome):
    actions = getattr(result, "actions", result)
    return bool(actions) and all(a.outcome is outcome for a in actions)
