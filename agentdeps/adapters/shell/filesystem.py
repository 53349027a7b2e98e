"""
Filesystem primitives — reads and path resolution.

Thin, read-only wrappers so probes can reach the filesystem through
the dependency layer (and tests can swap it for canned data). Errors
are the native ``OSError`` subclasses, propagated unchanged.
"""

from __future__ import annotations

import os
from pathlib import Path


def read_file(path: str) -> bytes:
    """Return the full contents of *path*."""
    return Path(path).read_bytes()


def stat(path: str) -> os.stat_result:
    """Stat *path*, following symlinks."""
    return os.stat(path)


def read_dir(path: str) -> list[str]:
    """List the entry names of directory *path*, sorted."""
    with os.scandir(path) as it:
        return sorted(entry.name for entry in it)


def abs_path(path: str) -> str:
    """Absolute, normalized form of *path* (symlinks untouched)."""
    return os.path.abspath(path)


def eval_symlinks(path: str) -> str:
    """Resolve every symlink in *path*.

    Raises:
        FileNotFoundError: if any component does not exist.
    """
    return os.path.realpath(path, strict=True)
