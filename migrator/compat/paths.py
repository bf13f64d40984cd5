#!/usr/bin/env python3
# CUI // SP-CTI
"""Path normalization utilities.

Report entries and generated import specifiers always use forward slashes,
regardless of the host platform.

Usage:
    from migrator.compat.paths import normalize_path, relative_posix, to_posix_path
"""

import os
from pathlib import Path


def normalize_path(path_str) -> Path:
    """Normalize a path string to an absolute pathlib.Path.

    Handles Windows backslash paths, Unix paths, and mixed inputs.
    """
    p = Path(path_str)
    try:
        return p.resolve()
    except OSError:
        return p.absolute()


def to_posix_path(path_str) -> str:
    """Return *path_str* with the platform separator replaced by ``/``."""
    return str(path_str).replace(os.sep, "/")


def relative_posix(root, path) -> str:
    """Return *path* relative to *root* as a forward-slash string."""
    return to_posix_path(os.path.relpath(str(path), str(root)))
