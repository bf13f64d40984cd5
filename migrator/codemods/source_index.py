#!/usr/bin/env python3
# CUI // SP-CTI
"""Source file discovery and concurrent read-and-scan helper.

Walks a project root for JavaScript/TypeScript sources, pruning dependency,
build, and version-control directories. Read phases fan out over a thread
pool; callers merge the per-file results and sort them, so the outcome is
identical to a sequential scan.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple, TypeVar

from migrator.codemods.config import MigrationConfig, default_config
from migrator.compat.paths import normalize_path, relative_posix

logger = logging.getLogger("migrator.codemods.source_index")

T = TypeVar("T")


def read_source(path) -> str:
    """Read a source file as UTF-8 text, keeping its line endings."""
    with open(path, "r", encoding="utf-8", errors="replace", newline="") as fh:
        return fh.read()


def find_project_source_files(root, config: Optional[MigrationConfig] = None) -> List[Path]:
    """Return sorted absolute paths of every candidate source file under *root*.

    Symbolic links to directories are not followed. The quarantine directory
    is skipped so quarantined files do not count as live sources.
    """
    config = config or default_config()
    root = normalize_path(root)
    excluded = set(config.exclude_dirs)
    quarantine = root / config.quarantine_dir if config.quarantine_dir else None
    extensions = {ext.lower() for ext in config.extensions}

    found = []
    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        dirnames[:] = [
            d for d in dirnames
            if d not in excluded and Path(dirpath) / d != quarantine
        ]
        for fname in filenames:
            fpath = Path(dirpath) / fname
            if fpath.suffix.lower() in extensions and fpath.is_file():
                found.append(fpath)
    found.sort(key=str)
    return found


def scan_files_concurrently(
    paths: Iterable[Path],
    scan: Callable[[Path, str], T],
    max_workers: int = 8,
) -> List[Tuple[Path, T]]:
    """Read every file in *paths* and apply ``scan(path, text)`` in parallel.

    Returns ``(path, result)`` pairs sorted by path. Read errors propagate.
    """
    paths = list(paths)
    if not paths:
        return []

    def _job(path: Path):
        return path, scan(path, read_source(path))

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(paths)))) as executor:
        results = list(executor.map(_job, paths))
    results.sort(key=lambda pair: str(pair[0]))
    return results


class SourceFileIndex:
    """Immutable list of source files discovered under a project root."""

    def __init__(self, root, files: List[Path]):
        self.root = normalize_path(root)
        self.files = list(files)

    @classmethod
    def scan(cls, root, config: Optional[MigrationConfig] = None) -> "SourceFileIndex":
        files = find_project_source_files(root, config)
        logger.debug("Discovered %d source file(s) under %s", len(files), root)
        return cls(root, files)

    def relative(self, path) -> str:
        """Forward-slash path of *path* relative to the index root."""
        return relative_posix(self.root, path)

    def __len__(self):
        return len(self.files)

    def __iter__(self):
        return iter(self.files)
