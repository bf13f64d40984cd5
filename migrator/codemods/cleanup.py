#!/usr/bin/env python3
# CUI // SP-CTI
"""Cleanup stage: remove legacy-only files without breaking the project.

Steps:
  1. build a reverse import index (file -> files importing it by relative path)
  2. remove the well-known legacy directory if it holds legacy-referencing
     code, and the SDK state directory if nothing outside it imports from it
  3. delete legacy-only helper files nobody imports any more
  4. aggressive mode: quarantine any other file still referencing the SDK
  5. prune legacy dependencies from the manifest once verify is clean

Nothing imported by relative path is ever deleted or quarantined, except
through the directory rule in step 2. In dry-run mode every action is only
recorded.
"""

import fnmatch
import json
import logging
import os
import re
import shutil
from pathlib import Path
from typing import Dict, List, Optional, Set

from migrator.codemods.config import MigrationConfig, load_config
from migrator.codemods.sdk_heuristics import LegacyImportClassifier
from migrator.codemods.source_index import (
    SourceFileIndex,
    find_project_source_files,
    read_source,
    scan_files_concurrently,
)
from migrator.codemods.specifier_scan import find_imported_module_specifiers, find_relative_specifiers
from migrator.codemods.verify import scan_legacy_references, verify_project
from migrator.compat.paths import normalize_path, relative_posix
from migrator.schemas.report import CleanupResult, Report, SkippedPath

logger = logging.getLogger("migrator.codemods.cleanup")

CLEANUP_MODES = ("dry-run", "delete")

_RESOLVE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx")
_JS_TO_TS = {".js": (".ts", ".tsx"), ".jsx": (".tsx",), ".mjs": (".mts",), ".cjs": (".cts",)}
_IMPORTER_SAMPLE = 3


# ---------------------------------------------------------------------------
# Glob matching
# ---------------------------------------------------------------------------
_BRACE_RE = re.compile(r"\{([^{}]*)\}")


def expand_braces(pattern: str) -> List[str]:
    """Expand ``{a,b}`` alternatives into plain fnmatch patterns."""
    match = _BRACE_RE.search(pattern)
    if match is None:
        return [pattern]
    head, tail = pattern[:match.start()], pattern[match.end():]
    expanded = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(head + option + tail))
    return expanded


def _match_parts(parts: List[str], pattern_parts: List[str]) -> bool:
    if not pattern_parts:
        return not parts
    head, rest = pattern_parts[0], pattern_parts[1:]
    if head == "**":
        return any(_match_parts(parts[i:], rest) for i in range(len(parts) + 1))
    return (
        bool(parts)
        and fnmatch.fnmatchcase(parts[0], head)
        and _match_parts(parts[1:], rest)
    )


def glob_match(rel_path: str, pattern: str) -> bool:
    """True when the POSIX *rel_path* matches *pattern*.

    Segments are matched with fnmatch, so ``*`` never crosses a ``/``;
    a ``**`` segment matches zero or more whole segments.
    """
    parts = rel_path.split("/")
    return any(_match_parts(parts, p.split("/")) for p in expand_braces(pattern))


# ---------------------------------------------------------------------------
# Reverse import index
# ---------------------------------------------------------------------------
def resolve_relative_import(from_file, specifier: str) -> Optional[Path]:
    """Resolve a relative specifier to an existing file, or None.

    Tries the path as written, then extension and ``index`` fallbacks, then a
    ``.js`` specifier that names a TypeScript source.
    """
    base = os.path.normpath(os.path.join(os.path.dirname(str(from_file)), specifier))
    candidates = [base]
    candidates.extend(base + ext for ext in _RESOLVE_EXTENSIONS)
    candidates.extend(os.path.join(base, "index" + ext) for ext in _RESOLVE_EXTENSIONS)
    stem, suffix = os.path.splitext(base)
    candidates.extend(stem + ext for ext in _JS_TO_TS.get(suffix, ()))

    for candidate in candidates:
        if os.path.isfile(candidate):
            return Path(candidate)
    return None


def build_reverse_import_index(
    index: SourceFileIndex, max_workers: int = 8,
) -> Dict[Path, Set[Path]]:
    """Map each resolved file to the set of files importing it by relative path."""

    def _scan(path, text):
        resolved = []
        for spec in find_relative_specifiers(text):
            target = resolve_relative_import(path, spec)
            if target is not None and target != path:
                resolved.append(target)
        return resolved

    imported_by: Dict[Path, Set[Path]] = {}
    for importer, targets in scan_files_concurrently(index, _scan, max_workers):
        for target in targets:
            imported_by.setdefault(target, set()).add(importer)
    return imported_by


def imports_only_legacy(text: str, classifier: LegacyImportClassifier) -> bool:
    """True when the file has imports and every one of them is legacy."""
    specifiers = find_imported_module_specifiers(text)
    return bool(specifiers) and all(classifier.is_legacy(s) for s in specifiers)


def _move_file(src: Path, dest: Path) -> None:
    """Move *src* to *dest*, falling back to copy + delete if rename fails."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    try:
        os.replace(src, dest)
    except OSError as exc:
        logger.debug("Rename %s -> %s failed (%s); copying instead", src, dest, exc)
        shutil.copy2(src, dest)
        src.unlink()


# ---------------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------------
class CleanupPlanner:
    """Plans and (in delete mode) performs reverse-dependency-safe cleanup."""

    def __init__(
        self,
        root_path,
        config: Optional[MigrationConfig] = None,
        mode: str = "dry-run",
        remove_legacy_directory: bool = True,
        aggressive: bool = False,
        quarantine_dir: Optional[str] = None,
        remove_dependencies: bool = False,
    ):
        if mode not in CLEANUP_MODES:
            raise ValueError(f"mode must be one of {', '.join(CLEANUP_MODES)}, got {mode!r}")
        self.config = config or load_config()
        self.root = normalize_path(root_path)
        self.mode = mode
        self.remove_legacy_directory = remove_legacy_directory
        self.aggressive = aggressive
        self.quarantine_dir = quarantine_dir or self.config.quarantine_dir
        self.remove_dependencies = remove_dependencies
        self.classifier = LegacyImportClassifier.from_config(self.config)
        self.result = CleanupResult(mode=mode)
        self._gone: List[Path] = []

    @property
    def deleting(self) -> bool:
        return self.mode == "delete"

    def _rel(self, path) -> str:
        return relative_posix(self.root, path)

    def _is_gone(self, path: Path) -> bool:
        return any(path == g or g in path.parents for g in self._gone)

    def _skip(self, path, reason: str) -> None:
        self.result.skipped_paths.append(SkippedPath(path=self._rel(path), reason=reason))
        logger.info("Skipped %s: %s", self._rel(path), reason)

    def _importers_reason(self, importers: Set[Path]) -> str:
        rels = sorted(self._rel(p) for p in importers)
        sample = ", ".join(rels[:_IMPORTER_SAMPLE])
        more = ", ..." if len(rels) > _IMPORTER_SAMPLE else ""
        return f"Still imported by: {sample}{more}"

    # -- step 2 -----------------------------------------------------------
    def remove_legacy_dir(self) -> None:
        if not self.remove_legacy_directory or not self.config.legacy_directory:
            return
        directory = self.root / self.config.legacy_directory
        if not directory.is_dir():
            return
        index = SourceFileIndex(directory, find_project_source_files(directory, self.config))
        if not scan_legacy_references(index, self.classifier, self.config.max_workers):
            return
        if self.deleting:
            shutil.rmtree(directory)
        self._gone.append(directory)
        self.result.deleted_paths.append(self._rel(directory))
        logger.info("%s legacy directory %s", "Deleted" if self.deleting else "Would delete",
                    self._rel(directory))

    def remove_state_dir(self, imported_by: Dict[Path, Set[Path]]) -> None:
        """Remove the SDK tooling state directory unless code outside it imports from it."""
        if not self.config.legacy_state_directory:
            return
        directory = self.root / self.config.legacy_state_directory
        if not directory.is_dir():
            return
        outside = set()
        for target, importers in imported_by.items():
            if directory in target.parents:
                outside.update(p for p in importers if directory not in p.parents)
        if outside:
            self._skip(directory, self._importers_reason(outside))
            return
        if self.deleting:
            shutil.rmtree(directory)
        self._gone.append(directory)
        self.result.deleted_paths.append(self._rel(directory))

    # -- step 3 -----------------------------------------------------------
    def _legacy_only_candidates(self) -> List[Path]:
        patterns = list(self.config.legacy_only_globs)
        excluded = set(self.config.exclude_dirs)
        quarantine = self.root / self.quarantine_dir
        found = []
        for dirpath, dirnames, filenames in os.walk(self.root, followlinks=False):
            dirnames[:] = [
                d for d in dirnames
                if d not in excluded and Path(dirpath) / d != quarantine
            ]
            for fname in filenames:
                path = Path(dirpath) / fname
                rel = self._rel(path)
                if any(glob_match(rel, p) for p in patterns):
                    found.append(path)
        found.sort(key=str)
        return found

    def remove_legacy_only_files(self, imported_by: Dict[Path, Set[Path]]) -> None:
        for path in self._legacy_only_candidates():
            if self._is_gone(path) or not path.is_file():
                continue
            if not imports_only_legacy(read_source(path), self.classifier):
                continue
            importers = imported_by.get(path)
            if importers:
                self._skip(path, self._importers_reason(importers))
                continue
            if self.deleting:
                path.unlink()
            self._gone.append(path)
            self.result.deleted_paths.append(self._rel(path))

    # -- step 4 -----------------------------------------------------------
    def quarantine_remaining(self, imported_by: Dict[Path, Set[Path]]) -> None:
        index = SourceFileIndex.scan(self.root, self.config)
        refs = scan_legacy_references(index, self.classifier, self.config.max_workers)
        quarantine_root = self.root / self.quarantine_dir
        for ref in refs:
            path = self.root / ref.file
            if self._is_gone(path):
                continue
            importers = imported_by.get(path)
            if importers:
                self._skip(path, self._importers_reason(importers))
                continue
            if not self.deleting:
                self._skip(
                    path,
                    "Would quarantine (dry-run): still references "
                    + ", ".join(ref.specifiers),
                )
                continue
            _move_file(path, quarantine_root / ref.file)
            self._gone.append(path)
            self.result.quarantined_paths.append(ref.file)

    # -- step 5 -----------------------------------------------------------
    def prune_dependencies(self) -> None:
        manifest = self.root / self.config.manifest
        if not manifest.is_file():
            return
        verify = verify_project(self.root, self.config)
        if not verify.ok:
            count = len(verify.remaining_legacy_module_references)
            self._skip(
                manifest,
                f"Refusing to remove legacy dependencies: {count} file(s) still "
                "reference legacy modules (run verify)",
            )
            return

        with open(manifest, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        token = self.config.name_token
        removed = []
        for section in self.config.dependency_sections:
            deps = data.get(section)
            if not isinstance(deps, dict):
                continue
            for name in [n for n in deps if token in n.lower()]:
                del deps[name]
                removed.append(name)

        self.result.removed_dependencies.extend(removed)
        if removed and self.deleting:
            with open(manifest, "w", encoding="utf-8") as fh:
                fh.write(json.dumps(data, indent=2, ensure_ascii=False) + "\n")
        logger.info("%s %d legacy dependenc(ies) from %s",
                    "Removed" if self.deleting else "Would remove", len(removed),
                    self._rel(manifest))

    # -- run --------------------------------------------------------------
    def run(self) -> CleanupResult:
        index = SourceFileIndex.scan(self.root, self.config)
        imported_by = build_reverse_import_index(index, self.config.max_workers)

        self.remove_legacy_dir()
        self.remove_state_dir(imported_by)
        self.remove_legacy_only_files(imported_by)
        if self.aggressive:
            self.quarantine_remaining(imported_by)
        if self.remove_dependencies:
            self.prune_dependencies()

        self.result.finalize()
        logger.info(
            "Cleanup (%s): %d deleted, %d quarantined, %d skipped",
            self.mode, len(self.result.deleted_paths),
            len(self.result.quarantined_paths), len(self.result.skipped_paths),
        )
        return self.result


def cleanup_project(
    root_path,
    report: Report,
    config: Optional[MigrationConfig] = None,
    mode: str = "dry-run",
    remove_legacy_directory: bool = True,
    aggressive: bool = False,
    quarantine_dir: Optional[str] = None,
    remove_dependencies: bool = False,
):
    """Run cleanup and record it on *report*. Returns ``(report, result)``."""
    planner = CleanupPlanner(
        root_path,
        config=config,
        mode=mode,
        remove_legacy_directory=remove_legacy_directory,
        aggressive=aggressive,
        quarantine_dir=quarantine_dir,
        remove_dependencies=remove_dependencies,
    )
    result = planner.run()
    report.cleanup = result
    report.finalize()
    return report, result
