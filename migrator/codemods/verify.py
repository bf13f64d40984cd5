#!/usr/bin/env python3
# CUI // SP-CTI
"""Verify stage: confirm no legacy SDK module references remain.

Scans raw file text (never the syntax tree) for ``from '...'``,
``require('...')`` and ``import('...')`` specifiers and reports every file
where one of them is classified as legacy. Zero references means success.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from migrator.codemods.config import MigrationConfig, load_config
from migrator.codemods.sdk_heuristics import LegacyImportClassifier
from migrator.codemods.source_index import SourceFileIndex, scan_files_concurrently
from migrator.codemods.specifier_scan import find_imported_module_specifiers
from migrator.compat.paths import normalize_path
from migrator.schemas.report import ModuleReference

logger = logging.getLogger("migrator.codemods.verify")


@dataclass
class VerifyResult:
    root_path: str
    files_scanned: int
    remaining_legacy_module_references: List[ModuleReference] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.remaining_legacy_module_references

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "rootPath": self.root_path,
            "filesScanned": self.files_scanned,
            "remainingLegacyModuleReferences": [
                r.to_dict() for r in self.remaining_legacy_module_references
            ],
        }


def scan_legacy_references(
    index: SourceFileIndex,
    classifier: LegacyImportClassifier,
    max_workers: int = 8,
) -> List[ModuleReference]:
    """Concurrently scan *index* and return references sorted by file."""

    def _scan(_path, text):
        return classifier.filter(find_imported_module_specifiers(text))

    refs = [
        ModuleReference(file=index.relative(path), specifiers=specs)
        for path, specs in scan_files_concurrently(index, _scan, max_workers)
        if specs
    ]
    refs.sort(key=lambda r: r.file)
    return refs


def verify_project(
    root_path,
    config: Optional[MigrationConfig] = None,
    extra_import_sources: Optional[List[str]] = None,
) -> VerifyResult:
    """Scan *root_path* for remaining legacy module references."""
    config = config or load_config()
    root = normalize_path(root_path)
    classifier = LegacyImportClassifier.from_config(config, extra_import_sources)
    index = SourceFileIndex.scan(root, config)

    result = VerifyResult(
        root_path=str(root),
        files_scanned=len(index),
        remaining_legacy_module_references=scan_legacy_references(
            index, classifier, config.max_workers
        ),
    )
    if result.ok:
        logger.info("Verify OK: no legacy references in %d file(s)", result.files_scanned)
    else:
        logger.warning(
            "Verify FAIL: legacy references in %d of %d file(s)",
            len(result.remaining_legacy_module_references), result.files_scanned,
        )
    return result
