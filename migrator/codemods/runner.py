#!/usr/bin/env python3
# CUI // SP-CTI
"""Stage runners: load config, reuse or build the report, run a stage, persist.

Each ``run_*`` function resolves the project root, reuses the report written
by an earlier stage (or analyzes afresh when there is none), runs its stage
and writes the updated report back beside the project.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from migrator.codemods.analyze import analyze_project
from migrator.codemods.cleanup import cleanup_project
from migrator.codemods.config import MigrationConfig, load_config
from migrator.codemods.convert import convert_project
from migrator.codemods.report_io import read_report, write_report
from migrator.codemods.summary import format_analyze_summary
from migrator.codemods.verify import VerifyResult, verify_project
from migrator.compat.paths import normalize_path
from migrator.schemas.report import CleanupResult, Report

logger = logging.getLogger("migrator.codemods.runner")


@dataclass
class StageRun:
    report: Report
    report_path: str
    summary: str = ""
    cleanup: Optional[CleanupResult] = None


def _resolve(config: Optional[MigrationConfig], extra_import_sources: Optional[List[str]]):
    return (config or load_config()).with_import_sources(extra_import_sources)


def _existing_or_fresh(root, config: MigrationConfig) -> Report:
    report = read_report(root, config.report_filename, version=config.report_version)
    if report is None:
        logger.info("No usable report under %s; analyzing first", root)
        report = analyze_project(root, config)
    return report


def run_analyze(
    root_path,
    config: Optional[MigrationConfig] = None,
    extra_import_sources: Optional[List[str]] = None,
) -> StageRun:
    config = _resolve(config, extra_import_sources)
    root = normalize_path(root_path)
    report = analyze_project(root, config)
    path = write_report(root, report, config.report_filename)
    return StageRun(report=report, report_path=path, summary=format_analyze_summary(report))


def run_convert(
    root_path,
    config: Optional[MigrationConfig] = None,
    backend_mode: Optional[str] = None,
    backend_entry: Optional[str] = None,
    env_example: Optional[str] = None,
    extra_import_sources: Optional[List[str]] = None,
) -> StageRun:
    config = _resolve(config, extra_import_sources)
    root = normalize_path(root_path)
    report = convert_project(
        root,
        _existing_or_fresh(root, config),
        config=config,
        backend_mode=backend_mode,
        backend_entry=backend_entry,
        env_example=env_example,
    )
    path = write_report(root, report, config.report_filename)
    return StageRun(report=report, report_path=path)


def run_verify(
    root_path,
    config: Optional[MigrationConfig] = None,
    extra_import_sources: Optional[List[str]] = None,
) -> VerifyResult:
    config = _resolve(config, extra_import_sources)
    return verify_project(normalize_path(root_path), config)


def run_cleanup(
    root_path,
    config: Optional[MigrationConfig] = None,
    mode: str = "dry-run",
    remove_dependencies: bool = False,
    remove_legacy_directory: bool = True,
    aggressive: bool = False,
    quarantine_dir: Optional[str] = None,
    extra_import_sources: Optional[List[str]] = None,
) -> StageRun:
    config = _resolve(config, extra_import_sources)
    root = normalize_path(root_path)
    report, result = cleanup_project(
        root,
        _existing_or_fresh(root, config),
        config=config,
        mode=mode,
        remove_legacy_directory=remove_legacy_directory,
        aggressive=aggressive,
        quarantine_dir=quarantine_dir,
        remove_dependencies=remove_dependencies,
    )
    path = write_report(root, report, config.report_filename)
    return StageRun(report=report, report_path=path, cleanup=result)
