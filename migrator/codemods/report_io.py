#!/usr/bin/env python3
# CUI // SP-CTI
"""Persist and reload the migration report beside the project it describes."""

import json
import logging
from pathlib import Path
from typing import Optional

from migrator.codemods.errors import ReportError
from migrator.compat.paths import relative_posix
from migrator.schemas.report import REPORT_VERSION, Report

logger = logging.getLogger("migrator.codemods.report_io")

DEFAULT_REPORT_FILENAME = "base44-to-supabase.report.json"


def report_path(root_path, filename: str = DEFAULT_REPORT_FILENAME) -> Path:
    return Path(root_path) / filename


def write_report(root_path, report: Report, filename: str = DEFAULT_REPORT_FILENAME) -> str:
    """Write *report* as 2-space indented JSON; return its path relative to *root_path*."""
    path = report_path(root_path, filename)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(json.dumps(report.to_dict(), indent=2) + "\n")
    logger.debug("Wrote report to %s", path)
    return relative_posix(root_path, path)


def read_report(
    root_path,
    filename: str = DEFAULT_REPORT_FILENAME,
    version: int = REPORT_VERSION,
    strict: bool = False,
) -> Optional[Report]:
    """Load a previously written report.

    Returns None when the file is absent. A file that cannot be decoded, or
    that carries a different version, raises ReportError when *strict* and is
    otherwise logged and treated as absent.
    """
    path = report_path(root_path, filename)
    if not path.is_file():
        return None
    try:
        with open(path, "r", encoding="utf-8") as fh:
            report = Report.from_dict(json.load(fh))
        if report.version != version:
            raise ValueError(f"version {report.version} (expected {version})")
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
        if strict:
            raise ReportError(f"Could not read report {path}: {exc}") from exc
        logger.warning("Ignoring unreadable report %s: %s", path, exc)
        return None
    return report
