#!/usr/bin/env python3
# CUI // SP-CTI
"""Human-readable console summaries for the analyze stage."""

from typing import Callable, Iterable, List

from migrator.schemas.report import Report

SUMMARY_LIMIT = 10


def _section(lines: List[str], title: str, items: list, render: Callable) -> None:
    lines.append(f"{title}: {len(items)}")
    for item in items[:SUMMARY_LIMIT]:
        lines.append(f"  - {render(item)}")
    if len(items) > SUMMARY_LIMIT:
        lines.append("  ...")


def _joined(values: Iterable[str], empty: str) -> str:
    return ", ".join(values) or empty


def format_analyze_summary(report: Report) -> str:
    legacy = report.legacy
    inferred = report.inferred
    lines = [
        "Legacy SDK analysis",
        "=" * 68,
        f"Files with legacy imports: {len(legacy.files_with_imports)}",
        f"Import sources: {_joined(legacy.import_sources, '(none found)')}",
        f"Categories detected: {_joined(legacy.categories_detected, '(none)')}",
    ]
    _section(lines, "Inferred entities", inferred.entities,
             lambda e: f"{e.name}: {', '.join(e.fields)}")
    _section(lines, "Inferred server functions", inferred.server_functions, lambda f: f.name)
    _section(lines, "Inferred env vars", inferred.env_vars, str)
    return "\n".join(lines)
