#!/usr/bin/env python3
# CUI // SP-CTI
"""Tests for the report model and its persistence."""

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from migrator.codemods.errors import ReportError
from migrator.codemods.report_io import read_report, write_report
from migrator.schemas.report import (
    CleanupResult,
    ConversionTodo,
    ConvertResult,
    Evidence,
    Finding,
    InferredEntity,
    ModuleReference,
    Report,
    SkippedPath,
    create_empty_report,
)


@pytest.fixture
def full_report():
    report = create_empty_report("/tmp/app")
    report.legacy.import_sources = ["base44", "base44"]
    report.legacy.files_with_imports = ["b.ts", "a.ts"]
    report.legacy.findings = [
        Finding(file="b.ts", import_source="base44", imported_names=["auth"], categories=["auth"]),
        Finding(file="a.ts", import_source="base44", imported_names=[], categories=["unknown"]),
    ]
    entity = InferredEntity(name="todos")
    entity.merge(["title"], Evidence(file="a.ts"))
    entity.merge(["done", "title"], Evidence(file="a.ts"))
    report.inferred.entities = [entity]
    report.inferred.env_vars = ["B", "A"]
    report.convert = ConvertResult(
        modified_files=["a.ts"],
        todos=[ConversionTodo("a.ts", "x"), ConversionTodo("a.ts", "x")],
        remaining_legacy_module_references=[ModuleReference("c.js", ["base44"])],
        backend_entry_path="src/backend/index.ts",
        env_example_path=".env.example",
    )
    report.cleanup = CleanupResult(
        mode="delete",
        deleted_paths=["functions"],
        skipped_paths=[SkippedPath("p", "r"), SkippedPath("p", "r")],
    )
    return report.finalize()


class TestReportModel:

    def test_finalize_dedupes_and_sorts(self, full_report):
        assert full_report.legacy.import_sources == ["base44"]
        assert [f.file for f in full_report.legacy.findings] == ["a.ts", "b.ts"]
        assert full_report.inferred.env_vars == ["A", "B"]
        assert full_report.inferred.entities[0].fields == ["done", "title"]
        assert full_report.inferred.entities[0].evidence == [Evidence(file="a.ts")]
        assert len(full_report.convert.todos) == 1
        assert len(full_report.cleanup.skipped_paths) == 1

    def test_camel_case_keys(self, full_report):
        data = full_report.to_dict()
        assert list(data) == ["version", "createdAt", "rootPath", "legacy", "inferred",
                              "convert", "cleanup"]
        assert "filesWithImports" in data["legacy"]
        assert "serverFunctions" in data["inferred"]
        assert data["convert"]["backendEntryPath"] == "src/backend/index.ts"
        assert data["cleanup"]["skippedPaths"] == [{"path": "p", "reason": "r"}]

    def test_json_round_trip(self, full_report):
        restored = Report.from_dict(json.loads(json.dumps(full_report.to_dict())))
        assert restored == full_report

    def test_optional_sections_omitted(self):
        data = create_empty_report("/x").to_dict()
        assert "convert" not in data and "cleanup" not in data
        assert "remainingLegacyModuleReferences" not in ConvertResult().to_dict()

    def test_created_at_is_utc(self):
        assert create_empty_report("/x").created_at.endswith("Z")


class TestReportIO:

    def test_write_then_read(self, tmp_path, full_report):
        rel = write_report(tmp_path, full_report)
        assert rel == "base44-to-supabase.report.json"
        text = (tmp_path / rel).read_text(encoding="utf-8")
        assert text.startswith('{\n  "version": 1,')
        assert text.endswith("}\n")
        assert read_report(tmp_path) == full_report

    def test_missing_report(self, tmp_path):
        assert read_report(tmp_path) is None

    def test_corrupt_report(self, tmp_path):
        (tmp_path / "base44-to-supabase.report.json").write_text("{not json", encoding="utf-8")
        assert read_report(tmp_path) is None
        with pytest.raises(ReportError):
            read_report(tmp_path, strict=True)

    def test_version_mismatch(self, tmp_path, full_report):
        full_report.version = 99
        write_report(tmp_path, full_report)
        assert read_report(tmp_path) is None
        with pytest.raises(ReportError, match="version"):
            read_report(tmp_path, strict=True)

    def test_custom_filename(self, tmp_path, full_report):
        write_report(tmp_path, full_report, filename="r.json")
        assert read_report(tmp_path, filename="r.json") == full_report
