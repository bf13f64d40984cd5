#!/usr/bin/env python3
# CUI // SP-CTI
"""Tests for the migrator CLI and the stage runners behind it."""

import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from migrator.cli.migrate import log_level, main
from migrator.codemods.report_io import read_report
from migrator.codemods.runner import run_analyze, run_convert


class TestRunners:

    def test_analyze_persists_report(self, canonical_app, config):
        run = run_analyze(canonical_app, config)
        assert run.report_path == "base44-to-supabase.report.json"
        assert "Files with legacy imports: 1" in run.summary
        assert read_report(canonical_app).legacy.files_with_imports == ["app.ts"]

    def test_convert_reuses_persisted_report(self, canonical_app, config):
        first = run_analyze(canonical_app, config)
        run = run_convert(canonical_app, config)
        assert run.report.created_at == first.report.created_at
        assert run.report.convert.modified_files == ["app.ts"]
        assert read_report(canonical_app).convert is not None

    def test_convert_without_report_analyzes_first(self, canonical_app, config):
        run = run_convert(canonical_app, config)
        assert run.report.legacy.files_with_imports == ["app.ts"]


class TestCli:

    def test_log_level_defaults_to_warning(self):
        assert log_level(False) == logging.WARNING
        assert log_level(True) == logging.DEBUG

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage:" in capsys.readouterr().out

    def test_analyze_human_output(self, canonical_app, capsys):
        assert main(["analyze", str(canonical_app)]) == 0
        out = capsys.readouterr().out
        assert "Files with legacy imports: 1" in out
        assert "Report: base44-to-supabase.report.json" in out

    def test_verify_exit_codes(self, canonical_app, capsys):
        assert main(["verify", str(canonical_app)]) == 1
        assert "[FAIL] app.ts: base44" in capsys.readouterr().out

        assert main(["convert", str(canonical_app), "--json"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["convert"]["modifiedFiles"] == ["app.ts"]

        assert main(["verify", str(canonical_app), "--json"]) == 0
        assert json.loads(capsys.readouterr().out)["ok"] is True

    def test_convert_local_mode(self, canonical_app, capsys):
        assert main(["convert", str(canonical_app), "--backend-mode", "local"]) == 0
        out = capsys.readouterr().out
        assert "Convert complete." in out
        entry = (canonical_app / "src/backend/index.ts").read_text(encoding="utf-8")
        assert "createLocalSupabaseBackendFromEnv" in entry

    def test_cleanup_dry_run(self, make_project, capsys):
        root = make_project({"src/base44Client.ts": "import { auth } from 'base44';\n"})
        assert main(["cleanup", str(root)]) == 0
        out = capsys.readouterr().out
        assert "Cleanup complete (dry-run)." in out
        assert "[DELETE] src/base44Client.ts" in out
        assert (root / "src/base44Client.ts").exists()

    def test_cleanup_delete_json(self, make_project, capsys):
        root = make_project({"functions/f.ts": "import x from 'base44';\n"})
        assert main(["cleanup", str(root), "--mode", "delete", "--json"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["cleanup"]["deletedPaths"] == ["functions"]
        assert not (root / "functions").exists()

    def test_cleanup_keep_functions_dir(self, make_project, capsys):
        root = make_project({"functions/f.ts": "import x from 'base44';\n"})
        main(["cleanup", str(root), "--mode", "delete", "--no-remove-functions-dir"])
        assert (root / "functions/f.ts").exists()

    def test_extra_import_source(self, make_project, capsys):
        root = make_project({"a.ts": "import x from '@acme/old';\n"})
        assert main(["verify", str(root), "--import-source", "@acme/old"]) == 1

    def test_missing_root_is_error(self, tmp_path, capsys):
        assert main(["verify", str(tmp_path / "missing")]) == 1
        assert "[ERROR] Project root does not exist" in capsys.readouterr().err

    def test_bad_config_is_error(self, tmp_path, capsys):
        assert main(["--config", str(tmp_path / "none.yaml"), "verify", str(tmp_path)]) == 1
        assert "[ERROR] Config file not found" in capsys.readouterr().err
