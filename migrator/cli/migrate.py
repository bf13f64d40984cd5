#!/usr/bin/env python3
# CUI // SP-CTI
"""Legacy SDK migrator CLI.

Runs one migration stage over a project root and prints either a
human-readable summary or the JSON result.

Usage:
    python -m migrator.cli.migrate analyze ./app
    python -m migrator.cli.migrate convert ./app --backend-mode local
    python -m migrator.cli.migrate verify ./app --json
    python -m migrator.cli.migrate cleanup ./app --mode delete --remove-dependencies

Exit codes: 0 on success, 1 when verify finds remaining legacy references
or a stage fails with a migration error.
"""

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path

from migrator.codemods.cleanup import CLEANUP_MODES
from migrator.codemods.config import BACKEND_MODES, load_config
from migrator.codemods.errors import MigrationError
from migrator.codemods.runner import run_analyze, run_cleanup, run_convert, run_verify
from migrator.compat.console import ensure_utf8_console

logger = logging.getLogger("migrator.cli.migrate")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="migrator",
        description="Migrate a JavaScript/TypeScript app off a legacy SDK onto a neutral backend",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              %(prog)s analyze ./app
              %(prog)s convert ./app --backend-mode local
              %(prog)s verify ./app --json
              %(prog)s cleanup ./app --mode delete --aggressive
        """),
    )
    parser.add_argument("--config", help="Path to a migration_config.yaml override")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", help="Stage to run")

    def _stage(name, help_text):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("root", nargs="?", default=".", help="Project root (default: .)")
        p.add_argument(
            "--import-source", dest="import_sources", action="append", default=[],
            help="Extra module specifier to treat as the legacy SDK (repeatable)",
        )
        p.add_argument("--json", dest="json_output", action="store_true",
                       help="Output results as JSON")
        return p

    _stage("analyze", "Scan for legacy SDK usage and infer schema surface")

    p_convert = _stage("convert", "Rewrite legacy SDK calls onto the backend interface")
    p_convert.add_argument("--backend-mode", choices=BACKEND_MODES,
                           help="Adapter profile for the generated backend entry")
    p_convert.add_argument("--backend-entry", help="Backend entry path relative to root")
    p_convert.add_argument("--env-example", help="Env example path relative to root")

    _stage("verify", "Fail when legacy module references remain")

    p_cleanup = _stage("cleanup", "Remove legacy-only files that nothing imports")
    p_cleanup.add_argument("--mode", choices=CLEANUP_MODES, default="dry-run",
                           help="dry-run only records; delete acts (default: dry-run)")
    p_cleanup.add_argument("--remove-dependencies", action="store_true",
                           help="Prune legacy packages from the manifest once verify passes")
    p_cleanup.add_argument("--no-remove-functions-dir", dest="remove_legacy_directory",
                           action="store_false",
                           help="Keep the legacy functions directory")
    p_cleanup.add_argument("--aggressive", action="store_true",
                           help="Quarantine remaining legacy-referencing files")
    p_cleanup.add_argument("--quarantine-dir", help="Quarantine directory relative to root")
    return parser


def _print_analyze(run):
    print(run.summary)
    print(f"\nReport: {run.report_path}")


def _print_convert(run):
    result = run.report.convert
    print("Convert complete.")
    print(f"  Modified files      : {len(result.modified_files)}")
    print(f"  Features converted  : {', '.join(result.features_converted) or '(none)'}")
    print(f"  Backend entry       : {result.backend_entry_path}")
    print(f"  Env example         : {result.env_example_path}")
    print(f"  TODOs               : {len(result.todos)}")
    for todo in result.todos:
        print(f"  [TODO] {todo.file}: {todo.message}")
    if result.remaining_legacy_module_references:
        print(f"\n[WARN] {len(result.remaining_legacy_module_references)} file(s) still "
              "reference legacy modules; run verify after manual fixes.")
    print(f"\nReport: {run.report_path}")


def _print_verify(result):
    if result.ok:
        print(f"Verify OK: {result.files_scanned} file(s) scanned, no legacy references.")
        return
    print(f"Verify FAIL: {len(result.remaining_legacy_module_references)} of "
          f"{result.files_scanned} file(s) still reference legacy modules.")
    for ref in result.remaining_legacy_module_references:
        print(f"  [FAIL] {ref.file}: {', '.join(ref.specifiers)}")


def _print_cleanup(run):
    result = run.cleanup
    print(f"Cleanup complete ({result.mode}).")
    for path in result.deleted_paths:
        print(f"  [DELETE] {path}")
    for path in result.quarantined_paths:
        print(f"  [QUARANTINE] {path}")
    for skipped in result.skipped_paths:
        print(f"  [SKIP] {skipped.path}: {skipped.reason}")
    for dep in result.removed_dependencies:
        print(f"  [DEPENDENCY] {dep}")
    print(f"\nReport: {run.report_path}")


def _dispatch(args) -> int:
    config = load_config(args.config)
    root = Path(args.root)
    if not root.is_dir():
        raise MigrationError(f"Project root does not exist: {root}")
    extra = args.import_sources

    if args.command == "analyze":
        run = run_analyze(root, config, extra_import_sources=extra)
        payload = {"reportPath": run.report_path, "report": run.report.to_dict()}
        printer = _print_analyze
    elif args.command == "convert":
        run = run_convert(
            root, config,
            backend_mode=args.backend_mode,
            backend_entry=args.backend_entry,
            env_example=args.env_example,
            extra_import_sources=extra,
        )
        payload = {"reportPath": run.report_path, "convert": run.report.convert.to_dict()}
        printer = _print_convert
    elif args.command == "verify":
        run = run_verify(root, config, extra_import_sources=extra)
        payload = run.to_dict()
        printer = _print_verify
    else:
        run = run_cleanup(
            root, config,
            mode=args.mode,
            remove_dependencies=args.remove_dependencies,
            remove_legacy_directory=args.remove_legacy_directory,
            aggressive=args.aggressive,
            quarantine_dir=args.quarantine_dir,
            extra_import_sources=extra,
        )
        payload = {"reportPath": run.report_path, "cleanup": run.cleanup.to_dict()}
        printer = _print_cleanup

    if args.json_output:
        print(json.dumps(payload, indent=2))
    else:
        printer(run)

    if args.command == "verify" and not run.ok:
        return 1
    return 0


def log_level(verbose: bool) -> int:
    """Stage summaries are INFO; only warnings reach stderr unless verbose."""
    return logging.DEBUG if verbose else logging.WARNING


def main(argv=None) -> int:
    """CLI entry-point; returns the process exit code."""
    ensure_utf8_console()
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=log_level(args.verbose),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    try:
        return _dispatch(args)
    except MigrationError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
