#!/usr/bin/env python3
# CUI // SP-CTI
"""Convert stage: replace legacy SDK imports and calls with ``backend.*``.

Per file with at least one legacy import declaration:
  1. resolve Bindings from the legacy imports, then remove them
  2. ensure ``import { backend } from '<relative entry>.js'``
  3. rewrite recognized call shapes, last call first
  4. flag the file for manual review when anything was left over
  5. record one ConversionTodo per unhandled category
All modules are persisted in one batch, then a text-level post-check flags
any legacy specifier that is still present (require/import() included).
Finally the backend entry and env example files are (re)generated.

Running convert twice rewrites nothing the second time: no legacy import
remains to seed Bindings.
"""

import logging
import os
import re
from pathlib import Path
from typing import List, Optional

from migrator.codemods.backend_templates import ENV_EXAMPLE, REVIEW_COMMENT, render_backend_entry
from migrator.codemods.bindings import resolve_bindings
from migrator.codemods.call_rewriter import CallSiteRewriter, RewriteStats
from migrator.codemods.config import MigrationConfig, load_config
from migrator.codemods.sdk_heuristics import LegacyImportClassifier
from migrator.codemods.source_index import SourceFileIndex
from migrator.codemods.syntax_tree import SourceModule, SyntaxTreeProject
from migrator.codemods.verify import scan_legacy_references
from migrator.compat.paths import normalize_path, relative_posix, to_posix_path
from migrator.schemas.report import ConversionTodo, ConvertResult, Report

logger = logging.getLogger("migrator.codemods.convert")

_SOURCE_EXT_RE = re.compile(r"\.(ts|tsx|js|jsx)$")


def compute_backend_import(from_file, backend_entry) -> str:
    """Relative, forward-slash, ``.js``-suffixed specifier for the backend entry."""
    from_dir = os.path.dirname(str(from_file))
    entry_no_ext = _SOURCE_EXT_RE.sub("", str(backend_entry))
    spec = to_posix_path(os.path.relpath(entry_no_ext, from_dir))
    if not spec.endswith(".js"):
        spec = f"{spec}.js"
    return spec if spec.startswith(".") else f"./{spec}"


def _leading_insert(module: SourceModule, text: str, priority: int = 0) -> None:
    """Insert a line after the directive prologue, or before the first statement."""
    directive_end = module.directive_prologue_end()
    if directive_end is not None:
        module.insert(directive_end, f"{module.newline}{text}", priority)
        return
    statements = module.statements()
    offset = statements[0].start_byte if statements else 0
    module.insert(offset, f"{text}{module.newline}", priority)


def ensure_backend_import(module: SourceModule, specifier: str) -> bool:
    """Make sure *module* imports ``backend`` from *specifier*. Returns True if edited."""
    statement = f'import {{ backend }} from "{specifier}";'
    imports = module.imports()

    for decl in imports:
        if decl.specifier != specifier or decl.type_only:
            continue
        if "backend" in decl.local_names():
            return False
        named = decl.named_imports_node()
        if named is not None:
            if decl.named:
                module.insert(named.start_byte + 1, " backend,")
            else:
                module.replace(named, "{ backend }")
            return True
        default_node = decl.default_node()
        if default_node is not None and not decl.namespace:
            module.insert(default_node.end_byte, ", { backend }")
            return True

    if imports:
        module.insert(imports[-1].node.end_byte, f"{module.newline}{statement}")
        return True

    _leading_insert(module, statement)
    return True


def _file_todos(rel: str, stats: RewriteStats) -> List[ConversionTodo]:
    todos = []
    if stats.unknown_auth:
        todos.append(ConversionTodo(
            rel,
            "Found auth.* calls that are not signIn/signOut/getUser "
            f"({stats.unknown_auth} occurrence(s)). Manual conversion required.",
        ))
    if stats.unknown_entities:
        todos.append(ConversionTodo(
            rel,
            "Found collections(...) usage where the entity name is not a string literal "
            f"({stats.unknown_entities} occurrence(s)). Manual conversion required.",
        ))
    if stats.unknown_crud:
        todos.append(ConversionTodo(
            rel,
            "Found collections CRUD calls that do not match supported signatures "
            f"({stats.unknown_crud} occurrence(s)). Manual conversion required.",
        ))
    if stats.unknown_storage:
        todos.append(ConversionTodo(
            rel,
            "Found storage.* calls that are not upload/download "
            f"({stats.unknown_storage} occurrence(s)). Manual conversion required.",
        ))
    if stats.unresolved_references:
        todos.append(ConversionTodo(
            rel,
            "Found references to legacy SDK bindings whose import was removed "
            f"({stats.unresolved_references} occurrence(s)). Manual conversion required.",
        ))
    return todos


def convert_module(
    module: SourceModule,
    rel: str,
    classifier: LegacyImportClassifier,
    backend_entry: Path,
) -> Optional[List[ConversionTodo]]:
    """Convert one module in memory. Returns its todos, or None if untouched."""
    legacy_imports = [d for d in module.imports() if classifier.is_legacy(d.specifier)]
    if not legacy_imports:
        return None

    bindings = resolve_bindings(legacy_imports)
    for decl in legacy_imports:
        module.remove(decl.node)

    ensure_backend_import(module, compute_backend_import(module.path, backend_entry))

    stats = CallSiteRewriter(module, bindings).rewrite()
    if stats.unknown > 0 or stats.rewritten == 0:
        _leading_insert(module, REVIEW_COMMENT, priority=-1)

    logger.debug(
        "%s: %d call(s) rewritten, %d left for review", rel, stats.rewritten, stats.unknown
    )
    return _file_todos(rel, stats)


def convert_project(
    root_path,
    report: Report,
    config: Optional[MigrationConfig] = None,
    backend_mode: Optional[str] = None,
    backend_entry: Optional[str] = None,
    env_example: Optional[str] = None,
) -> Report:
    """Run the convert stage over *root_path* and record the result on *report*."""
    config = config or load_config()
    root = normalize_path(root_path)
    mode = backend_mode or config.backend_mode
    entry_template = render_backend_entry(mode)

    backend_entry_abs = root / (backend_entry or config.backend_entry)
    env_example_abs = root / (env_example or config.env_example)
    classifier = LegacyImportClassifier.from_config(config)

    index = SourceFileIndex.scan(root, config)
    project = SyntaxTreeProject()
    result = ConvertResult()

    for path in index:
        module = project.add_source_file(path)
        rel = index.relative(path)
        todos = convert_module(module, rel, classifier, backend_entry_abs)
        if todos is None:
            continue
        result.todos.extend(todos)
        result.modified_files.append(rel)

    project.save()

    # Post-pass over raw text: catches require()/import() forms the tree pass leaves.
    for ref in scan_legacy_references(index, classifier, config.max_workers):
        result.remaining_legacy_module_references.append(ref)
        quoted = ", ".join(f'"{s}"' for s in ref.specifiers)
        result.todos.append(ConversionTodo(
            ref.file,
            f"Remaining legacy module reference(s) detected: {quoted}. "
            "Manual conversion required.",
        ))
        logger.warning("%s: legacy module reference(s) remain: %s", ref.file, quoted)

    backend_entry_abs.parent.mkdir(parents=True, exist_ok=True)
    backend_entry_abs.write_text(entry_template, encoding="utf-8")
    env_example_abs.parent.mkdir(parents=True, exist_ok=True)
    env_example_abs.write_text(ENV_EXAMPLE, encoding="utf-8")

    result.features_converted = list(report.legacy.categories_detected)
    result.backend_entry_path = relative_posix(root, backend_entry_abs)
    result.env_example_path = relative_posix(root, env_example_abs)
    report.convert = result
    report.finalize()

    logger.info(
        "Converted %d file(s); %d todo(s); %d file(s) with remaining references",
        len(result.modified_files), len(result.todos),
        len(result.remaining_legacy_module_references),
    )
    return report
