#!/usr/bin/env python3
# CUI // SP-CTI
"""Analyze stage: discover legacy SDK usage and infer schema surface.

For every source file, the first import declaration whose specifier is
classified as legacy produces one Finding; the whole file is then classified
into usage categories and its calls feed entity and server-function
inference. Env var inference runs over every file.
"""

import logging
from typing import List, Optional

from migrator.codemods.config import MigrationConfig, load_config
from migrator.codemods.inference import (
    EntityInferencer,
    EnvVarInferencer,
    InferenceAccumulator,
    ServerFunctionInferencer,
)
from migrator.codemods.sdk_heuristics import LegacyImportClassifier, classify_usage_from_text
from migrator.codemods.source_index import SourceFileIndex
from migrator.codemods.syntax_tree import SourceModule, SyntaxTreeProject
from migrator.compat.paths import normalize_path
from migrator.schemas.report import Finding, Report, create_empty_report

logger = logging.getLogger("migrator.codemods.analyze")


def analyze_module(
    module: SourceModule,
    rel: str,
    classifier: LegacyImportClassifier,
    report: Report,
    acc: InferenceAccumulator,
) -> Optional[Finding]:
    """Analyze one parsed module, extending *report* and *acc* in place."""
    text = module.full_text()
    acc.add_env_vars(EnvVarInferencer.infer(text))

    decl = next((d for d in module.imports() if classifier.is_legacy(d.specifier)), None)
    if decl is None:
        return None

    categories = classify_usage_from_text(text)
    finding = Finding(
        file=rel,
        import_source=decl.specifier,
        imported_names=decl.imported_names(),
        categories=categories,
    )
    report.legacy.import_sources.append(decl.specifier)
    report.legacy.files_with_imports.append(rel)
    report.legacy.categories_detected.extend(categories)
    report.legacy.findings.append(finding)

    calls = module.call_expressions()
    EntityInferencer().collect(module, calls, rel, acc)
    ServerFunctionInferencer().collect(module, calls, rel, acc)
    return finding


def analyze_project(
    root_path,
    config: Optional[MigrationConfig] = None,
    extra_import_sources: Optional[List[str]] = None,
) -> Report:
    """Scan *root_path* and return a finalized Report."""
    config = config or load_config()
    root = normalize_path(root_path)
    report = create_empty_report(str(root), version=config.report_version)
    classifier = LegacyImportClassifier.from_config(config, extra_import_sources)

    index = SourceFileIndex.scan(root, config)
    project = SyntaxTreeProject()
    acc = InferenceAccumulator()

    for path in index:
        module = project.add_source_file(path)
        finding = analyze_module(module, index.relative(path), classifier, report, acc)
        if finding is not None:
            logger.debug("%s: legacy import %r (%s)", finding.file, finding.import_source,
                         ", ".join(finding.categories))

    entities, functions, env_vars = acc.finalize()
    report.inferred.entities = entities
    report.inferred.server_functions = functions
    report.inferred.env_vars = env_vars
    report.finalize()

    logger.info(
        "Analyzed %d file(s): %d with legacy imports, %d entit(ies), %d server function(s)",
        len(index), len(report.legacy.files_with_imports),
        len(entities), len(functions),
    )
    return report
