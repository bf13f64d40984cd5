#!/usr/bin/env python3
# CUI // SP-CTI
"""Migration report model.

The Report is the only long-lived artifact shared between stages. Every
stage reads it, extends it, and hands it forward. Persisted JSON uses
camelCase keys; the dataclasses use snake_case attributes.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

REPORT_VERSION = 1


def _unique_sorted(values) -> List[str]:
    return sorted(set(values))


@dataclass(frozen=True)
class Evidence:
    """A file reference, optionally with the source snippet that matched."""

    file: str
    snippet: Optional[str] = None

    def to_dict(self) -> dict:
        out = {"file": self.file}
        if self.snippet is not None:
            out["snippet"] = self.snippet
        return out

    @classmethod
    def from_dict(cls, data: dict) -> "Evidence":
        return cls(file=data["file"], snippet=data.get("snippet"))


def _sorted_evidence(items) -> List[Evidence]:
    return sorted(set(items), key=lambda e: (e.file, e.snippet or ""))


@dataclass
class Finding:
    """One file's legacy-import evidence."""

    file: str
    import_source: str
    imported_names: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "file": self.file,
            "importSource": self.import_source,
            "importedNames": list(self.imported_names),
            "categories": list(self.categories),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Finding":
        return cls(
            file=data["file"],
            import_source=data["importSource"],
            imported_names=list(data.get("importedNames", [])),
            categories=list(data.get("categories", [])),
        )


@dataclass
class InferredEntity:
    """A logical collection and the union of fields written to it."""

    name: str
    fields: List[str] = field(default_factory=list)
    evidence: List[Evidence] = field(default_factory=list)

    def merge(self, fields, evidence: Evidence) -> None:
        self.fields = _unique_sorted(list(self.fields) + list(fields))
        self.evidence = _sorted_evidence(list(self.evidence) + [evidence])

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "fields": list(self.fields),
            "evidence": [e.to_dict() for e in self.evidence],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "InferredEntity":
        return cls(
            name=data["name"],
            fields=list(data.get("fields", [])),
            evidence=[Evidence.from_dict(e) for e in data.get("evidence", [])],
        )


@dataclass
class InferredServerFunction:
    """A remotely invoked function name plus call-site evidence."""

    name: str
    evidence: List[Evidence] = field(default_factory=list)

    def merge(self, evidence: Evidence) -> None:
        self.evidence = _sorted_evidence(list(self.evidence) + [evidence])

    def to_dict(self) -> dict:
        return {"name": self.name, "evidence": [e.to_dict() for e in self.evidence]}

    @classmethod
    def from_dict(cls, data: dict) -> "InferredServerFunction":
        return cls(
            name=data["name"],
            evidence=[Evidence.from_dict(e) for e in data.get("evidence", [])],
        )


@dataclass(frozen=True)
class ConversionTodo:
    """A rewrite that could not be performed safely. Never auto-resolved."""

    file: str
    message: str

    def to_dict(self) -> dict:
        return {"file": self.file, "message": self.message}

    @classmethod
    def from_dict(cls, data: dict) -> "ConversionTodo":
        return cls(file=data["file"], message=data["message"])


@dataclass
class ModuleReference:
    """Legacy specifiers still present in one file."""

    file: str
    specifiers: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"file": self.file, "specifiers": list(self.specifiers)}

    @classmethod
    def from_dict(cls, data: dict) -> "ModuleReference":
        return cls(file=data["file"], specifiers=list(data.get("specifiers", [])))


@dataclass(frozen=True)
class SkippedPath:
    path: str
    reason: str

    def to_dict(self) -> dict:
        return {"path": self.path, "reason": self.reason}

    @classmethod
    def from_dict(cls, data: dict) -> "SkippedPath":
        return cls(path=data["path"], reason=data["reason"])


@dataclass
class LegacyUsage:
    import_sources: List[str] = field(default_factory=list)
    files_with_imports: List[str] = field(default_factory=list)
    findings: List[Finding] = field(default_factory=list)
    categories_detected: List[str] = field(default_factory=list)

    def finalize(self) -> None:
        self.import_sources = _unique_sorted(self.import_sources)
        self.files_with_imports = _unique_sorted(self.files_with_imports)
        self.categories_detected = _unique_sorted(self.categories_detected)
        by_file = {}
        for finding in self.findings:
            by_file.setdefault(finding.file, finding)
        self.findings = [by_file[k] for k in sorted(by_file)]

    def to_dict(self) -> dict:
        return {
            "importSources": list(self.import_sources),
            "filesWithImports": list(self.files_with_imports),
            "findings": [f.to_dict() for f in self.findings],
            "categoriesDetected": list(self.categories_detected),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LegacyUsage":
        return cls(
            import_sources=list(data.get("importSources", [])),
            files_with_imports=list(data.get("filesWithImports", [])),
            findings=[Finding.from_dict(f) for f in data.get("findings", [])],
            categories_detected=list(data.get("categoriesDetected", [])),
        )


@dataclass
class InferredSchema:
    entities: List[InferredEntity] = field(default_factory=list)
    server_functions: List[InferredServerFunction] = field(default_factory=list)
    env_vars: List[str] = field(default_factory=list)

    def finalize(self) -> None:
        self.entities = sorted(self.entities, key=lambda e: e.name)
        self.server_functions = sorted(self.server_functions, key=lambda f: f.name)
        self.env_vars = _unique_sorted(self.env_vars)

    def to_dict(self) -> dict:
        return {
            "entities": [e.to_dict() for e in self.entities],
            "serverFunctions": [f.to_dict() for f in self.server_functions],
            "envVars": list(self.env_vars),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "InferredSchema":
        return cls(
            entities=[InferredEntity.from_dict(e) for e in data.get("entities", [])],
            server_functions=[
                InferredServerFunction.from_dict(f) for f in data.get("serverFunctions", [])
            ],
            env_vars=list(data.get("envVars", [])),
        )


@dataclass
class ConvertResult:
    modified_files: List[str] = field(default_factory=list)
    features_converted: List[str] = field(default_factory=list)
    todos: List[ConversionTodo] = field(default_factory=list)
    remaining_legacy_module_references: List[ModuleReference] = field(default_factory=list)
    backend_entry_path: Optional[str] = None
    env_example_path: Optional[str] = None

    def finalize(self) -> None:
        self.modified_files = _unique_sorted(self.modified_files)
        self.features_converted = _unique_sorted(self.features_converted)
        # Stable on file so per-file message order is kept.
        deduped = list(dict.fromkeys(self.todos))
        self.todos = sorted(deduped, key=lambda t: t.file)
        self.remaining_legacy_module_references = sorted(
            self.remaining_legacy_module_references, key=lambda r: r.file
        )

    def to_dict(self) -> dict:
        out: Dict[str, Any] = {
            "modifiedFiles": list(self.modified_files),
            "featuresConverted": list(self.features_converted),
            "todos": [t.to_dict() for t in self.todos],
        }
        if self.remaining_legacy_module_references:
            out["remainingLegacyModuleReferences"] = [
                r.to_dict() for r in self.remaining_legacy_module_references
            ]
        if self.backend_entry_path is not None:
            out["backendEntryPath"] = self.backend_entry_path
        if self.env_example_path is not None:
            out["envExamplePath"] = self.env_example_path
        return out

    @classmethod
    def from_dict(cls, data: dict) -> "ConvertResult":
        return cls(
            modified_files=list(data.get("modifiedFiles", [])),
            features_converted=list(data.get("featuresConverted", [])),
            todos=[ConversionTodo.from_dict(t) for t in data.get("todos", [])],
            remaining_legacy_module_references=[
                ModuleReference.from_dict(r)
                for r in data.get("remainingLegacyModuleReferences", [])
            ],
            backend_entry_path=data.get("backendEntryPath"),
            env_example_path=data.get("envExamplePath"),
        )


@dataclass
class CleanupResult:
    mode: str = "dry-run"
    deleted_paths: List[str] = field(default_factory=list)
    quarantined_paths: List[str] = field(default_factory=list)
    skipped_paths: List[SkippedPath] = field(default_factory=list)
    removed_dependencies: List[str] = field(default_factory=list)

    def finalize(self) -> None:
        self.deleted_paths = _unique_sorted(self.deleted_paths)
        self.quarantined_paths = _unique_sorted(self.quarantined_paths)
        self.removed_dependencies = _unique_sorted(self.removed_dependencies)
        self.skipped_paths = sorted(set(self.skipped_paths), key=lambda s: (s.path, s.reason))

    def to_dict(self) -> dict:
        return {
            "mode": self.mode,
            "deletedPaths": list(self.deleted_paths),
            "quarantinedPaths": list(self.quarantined_paths),
            "skippedPaths": [s.to_dict() for s in self.skipped_paths],
            "removedDependencies": list(self.removed_dependencies),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CleanupResult":
        return cls(
            mode=data.get("mode", "dry-run"),
            deleted_paths=list(data.get("deletedPaths", [])),
            quarantined_paths=list(data.get("quarantinedPaths", [])),
            skipped_paths=[SkippedPath.from_dict(s) for s in data.get("skippedPaths", [])],
            removed_dependencies=list(data.get("removedDependencies", [])),
        )


@dataclass
class Report:
    """Versioned record of everything discovered and rewritten for one root."""

    root_path: str
    version: int = REPORT_VERSION
    created_at: str = ""
    legacy: LegacyUsage = field(default_factory=LegacyUsage)
    inferred: InferredSchema = field(default_factory=InferredSchema)
    convert: Optional[ConvertResult] = None
    cleanup: Optional[CleanupResult] = None

    def finalize(self) -> "Report":
        """De-duplicate and sort every list. Returns self."""
        self.legacy.finalize()
        self.inferred.finalize()
        if self.convert is not None:
            self.convert.finalize()
        if self.cleanup is not None:
            self.cleanup.finalize()
        return self

    def to_dict(self) -> dict:
        out: Dict[str, Any] = {
            "version": self.version,
            "createdAt": self.created_at,
            "rootPath": self.root_path,
            "legacy": self.legacy.to_dict(),
            "inferred": self.inferred.to_dict(),
        }
        if self.convert is not None:
            out["convert"] = self.convert.to_dict()
        if self.cleanup is not None:
            out["cleanup"] = self.cleanup.to_dict()
        return out

    @classmethod
    def from_dict(cls, data: dict) -> "Report":
        convert = data.get("convert")
        cleanup = data.get("cleanup")
        return cls(
            root_path=data["rootPath"],
            version=int(data.get("version", REPORT_VERSION)),
            created_at=data.get("createdAt", ""),
            legacy=LegacyUsage.from_dict(data.get("legacy", {})),
            inferred=InferredSchema.from_dict(data.get("inferred", {})),
            convert=ConvertResult.from_dict(convert) if convert is not None else None,
            cleanup=CleanupResult.from_dict(cleanup) if cleanup is not None else None,
        )


def create_empty_report(root_path: str, version: int = REPORT_VERSION) -> Report:
    return Report(
        root_path=root_path,
        version=version,
        created_at=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    )
