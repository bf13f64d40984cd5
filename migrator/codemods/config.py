#!/usr/bin/env python3
# CUI // SP-CTI
"""Migration configuration loader.

Reads args/migration_config.yaml. When the file is absent the built-in
defaults below apply, so the engine runs on a bare checkout.
"""

import copy
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import yaml

from migrator.codemods.errors import ConfigError

BASE_DIR = Path(__file__).resolve().parent.parent.parent
CONFIG_PATH = BASE_DIR / "args" / "migration_config.yaml"

logger = logging.getLogger("migrator.codemods.config")

BACKEND_MODES = ("supabase", "local")

# ---------------------------------------------------------------------------
# Built-in defaults (fallback when config not available)
# ---------------------------------------------------------------------------
DEFAULT_CONFIG = {
    "legacy_sdk": {
        "name_token": "base44",
        "import_sources": ["base44", "@base44/sdk", "@base44/client", "base44-sdk"],
    },
    "source_files": {
        "extensions": [".ts", ".tsx", ".js", ".jsx"],
        "exclude_dirs": ["node_modules", "dist", "build", ".next", ".turbo", ".git"],
    },
    "scan": {"max_workers": 8},
    "convert": {
        "backend_mode": "supabase",
        "backend_entry": "src/backend/index.ts",
        "env_example": ".env.example",
    },
    "cleanup": {
        "legacy_only_globs": [
            "base44.*",
            ".base44/**",
            "src/**/base44*.{ts,tsx,js,jsx}",
            "src/**/Base44*.{ts,tsx,js,jsx}",
            "src/**/*base44*client*.{ts,tsx,js,jsx}",
        ],
        "legacy_directory": "functions",
        "legacy_state_directory": ".base44",
        "quarantine_dir": ".base44-to-supabase/removed",
        "manifest": "package.json",
        "dependency_sections": [
            "dependencies",
            "devDependencies",
            "peerDependencies",
            "optionalDependencies",
        ],
    },
    "report": {"filename": "base44-to-supabase.report.json", "version": 1},
}


@dataclass
class MigrationConfig:
    """Resolved configuration values used by every stage."""

    name_token: str = "base44"
    import_sources: Tuple[str, ...] = ("base44", "@base44/sdk", "@base44/client", "base44-sdk")
    extensions: Tuple[str, ...] = (".ts", ".tsx", ".js", ".jsx")
    exclude_dirs: Tuple[str, ...] = ("node_modules", "dist", "build", ".next", ".turbo", ".git")
    max_workers: int = 8
    backend_mode: str = "supabase"
    backend_entry: str = "src/backend/index.ts"
    env_example: str = ".env.example"
    legacy_only_globs: Tuple[str, ...] = ()
    legacy_directory: str = "functions"
    legacy_state_directory: str = ".base44"
    quarantine_dir: str = ".base44-to-supabase/removed"
    manifest: str = "package.json"
    dependency_sections: Tuple[str, ...] = ()
    report_filename: str = "base44-to-supabase.report.json"
    report_version: int = 1

    def with_import_sources(self, extra_sources: Optional[List[str]]) -> "MigrationConfig":
        """Return a copy whose allow-list also contains *extra_sources*."""
        if not extra_sources:
            return self
        clone = copy.copy(self)
        merged = list(self.import_sources)
        for src in extra_sources:
            if src not in merged:
                merged.append(src)
        clone.import_sources = tuple(merged)
        return clone


def _merge(base: dict, override: dict) -> dict:
    """Recursively overlay *override* onto a copy of *base*."""
    out = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def _from_dict(data: dict) -> MigrationConfig:
    legacy = data["legacy_sdk"]
    files = data["source_files"]
    conv = data["convert"]
    clean = data["cleanup"]
    rep = data["report"]

    mode = conv.get("backend_mode", "supabase")
    if mode not in BACKEND_MODES:
        raise ConfigError(
            f"Unknown backend_mode {mode!r}; expected one of {', '.join(BACKEND_MODES)}"
        )
    extensions = tuple(
        ext if ext.startswith(".") else f".{ext}" for ext in files.get("extensions", [])
    )
    try:
        max_workers = max(1, int(data.get("scan", {}).get("max_workers", 8)))
        version = int(rep.get("version", 1))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid numeric setting: {exc}") from exc

    return MigrationConfig(
        name_token=str(legacy.get("name_token", "base44")).lower(),
        import_sources=tuple(legacy.get("import_sources", [])),
        extensions=extensions,
        exclude_dirs=tuple(files.get("exclude_dirs", [])),
        max_workers=max_workers,
        backend_mode=mode,
        backend_entry=conv.get("backend_entry", "src/backend/index.ts"),
        env_example=conv.get("env_example", ".env.example"),
        legacy_only_globs=tuple(clean.get("legacy_only_globs", [])),
        legacy_directory=clean.get("legacy_directory", "functions"),
        legacy_state_directory=clean.get("legacy_state_directory", ".base44"),
        quarantine_dir=clean.get("quarantine_dir", ".base44-to-supabase/removed"),
        manifest=clean.get("manifest", "package.json"),
        dependency_sections=tuple(clean.get("dependency_sections", [])),
        report_filename=rep.get("filename", "base44-to-supabase.report.json"),
        report_version=version,
    )


def load_config(path=None) -> MigrationConfig:
    """Load the migration config, overlaying the YAML file onto the defaults.

    An explicitly supplied *path* must exist; the default path may be absent.
    """
    config_path = Path(path) if path else CONFIG_PATH
    raw = {}
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Could not parse {config_path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError(f"{config_path} must contain a mapping at top level")
    elif path:
        raise ConfigError(f"Config file not found: {config_path}")
    else:
        logger.debug("No config at %s; using built-in defaults", config_path)
    return _from_dict(_merge(DEFAULT_CONFIG, raw))


def default_config() -> MigrationConfig:
    """Return the built-in defaults without touching the filesystem."""
    return _from_dict(copy.deepcopy(DEFAULT_CONFIG))
