#!/usr/bin/env python3
# CUI // SP-CTI
"""Legacy SDK detection heuristics.

LegacyImportClassifier decides whether a module specifier denotes the legacy
SDK. classify_usage_from_text labels a file's usage with keyword patterns
over the whole file text.
"""

import re
from typing import Iterable, List, Optional

from migrator.codemods.config import MigrationConfig, default_config

USAGE_CATEGORIES = ("auth", "data", "storage", "realtime", "server-functions", "unknown")

# Ordered: category order in a finding follows this table.
_CATEGORY_PATTERNS = (
    ("auth", re.compile(r"(\bauth\b|signin|signout|getuser|session)", re.IGNORECASE)),
    (
        "data",
        re.compile(
            r"(collection|collections|database|db\b|create\(|update\(|delete\(|insert\(|select\()",
            re.IGNORECASE,
        ),
    ),
    ("storage", re.compile(r"(storage|bucket|upload\(|download\(|file)", re.IGNORECASE)),
    ("realtime", re.compile(r"(realtime|subscribe|channel|presence)", re.IGNORECASE)),
    ("server-functions", re.compile(r"(function|functions|rpc|invoke)", re.IGNORECASE)),
)


class LegacyImportClassifier:
    """Exact allow-list match, extended by a case-insensitive name-token match."""

    def __init__(self, import_sources: Iterable[str], name_token: str):
        self.import_sources = frozenset(import_sources)
        self.name_token = name_token.lower()

    @classmethod
    def from_config(
        cls, config: Optional[MigrationConfig] = None, extra_sources: Optional[List[str]] = None,
    ) -> "LegacyImportClassifier":
        config = config or default_config()
        sources = list(config.import_sources) + list(extra_sources or [])
        return cls(sources, config.name_token)

    def is_legacy(self, specifier: str) -> bool:
        if specifier in self.import_sources:
            return True
        return bool(self.name_token) and self.name_token in specifier.lower()

    __call__ = is_legacy

    def filter(self, specifiers: Iterable[str]) -> List[str]:
        return [s for s in specifiers if self.is_legacy(s)]


def classify_usage_from_text(text: str) -> List[str]:
    """Return the usage categories suggested by *text*, or ``['unknown']``."""
    categories = [name for name, pattern in _CATEGORY_PATTERNS if pattern.search(text)]
    return categories or ["unknown"]
